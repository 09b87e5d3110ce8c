from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from config.env import SUPERADMIN_EMAILS, SUPERADMIN_UIDS
from utils.errors import ApiError
from utils.jwt import verify_firebase_token

security = HTTPBearer(auto_error=False)

SUPERADMIN = "superadmin"


class Caller(BaseModel):
    uid: str
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    claims: dict = Field(default_factory=dict)


async def get_current_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Caller:
    if credentials is None or not credentials.credentials:
        raise ApiError(401, "UNAUTHORIZED", "Missing bearer token")

    claims = await verify_firebase_token(credentials.credentials)

    email = claims.get("email")
    email_verified = claims.get("email_verified")
    caller = Caller(
        uid=claims["sub"],
        email=email if isinstance(email, str) else None,
        email_verified=email_verified if isinstance(email_verified, bool) else None,
        claims=claims,
    )

    # picked up by the access log middleware
    request.state.caller_uid = caller.uid
    return caller


# -------------------------------
# Capabilities
# -------------------------------

class CapabilityChecker:
    def has_capability(self, caller: Caller, capability: str) -> bool:
        raise NotImplementedError


class AllowListCapabilityChecker(CapabilityChecker):
    """superadmin = uid/email on the configured allow-list, or a `superadmin: true` claim."""

    def __init__(self, emails, uids):
        self.emails = {e.lower() for e in emails}
        self.uids = set(uids)

    def has_capability(self, caller: Caller, capability: str) -> bool:
        if capability != SUPERADMIN:
            return False

        if caller.claims.get("superadmin") is True:
            return True

        if caller.uid in self.uids:
            return True

        return bool(caller.email) and caller.email.lower() in self.emails


def get_capability_checker() -> CapabilityChecker:
    return AllowListCapabilityChecker(SUPERADMIN_EMAILS, SUPERADMIN_UIDS)


def require_capability(capability: str):
    async def checker(
        caller: Caller = Depends(get_current_caller),
        capabilities: CapabilityChecker = Depends(get_capability_checker),
    ):
        if not capabilities.has_capability(caller, capability):
            raise ApiError(403, "FORBIDDEN", "Superadmin role required")
        return caller

    return checker

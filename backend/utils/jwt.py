import asyncio
import json
import re
import time
from urllib import request, error

from jose import jwt, JWTError

from config.env import FIREBASE_PROJECT_ID
from utils.errors import ApiError

SECURETOKEN_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
SECURETOKEN_ISSUER = "https://securetoken.google.com/"
DEFAULT_JWKS_TTL_SECONDS = 60 * 60

_MAX_AGE = re.compile(r"max-age=(\d+)")

_jwks_cache = {"jwks": None, "expires_at": 0.0}


def _require_project_id() -> str:
    project_id = (FIREBASE_PROJECT_ID or "").strip()
    if not project_id:
        raise ApiError(500, "CONFIG_ERROR", "FIREBASE_PROJECT_ID is not configured")
    return project_id


def _max_age(cache_control: str | None) -> int:
    match = _MAX_AGE.search(cache_control or "")
    return int(match.group(1)) if match else DEFAULT_JWKS_TTL_SECONDS


def _fetch_jwks() -> tuple[dict, int]:
    req = request.Request(url=SECURETOKEN_JWKS_URL, method="GET")

    try:
        with request.urlopen(req, timeout=10) as resp:
            body = json.loads(resp.read().decode("utf-8"))
            ttl = _max_age(resp.headers.get("Cache-Control"))
    except (error.URLError, ValueError):
        raise ApiError(503, "AUTH_UNAVAILABLE", "Token signing keys unavailable")

    return body, ttl


async def get_signing_keys() -> dict:
    now = time.monotonic()
    if _jwks_cache["jwks"] and now < _jwks_cache["expires_at"]:
        return _jwks_cache["jwks"]

    jwks, ttl = await asyncio.to_thread(_fetch_jwks)
    _jwks_cache["jwks"] = jwks
    _jwks_cache["expires_at"] = now + ttl
    return jwks


def decode_firebase_token(token: str, jwks: dict, project_id: str) -> dict:
    try:
        claims = jwt.decode(
            token,
            jwks,
            algorithms=["RS256"],
            audience=project_id,
            issuer=SECURETOKEN_ISSUER + project_id,
        )
    except JWTError:
        raise ApiError(401, "INVALID_TOKEN", "Invalid or expired Firebase token")

    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise ApiError(401, "INVALID_TOKEN", "Token missing subject")

    return claims


async def verify_firebase_token(token: str) -> dict:
    project_id = _require_project_id()
    jwks = await get_signing_keys()
    return decode_firebase_token(token, jwks, project_id)

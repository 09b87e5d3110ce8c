"""Shared test helpers."""

from datetime import datetime, timezone

from fastapi import Request

from models.buyer import BuyerRecord
from utils.errors import ApiError
from utils.security import Caller

ADMIN_UID = "admin-1"
BUYER_UID = "buyer-1"

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def fake_current_caller(request: Request) -> Caller:
    """Tests authenticate with `Authorization: Bearer <uid>`."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer ") or not header[7:].strip():
        raise ApiError(401, "UNAUTHORIZED", "Missing bearer token")

    uid = header[7:].strip()
    request.state.caller_uid = uid
    return Caller(uid=uid, email=f"{uid}@example.com", claims={"sub": uid})


def auth(uid: str = BUYER_UID) -> dict:
    return {"Authorization": f"Bearer {uid}"}


async def store_buyer(db, record: BuyerRecord) -> None:
    await db.users.update_one(
        {"_id": record.uid},
        {"$set": record.to_document()},
        upsert=True,
    )

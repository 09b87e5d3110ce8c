from pymongo import DESCENDING

from config.env import ADMIN_BUYER_LIST_LIMIT
from models.buyer import ApprovalStatus, BuyerRecord
from utils.accounts import ensure_buyer
from utils.buyer_rules import to_iso, utc_now

# -------------------------------
# users collection: one document per uid, _id == uid
# -------------------------------


async def get_user(db, uid: str) -> dict | None:
    return await db.users.find_one({"_id": uid})


async def upsert_user(db, uid: str, patch: dict, merge: bool = True) -> None:
    """
    merge=True  -> $set only the given fields, everything else stays.
    merge=False -> replace the whole document.
    Last write wins; there is no version check on the document.
    """
    doc = {
        **patch,
        "uid": uid,
        "updatedAt": to_iso(utc_now()),
    }
    doc.pop("_id", None)

    if merge:
        await db.users.update_one({"_id": uid}, {"$set": doc}, upsert=True)
    else:
        await db.users.replace_one({"_id": uid}, doc, upsert=True)


async def load_buyer(db, uid: str) -> tuple[BuyerRecord, bool]:
    return ensure_buyer(uid, await get_user(db, uid))


async def save_buyer(db, buyer: BuyerRecord) -> None:
    await upsert_user(db, buyer.uid, buyer.to_document(), merge=True)


async def list_buyers(
    db,
    status: ApprovalStatus = ApprovalStatus.PENDING,
    limit: int = ADMIN_BUYER_LIST_LIMIT,
) -> list[BuyerRecord]:
    status = ApprovalStatus(status)

    # stored statuses may be lowercase or junk; match on the normalized value
    cursor = db.users.find({"type": "buyer"}).sort("updatedAt", DESCENDING)

    buyers = []
    async for doc in cursor:
        buyer = BuyerRecord.model_validate({**doc, "uid": doc.get("uid") or doc["_id"]})
        if buyer.approval_status != status.value:
            continue
        buyers.append(buyer)
        if len(buyers) >= limit:
            break

    return buyers

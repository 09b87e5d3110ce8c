from models.buyer import ApprovalStatus, BuyerRecord
from utils.errors import ApiError, validation_error

# Firebase uids are at most 128 characters
MAX_UID_LENGTH = 128

# -------------------------------
# Uid Guard
# -------------------------------

def parse_uid(value: str, name: str = "uid") -> str:
    uid = (value or "").strip()
    if not uid or len(uid) > MAX_UID_LENGTH:
        raise validation_error(f"Invalid {name}")
    return uid


# -------------------------------
# Buyer State Guard
# -------------------------------

def assert_valid_buyer_state(buyer: BuyerRecord):
    status = buyer.approval_status

    if status == ApprovalStatus.APPROVED and (not buyer.verified_buyer or buyer.rejection_reason):
        raise ApiError(
            500,
            "CORRUPT_BUYER_STATE",
            "Corrupt buyer state: approved buyer must be verified without a rejection reason",
        )

    if status == ApprovalStatus.REJECTED and not (buyer.rejection_reason or "").strip():
        raise ApiError(
            500,
            "CORRUPT_BUYER_STATE",
            "Corrupt buyer state: rejected without reason",
        )

import logging
from datetime import datetime
from typing import Optional, Union

from config.constants import TRIAL_DAYS
from models.buyer import ApprovalStatus, BuyerAccount, BuyerRecord, UnknownAccount, normalize_enum
from utils.buyer_rules import to_iso, trial_window, utc_now
from utils.guards import assert_valid_buyer_state

logger = logging.getLogger(__name__)

# legacy rejections that never stored a reason
LEGACY_REJECTION_REASON = "Rejected before migration"

Account = Union[BuyerAccount, UnknownAccount]


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


# -------------------------------
# Seeding
# -------------------------------

def default_buyer_record(uid: str, now: Optional[datetime] = None) -> BuyerRecord:
    now = now or utc_now()
    trial_start_at, trial_end_at = trial_window(now, TRIAL_DAYS)
    created_at = to_iso(now)

    return BuyerRecord(
        uid=uid,
        trial_start_at=trial_start_at,
        trial_end_at=trial_end_at,
        created_at=created_at,
        updated_at=created_at,
    )


# -------------------------------
# Classification
# -------------------------------

def looks_like_buyer(raw: dict) -> bool:
    return (
        str(raw.get("role") or "").strip().lower() == "buyer"
        or raw.get("buyerProfileComplete") is True
        or raw.get("profileComplete") is True
        or raw.get("isBuyer") is True
    )


def classify_account(uid: str, raw: Optional[dict]) -> Optional[Account]:
    if raw is None:
        return None

    if raw.get("type") == "buyer":
        return BuyerAccount(record=BuyerRecord.model_validate({**raw, "uid": uid}))

    return UnknownAccount(uid=uid, raw=raw, buyer_like=looks_like_buyer(raw))


def adopt_legacy_buyer(account: UnknownAccount, now: Optional[datetime] = None) -> BuyerRecord:
    """Reshape a pre-buyer-API account (role=buyer etc.) into a buyer record."""
    raw = account.raw
    seeded = default_buyer_record(account.uid, now)

    location = _as_dict(raw.get("internationalLocation"))
    destinations = _as_list(location.get("destinations"))
    approval = normalize_enum(ApprovalStatus, raw.get("approvalStatus"), ApprovalStatus.PENDING)

    rejection_reason = None
    if approval == ApprovalStatus.REJECTED:
        rejection_reason = str(raw.get("rejectionReason") or "").strip() or LEGACY_REJECTION_REASON

    profile = {
        **_as_dict(raw.get("buyerProfile")),
        "displayName": raw.get("displayName"),
        "companyName": raw.get("companyName"),
        "buyerType": raw.get("buyerType") or raw.get("buyerRegistrationType") or "LOCAL",
        "preferences": {
            "crops": _as_list(raw.get("interestedCrops")),
            "preferredMarkets": _as_list(raw.get("preferredMarkets")),
            "preferredRegions": destinations,
        },
        "company": {
            "companyName": raw.get("companyName"),
            "country": location.get("buyerCountry"),
            "cityOrRegion": location.get("buyerRegion") or raw.get("location"),
            "phone": raw.get("phone"),
            "email": raw.get("email"),
            "destinations": destinations,
        },
    }

    record = BuyerRecord.model_validate({
        **seeded.to_document(),
        "approvalStatus": approval.value,
        "verifiedBuyer": approval == ApprovalStatus.APPROVED,
        "buyerTier": raw.get("buyerTier") or seeded.buyer_tier,
        "premiumPlan": raw.get("premiumPlan") or seeded.premium_plan,
        "premiumStatus": raw.get("premiumStatus") or seeded.premium_status,
        "trialStartAt": raw.get("trialStartAt") or seeded.trial_start_at,
        "trialEndAt": raw.get("trialEndAt") or seeded.trial_end_at,
        "approvedBy": raw.get("approvedBy"),
        "approvedAt": raw.get("approvedAt"),
        "rejectionReason": rejection_reason,
        "metrics": _as_dict(raw.get("metrics")),
        "billing": _as_dict(raw.get("billing")),
        "buyerProfile": profile,
        "createdAt": raw.get("createdAt") or seeded.created_at,
    })

    assert_valid_buyer_state(record)
    return record


def ensure_buyer(uid: str, raw: Optional[dict], now: Optional[datetime] = None) -> tuple[BuyerRecord, bool]:
    """
    Load-or-seed. Returns (record, changed); `changed` means the record is
    not what storage currently holds and should be persisted.
    """
    account = classify_account(uid, raw)

    if isinstance(account, BuyerAccount):
        return account.record, False

    if isinstance(account, UnknownAccount) and account.buyer_like:
        logger.info("BUYER_ADOPTED uid=%s", uid)
        return adopt_legacy_buyer(account, now), True

    logger.info("BUYER_SEEDED uid=%s existing=%s", uid, account is not None)
    return default_buyer_record(uid, now), True

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from config.constants import BUYER_TIER_RULES, PLAN_MONTHLY_PRICE_KES, DEFAULT_UPGRADE_PLAN
from models.buyer import (
    AdminSetPremiumRequest,
    AdminSetTierRequest,
    ApprovalStatus,
    BuyerBilling,
    BuyerMetrics,
    BuyerRecord,
    BuyerTier,
    CommitPurchaseRequest,
    PaymentStatus,
    PremiumPlan,
    PremiumStatus,
    PremiumUpgradeRequestBody,
    PremiumUpgradeRequestRecord,
    normalize_enum,
)
from utils.errors import ApiError, validation_error

# ============================================================
# BUYER RULES ENGINE
# ============================================================
# Pure functions only: a record (and maybe a request) in,
# a new record or a derived value out. Nothing here touches
# the database; routes do load -> rule -> persist -> audit.
# ============================================================

DAY_SECONDS = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value) -> Optional[datetime]:
    """ISO string or datetime -> aware UTC datetime; None when unparseable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ============================================================
# NORMALIZERS
# ============================================================

def normalize_tier(value) -> BuyerTier:
    return normalize_enum(BuyerTier, value, BuyerTier.BRONZE)


def normalize_premium_plan(value) -> PremiumPlan:
    return normalize_enum(PremiumPlan, value, PremiumPlan.NONE)


def normalize_premium_status(value) -> PremiumStatus:
    return normalize_enum(PremiumStatus, value, PremiumStatus.TRIAL)


def normalize_payment_status(value) -> PaymentStatus:
    return normalize_enum(PaymentStatus, value, PaymentStatus.ACTIVE)


def monthly_price_for_plan(plan) -> float:
    return PLAN_MONTHLY_PRICE_KES[normalize_premium_plan(plan).value]


# ============================================================
# TIER DETERMINATION
# ============================================================

def evaluate_tier(metrics: BuyerMetrics) -> BuyerTier:
    purchases = metrics.successful_purchases_count
    disputes = metrics.disputes_count

    for tier in (BuyerTier.GOLD, BuyerTier.SILVER):
        rule = BUYER_TIER_RULES[tier.value]
        if purchases >= rule["min_purchases"] and disputes <= rule["max_disputes"]:
            return tier

    return BuyerTier.BRONZE


# ============================================================
# TRIAL WINDOW
# ============================================================

def is_trial_expired(buyer: BuyerRecord, now: Optional[datetime] = None) -> bool:
    trial_end = parse_timestamp(buyer.trial_end_at)
    if trial_end is None:
        return False
    return (now or utc_now()) > trial_end


def trial_days_left(buyer: BuyerRecord, now: Optional[datetime] = None) -> int:
    trial_end = parse_timestamp(buyer.trial_end_at)
    if trial_end is None:
        return 0

    remaining = (trial_end - (now or utc_now())).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining / DAY_SECONDS)


def effective_premium_status(buyer: BuyerRecord, now: Optional[datetime] = None) -> str:
    """
    Read-time view of the premium status. An untouched trial past its end
    reports EXPIRED; the stored value is left alone.
    """
    if (
        buyer.premium_plan == PremiumPlan.NONE
        and buyer.premium_status == PremiumStatus.TRIAL
        and is_trial_expired(buyer, now)
    ):
        return PremiumStatus.EXPIRED.value
    return buyer.premium_status


# ============================================================
# APPROVAL
# ============================================================

def is_approved(buyer: BuyerRecord) -> bool:
    return buyer.approval_status == ApprovalStatus.APPROVED


def require_approved(buyer: BuyerRecord, action: str) -> None:
    if not is_approved(buyer):
        raise ApiError(403, "APPROVAL_REQUIRED", f"Buyer approval required to {action}")


def approve_buyer(buyer: BuyerRecord, admin_uid: str, now: Optional[datetime] = None) -> BuyerRecord:
    stamp = to_iso(now or utc_now())
    return buyer.model_copy(update={
        "approval_status": ApprovalStatus.APPROVED.value,
        "verified_buyer": True,
        "approved_by": admin_uid,
        "approved_at": stamp,
        "rejection_reason": None,
        "updated_at": stamp,
    })


def reject_buyer(buyer: BuyerRecord, reason: Optional[str], now: Optional[datetime] = None) -> BuyerRecord:
    reason = (reason or "").strip()
    if not reason:
        raise validation_error("rejectionReason is required")

    return buyer.model_copy(update={
        "approval_status": ApprovalStatus.REJECTED.value,
        "verified_buyer": False,
        "rejection_reason": reason,
        "updated_at": to_iso(now or utc_now()),
    })


# ============================================================
# PROFILE
# ============================================================

def apply_profile(buyer: BuyerRecord, patch: dict, now: Optional[datetime] = None) -> BuyerRecord:
    """Shallow-merge client profile fields; account state is never taken from the patch."""
    return buyer.model_copy(update={
        "verified_buyer": is_approved(buyer),
        "buyer_profile": {**buyer.buyer_profile, **patch},
        "updated_at": to_iso(now or utc_now()),
    })


# ============================================================
# PURCHASES
# ============================================================

def apply_purchase(
    buyer: BuyerRecord,
    req: CommitPurchaseRequest,
    now: Optional[datetime] = None,
) -> BuyerRecord:
    amount = req.amount_kes
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise validation_error("amountKes must be greater than 0")

    current = buyer.metrics
    next_metrics = BuyerMetrics(
        successful_purchases_count=current.successful_purchases_count + 1,
        total_spend_kes=round(current.total_spend_kes + amount, 2),
        disputes_count=current.disputes_count + (1 if req.has_dispute is True else 0),
    )

    return buyer.model_copy(update={
        "metrics": next_metrics,
        "buyer_tier": evaluate_tier(next_metrics).value,
        "updated_at": to_iso(now or utc_now()),
    })


# ============================================================
# PREMIUM
# ============================================================

def request_premium_upgrade(
    buyer: BuyerRecord,
    req: PremiumUpgradeRequestBody,
    requested_by: str,
    now: Optional[datetime] = None,
) -> BuyerRecord:
    stamp = to_iso(now or utc_now())
    upgrade = PremiumUpgradeRequestRecord(
        requested_plan=normalize_premium_plan(req.premium_plan or DEFAULT_UPGRADE_PLAN),
        notes=req.notes,
        requested_by=requested_by,
        requested_at=stamp,
    )
    return buyer.model_copy(update={
        "premium_upgrade_request": upgrade,
        "updated_at": stamp,
    })


# ============================================================
# ADMIN OVERRIDES
# ============================================================

def apply_admin_tier(
    buyer: BuyerRecord,
    req: AdminSetTierRequest,
    now: Optional[datetime] = None,
) -> BuyerRecord:
    return buyer.model_copy(update={
        "buyer_tier": normalize_tier(req.buyer_tier).value,
        "updated_at": to_iso(now or utc_now()),
    })


def apply_admin_premium(
    buyer: BuyerRecord,
    req: AdminSetPremiumRequest,
    now: Optional[datetime] = None,
) -> BuyerRecord:
    premium_plan = normalize_premium_plan(req.premium_plan)
    premium_status = normalize_premium_status(req.premium_status)

    if req.monthly_price_kes is None:
        monthly_price = monthly_price_for_plan(premium_plan)
    elif not math.isfinite(req.monthly_price_kes) or req.monthly_price_kes < 0:
        raise validation_error("monthlyPriceKes must be a number >= 0")
    else:
        monthly_price = req.monthly_price_kes

    current = buyer.billing
    billing = BuyerBilling(
        monthly_price_kes=monthly_price,
        next_billing_date=req.next_billing_date if req.next_billing_date is not None else current.next_billing_date,
        last_payment_at=req.last_payment_at if req.last_payment_at is not None else current.last_payment_at,
        payment_status=(
            normalize_payment_status(req.payment_status)
            if req.payment_status is not None
            else current.payment_status
        ),
    )

    return buyer.model_copy(update={
        "premium_plan": premium_plan.value,
        "premium_status": premium_status.value,
        "billing": billing,
        "updated_at": to_iso(now or utc_now()),
    })


def trial_window(now: datetime, days: int) -> tuple[str, str]:
    return to_iso(now), to_iso(now + timedelta(days=days))

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config.constants import BILLING_CURRENCY


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class BuyerTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"


class PremiumPlan(str, Enum):
    NONE = "NONE"
    GOLD_ADDON = "GOLD_ADDON"
    ENTERPRISE = "ENTERPRISE"


class PremiumStatus(str, Enum):
    TRIAL = "TRIAL"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    PAST_DUE = "PAST_DUE"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELLED = "CANCELLED"


def normalize_enum(enum_cls, value, default):
    """Map loose input (any case, padding, junk) onto an enum member, else `default`."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, Enum):
        value = value.value
    normalized = str(value or "").strip().upper()
    try:
        return enum_cls(normalized)
    except ValueError:
        return enum_cls(default)


# -------------------------------
# Loose field coercion
# -------------------------------

def _timestamp(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _optional_text(value):
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value)


def _as_list(value):
    return value if isinstance(value, list) else []


def _as_dict(value):
    return value if isinstance(value, dict) else {}


def _as_section(value):
    # already-built sub-models pass through untouched
    return value if isinstance(value, (dict, BaseModel)) else {}


def _non_negative_number(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


Timestamp = Annotated[Optional[str], BeforeValidator(_timestamp)]
OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]
LooseList = Annotated[list, BeforeValidator(_as_list)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


# =====================================================
# RECORD PARTS
# =====================================================

class BuyerMetrics(CamelModel):
    successful_purchases_count: int = 0
    total_spend_kes: float = 0.0
    disputes_count: int = 0

    @field_validator("successful_purchases_count", "disputes_count", mode="before")
    @classmethod
    def _coerce_count(cls, value):
        return int(_non_negative_number(value))

    @field_validator("total_spend_kes", mode="before")
    @classmethod
    def _coerce_spend(cls, value):
        return round(_non_negative_number(value), 2)


class BuyerBilling(CamelModel):
    currency: str = BILLING_CURRENCY
    monthly_price_kes: float = 0
    next_billing_date: Timestamp = None
    last_payment_at: Timestamp = None
    payment_status: PaymentStatus = PaymentStatus.ACTIVE

    @field_validator("currency", mode="before")
    @classmethod
    def _fixed_currency(cls, value):
        return BILLING_CURRENCY

    @field_validator("monthly_price_kes", mode="before")
    @classmethod
    def _coerce_price(cls, value):
        return _non_negative_number(value)

    @field_validator("payment_status", mode="before")
    @classmethod
    def _coerce_payment_status(cls, value):
        return normalize_enum(PaymentStatus, value, PaymentStatus.ACTIVE)


class PremiumUpgradeRequestRecord(CamelModel):
    requested_plan: PremiumPlan = PremiumPlan.GOLD_ADDON
    status: Literal["PENDING"] = "PENDING"
    notes: OptionalText = None
    requested_by: OptionalText = None
    requested_at: Timestamp = None

    @field_validator("requested_plan", mode="before")
    @classmethod
    def _coerce_plan(cls, value):
        return normalize_enum(PremiumPlan, value, PremiumPlan.NONE)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value):
        return "PENDING"


# =====================================================
# FREE-FORM PROFILE (validated view over a raw blob)
# =====================================================

class BuyerPreferences(CamelModel):
    model_config = ConfigDict(extra="allow")

    crops: LooseList = Field(default_factory=list)
    preferred_markets: LooseList = Field(default_factory=list)
    preferred_regions: LooseList = Field(default_factory=list)


class CompanyProfile(CamelModel):
    model_config = ConfigDict(extra="allow")

    company_name: OptionalText = None
    country: OptionalText = None
    city_or_region: OptionalText = None
    address: OptionalText = None
    phone: OptionalText = None
    whatsapp: OptionalText = None
    email: OptionalText = None
    website: OptionalText = None
    destinations: LooseList = Field(default_factory=list)


class BuyerProfile(CamelModel):
    """
    Explicit fields over the stored `buyerProfile` blob. Anything else the
    client sent is kept in `model_extra`.
    """

    model_config = ConfigDict(extra="allow")

    display_name: OptionalText = None
    full_name: OptionalText = None
    company_name: OptionalText = None
    buyer_type: OptionalText = None
    buyer_registration_type: OptionalText = None
    phone: OptionalText = None
    preferences: BuyerPreferences = Field(default_factory=BuyerPreferences)
    company: CompanyProfile = Field(default_factory=CompanyProfile)

    @field_validator("preferences", "company", mode="before")
    @classmethod
    def _coerce_section(cls, value):
        return _as_section(value)

    @classmethod
    def from_raw(cls, raw) -> "BuyerProfile":
        return cls.model_validate(_as_dict(raw))


# =====================================================
# BUYER RECORD
# =====================================================

class BuyerRecord(CamelModel):
    uid: str
    type: Literal["buyer"] = "buyer"

    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    verified_buyer: bool = False
    buyer_tier: BuyerTier = BuyerTier.BRONZE

    premium_plan: PremiumPlan = PremiumPlan.NONE
    premium_status: PremiumStatus = PremiumStatus.TRIAL
    trial_start_at: Timestamp = None
    trial_end_at: Timestamp = None

    approved_by: OptionalText = None
    approved_at: Timestamp = None
    rejection_reason: OptionalText = None

    metrics: BuyerMetrics = Field(default_factory=BuyerMetrics)
    billing: BuyerBilling = Field(default_factory=BuyerBilling)
    buyer_profile: dict[str, Any] = Field(default_factory=dict)
    premium_upgrade_request: Optional[PremiumUpgradeRequestRecord] = None

    created_at: Timestamp = None
    updated_at: Timestamp = None

    @field_validator("type", mode="before")
    @classmethod
    def _fixed_type(cls, value):
        return "buyer"

    @field_validator("approval_status", mode="before")
    @classmethod
    def _coerce_approval(cls, value):
        return normalize_enum(ApprovalStatus, value, ApprovalStatus.PENDING)

    @field_validator("buyer_tier", mode="before")
    @classmethod
    def _coerce_tier(cls, value):
        return normalize_enum(BuyerTier, value, BuyerTier.BRONZE)

    @field_validator("premium_plan", mode="before")
    @classmethod
    def _coerce_plan(cls, value):
        return normalize_enum(PremiumPlan, value, PremiumPlan.NONE)

    @field_validator("premium_status", mode="before")
    @classmethod
    def _coerce_premium_status(cls, value):
        return normalize_enum(PremiumStatus, value, PremiumStatus.TRIAL)

    @field_validator("verified_buyer", mode="before")
    @classmethod
    def _coerce_verified(cls, value):
        return value is True

    @field_validator("metrics", "billing", mode="before")
    @classmethod
    def _coerce_section(cls, value):
        return _as_section(value)

    @field_validator("buyer_profile", mode="before")
    @classmethod
    def _coerce_profile(cls, value):
        return _as_dict(value)

    @field_validator("premium_upgrade_request", mode="before")
    @classmethod
    def _coerce_upgrade_request(cls, value):
        return value if isinstance(value, (dict, BaseModel)) else None


# =====================================================
# STORED ACCOUNT VARIANTS
# =====================================================

class BuyerAccount(BaseModel):
    kind: Literal["buyer"] = "buyer"
    record: BuyerRecord


class UnknownAccount(BaseModel):
    kind: Literal["unknown"] = "unknown"
    uid: str
    raw: dict[str, Any]
    buyer_like: bool = False


# =====================================================
# REQUEST SCHEMAS
# =====================================================

class BuyerProfileCreateRequest(CamelModel):
    model_config = ConfigDict(extra="allow")

    display_name: OptionalText = None
    company_name: OptionalText = None
    buyer_type: OptionalText = None


class PremiumUpgradeRequestBody(CamelModel):
    premium_plan: OptionalText = None
    notes: OptionalText = None


class CommitPurchaseRequest(CamelModel):
    amount_kes: Optional[float] = None
    has_dispute: Optional[bool] = False
    order_id: OptionalText = None
    crop: OptionalText = None
    coop_id: OptionalText = None
    notes: OptionalText = None

    @field_validator("has_dispute", mode="before")
    @classmethod
    def _coerce_dispute(cls, value):
        return value is True


class AdminDecisionRequest(CamelModel):
    rejection_reason: OptionalText = None
    notes: OptionalText = None


class AdminSetTierRequest(CamelModel):
    buyer_tier: OptionalText = None


class AdminSetPremiumRequest(CamelModel):
    premium_plan: OptionalText = None
    premium_status: OptionalText = None
    monthly_price_kes: Optional[float] = None
    next_billing_date: Timestamp = None
    last_payment_at: Timestamp = None
    payment_status: OptionalText = None

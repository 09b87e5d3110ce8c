from datetime import datetime
from typing import Optional

from config.constants import ENTITLED_PREMIUM_STATUSES, TRIAL_DAYS
from models.buyer import BuyerProfile, BuyerRecord
from utils.buyer_rules import effective_premium_status, is_approved, trial_days_left


def _display_name(profile: BuyerProfile) -> str:
    return profile.display_name or profile.full_name or "Buyer Account"


def _company_name(profile: BuyerProfile) -> str:
    return profile.company_name or profile.company.company_name or "Buyer"


def _buyer_type(profile: BuyerProfile) -> str:
    raw = profile.buyer_type or profile.buyer_registration_type or "LOCAL"
    return "INTERNATIONAL" if raw.strip().upper() == "INTERNATIONAL" else "LOCAL"


def premium_entitlements(buyer: BuyerRecord, premium_status: str) -> dict:
    approved = is_approved(buyer)
    paid_features = approved and premium_status in ENTITLED_PREMIUM_STATUSES

    return {
        "canContactReveal": paid_features,
        "canUseAdvancedIntelligence": paid_features,
        "canUseBulkContracts": paid_features,
        "canCommitActions": approved,
    }


def _upgrade_request(buyer: BuyerRecord):
    if buyer.premium_upgrade_request is None:
        return None
    return buyer.premium_upgrade_request.to_document()


def serialize_buyer_me(buyer: BuyerRecord, now: Optional[datetime] = None) -> dict:
    premium_status = effective_premium_status(buyer, now)

    # malformed nested profile data degrades to empty lists / nulls
    profile = BuyerProfile.from_raw(buyer.buyer_profile)
    preferences = profile.preferences
    company = profile.company

    return {
        "uid": buyer.uid,
        "type": buyer.type,
        "isBuyer": buyer.type == "buyer",
        "displayName": _display_name(profile),
        "companyName": _company_name(profile),
        "buyerType": _buyer_type(profile),

        "approvalStatus": buyer.approval_status,
        "verifiedBuyer": buyer.verified_buyer,
        "buyerTier": buyer.buyer_tier,
        "premiumPlan": buyer.premium_plan,
        "premiumStatus": premium_status,

        "trialStartAt": buyer.trial_start_at,
        "trialEndAt": buyer.trial_end_at,
        "trialDaysLeft": trial_days_left(buyer, now),
        "trialDays": TRIAL_DAYS,

        "metrics": buyer.metrics.to_document(),
        "billing": buyer.billing.to_document(),

        "verification": {
            "verifiedBy": buyer.approved_by,
            "verifiedAt": buyer.approved_at,
            "verificationNotes": buyer.rejection_reason,
        },

        "preferences": {
            **(preferences.model_extra or {}),
            "crops": preferences.crops,
            "preferredMarkets": preferences.preferred_markets,
            "preferredRegions": preferences.preferred_regions,
        },

        "company": {
            **(company.model_extra or {}),
            "companyName": _company_name(profile),
            "country": company.country,
            "cityOrRegion": company.city_or_region,
            "address": company.address,
            "phone": company.phone,
            "whatsapp": company.whatsapp,
            "email": company.email,
            "website": company.website,
            "destinations": company.destinations,
        },

        "premiumUpgradeRequest": _upgrade_request(buyer),
        "premiumEntitlements": premium_entitlements(buyer, premium_status),

        # dashboard collections are filled by other services
        "activity": {
            "recentOrders": [],
            "recentBids": [],
            "recentMessages": [],
            "recentContractUpdates": [],
        },
        "alerts": [],
        "suppliers": [],
        "orders": [],
        "contracts": [],
        "messages": [],
        "recommendedLots": [],
        "invoices": [],
        "transactions": [],
        "usageFees": [],
        "paymentMethods": [],
        "teamBilling": {
            "seatCount": 1,
            "canManageSeats": False,
        },

        "approvedBy": buyer.approved_by,
        "approvedAt": buyer.approved_at,
        "rejectionReason": buyer.rejection_reason,
        "buyerProfile": buyer.buyer_profile,
        "createdAt": buyer.created_at,
        "updatedAt": buyer.updated_at,
    }


def serialize_buyer_summary(buyer: BuyerRecord, now: Optional[datetime] = None) -> dict:
    profile = BuyerProfile.from_raw(buyer.buyer_profile)

    return {
        "uid": buyer.uid,
        "displayName": _display_name(profile),
        "companyName": _company_name(profile),
        "approvalStatus": buyer.approval_status,
        "verifiedBuyer": buyer.verified_buyer,
        "buyerTier": buyer.buyer_tier,
        "premiumPlan": buyer.premium_plan,
        "premiumStatus": effective_premium_status(buyer, now),
        "metrics": buyer.metrics.to_document(),
        "premiumUpgradeRequest": _upgrade_request(buyer),
        "createdAt": buyer.created_at,
        "updatedAt": buyer.updated_at,
    }

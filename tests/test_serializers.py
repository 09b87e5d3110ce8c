"""Tests for the buyer read views."""

from datetime import timedelta

from models.buyer import BuyerRecord, PremiumUpgradeRequestRecord
from utils.serializers import premium_entitlements, serialize_buyer_me, serialize_buyer_summary

from helpers import ADMIN_UID, BUYER_UID, FIXED_NOW


def test_fresh_buyer_view_defaults(buyer) -> None:
    view = serialize_buyer_me(buyer, now=FIXED_NOW)

    assert view["uid"] == BUYER_UID
    assert view["type"] == "buyer"
    assert view["isBuyer"] is True
    assert view["displayName"] == "Buyer Account"
    assert view["companyName"] == "Buyer"
    assert view["buyerType"] == "LOCAL"
    assert view["approvalStatus"] == "PENDING"
    assert view["verifiedBuyer"] is False
    assert view["buyerTier"] == "BRONZE"
    assert view["premiumPlan"] == "NONE"
    assert view["premiumStatus"] == "TRIAL"
    assert view["trialDaysLeft"] == 60
    assert view["trialDays"] == 60
    assert view["metrics"] == {"successfulPurchasesCount": 0, "totalSpendKes": 0.0, "disputesCount": 0}
    assert view["billing"]["currency"] == "KES"
    assert view["premiumUpgradeRequest"] is None
    assert view["teamBilling"] == {"seatCount": 1, "canManageSeats": False}
    assert view["activity"]["recentOrders"] == []
    assert view["invoices"] == []


def test_expired_trial_is_reported_but_not_stored(buyer) -> None:
    later = FIXED_NOW + timedelta(days=61)

    view = serialize_buyer_me(buyer, now=later)

    assert view["premiumStatus"] == "EXPIRED"
    assert view["trialDaysLeft"] == 0
    assert buyer.premium_status == "TRIAL"
    assert buyer.to_document()["premiumStatus"] == "TRIAL"


def test_pending_buyer_has_no_entitlements(buyer) -> None:
    assert premium_entitlements(buyer, "TRIAL") == {
        "canContactReveal": False,
        "canUseAdvancedIntelligence": False,
        "canUseBulkContracts": False,
        "canCommitActions": False,
    }


def test_approved_buyer_entitlements_follow_premium_status(approved_buyer) -> None:
    trial = premium_entitlements(approved_buyer, "TRIAL")
    assert trial["canContactReveal"] is True
    assert trial["canCommitActions"] is True

    expired = premium_entitlements(approved_buyer, "EXPIRED")
    assert expired["canContactReveal"] is False
    assert expired["canUseBulkContracts"] is False
    assert expired["canCommitActions"] is True

    active = premium_entitlements(approved_buyer, "ACTIVE")
    assert active["canUseAdvancedIntelligence"] is True


def test_expired_trial_removes_paid_entitlements(approved_buyer) -> None:
    view = serialize_buyer_me(approved_buyer, now=FIXED_NOW + timedelta(days=90))

    assert view["premiumEntitlements"]["canContactReveal"] is False
    assert view["premiumEntitlements"]["canCommitActions"] is True


def test_verification_block_mirrors_approval_fields(approved_buyer) -> None:
    view = serialize_buyer_me(approved_buyer, now=FIXED_NOW)

    assert view["verification"] == {
        "verifiedBy": ADMIN_UID,
        "verifiedAt": "2026-03-01T12:00:00Z",
        "verificationNotes": None,
    }
    assert view["approvedBy"] == ADMIN_UID


def test_malformed_profile_sections_degrade(buyer) -> None:
    record = buyer.model_copy(update={"buyer_profile": {
        "displayName": "Amina",
        "preferences": {"crops": "maize", "preferredMarkets": None},
        "company": "not-a-dict",
    }})

    view = serialize_buyer_me(record, now=FIXED_NOW)

    assert view["displayName"] == "Amina"
    assert view["preferences"]["crops"] == []
    assert view["preferences"]["preferredMarkets"] == []
    assert view["preferences"]["preferredRegions"] == []
    assert view["company"]["destinations"] == []
    assert view["company"]["country"] is None


def test_profile_extras_pass_through(buyer) -> None:
    record = buyer.model_copy(update={"buyer_profile": {
        "fullName": "Amina Otieno",
        "buyerRegistrationType": "international",
        "preferences": {"crops": ["avocado"], "packaging": "crates"},
        "company": {"companyName": "Shamba Exports", "vatNumber": "P051"},
    }})

    view = serialize_buyer_me(record, now=FIXED_NOW)

    assert view["displayName"] == "Amina Otieno"
    assert view["companyName"] == "Shamba Exports"
    assert view["buyerType"] == "INTERNATIONAL"
    assert view["preferences"]["crops"] == ["avocado"]
    assert view["preferences"]["packaging"] == "crates"
    assert view["company"]["vatNumber"] == "P051"
    assert view["buyerProfile"]["fullName"] == "Amina Otieno"


def test_upgrade_request_is_serialized(approved_buyer) -> None:
    record = approved_buyer.model_copy(update={
        "premium_upgrade_request": PremiumUpgradeRequestRecord(
            requested_plan="ENTERPRISE",
            requested_by=BUYER_UID,
            requested_at="2026-03-02T08:00:00Z",
        ),
    })

    view = serialize_buyer_me(record, now=FIXED_NOW)

    assert view["premiumUpgradeRequest"] == {
        "requestedPlan": "ENTERPRISE",
        "status": "PENDING",
        "notes": None,
        "requestedBy": BUYER_UID,
        "requestedAt": "2026-03-02T08:00:00Z",
    }


def test_loose_stored_document_normalizes_on_load() -> None:
    record = BuyerRecord.model_validate({
        "uid": BUYER_UID,
        "type": "buyer",
        "approvalStatus": "approved",
        "verifiedBuyer": "yes",
        "buyerTier": "diamond",
        "premiumPlan": " enterprise ",
        "premiumStatus": None,
        "metrics": {"successfulPurchasesCount": "3", "totalSpendKes": -5, "disputesCount": None},
        "billing": {"currency": "USD", "monthlyPriceKes": "abc", "paymentStatus": "past_due"},
        "buyerProfile": ["junk"],
        "premiumUpgradeRequest": "junk",
    })

    assert record.approval_status == "APPROVED"
    assert record.verified_buyer is False
    assert record.buyer_tier == "BRONZE"
    assert record.premium_plan == "ENTERPRISE"
    assert record.premium_status == "TRIAL"
    assert record.metrics.successful_purchases_count == 3
    assert record.metrics.total_spend_kes == 0
    assert record.metrics.disputes_count == 0
    assert record.billing.currency == "KES"
    assert record.billing.monthly_price_kes == 0
    assert record.billing.payment_status == "PAST_DUE"
    assert record.buyer_profile == {}
    assert record.premium_upgrade_request is None


def test_summary_view(approved_buyer) -> None:
    record = approved_buyer.model_copy(update={"buyer_profile": {"displayName": "Amina"}})

    summary = serialize_buyer_summary(record, now=FIXED_NOW + timedelta(days=61))

    assert summary["uid"] == BUYER_UID
    assert summary["displayName"] == "Amina"
    assert summary["companyName"] == "Buyer"
    assert summary["approvalStatus"] == "APPROVED"
    assert summary["premiumStatus"] == "EXPIRED"
    assert "billing" not in summary

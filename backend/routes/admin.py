from fastapi import APIRouter, Depends, Request
from typing import Optional

from database import get_db
from models.buyer import (
    AdminDecisionRequest,
    AdminSetPremiumRequest,
    AdminSetTierRequest,
    ApprovalStatus,
)
from utils.audit import write_audit_event
from utils.buyer_rules import apply_admin_premium, apply_admin_tier, approve_buyer, reject_buyer
from utils.buyer_store import list_buyers, load_buyer, save_buyer
from utils.errors import validation_error
from utils.guards import assert_valid_buyer_state, parse_uid
from utils.responses import ok, read_json
from utils.security import SUPERADMIN, Caller, require_capability
from utils.serializers import serialize_buyer_me, serialize_buyer_summary


router = APIRouter(prefix="/admin", tags=["Admin"])

require_superadmin = require_capability(SUPERADMIN)


# =====================================================
# VIEW BUYERS BY APPROVAL STATUS
# =====================================================

@router.get("/buyers")
async def admin_list_buyers(
    status: Optional[str] = None,
    admin: Caller = Depends(require_superadmin),
    db=Depends(get_db),
):
    normalized = (status or ApprovalStatus.PENDING.value).strip().upper()
    if normalized not in {s.value for s in ApprovalStatus}:
        raise validation_error(
            "status must be one of PENDING, APPROVED, REJECTED",
            details={"status": status},
        )

    buyers = await list_buyers(db, ApprovalStatus(normalized))
    items = [serialize_buyer_summary(b) for b in buyers]

    return ok({"items": items, "count": len(items)})


# =========================
# APPROVE BUYER
# =========================

@router.post("/buyers/{uid}/approve")
async def approve(
    uid: str,
    request: Request,
    admin: Caller = Depends(require_superadmin),
    db=Depends(get_db),
):
    target_uid = parse_uid(uid)
    data = await read_json(request, AdminDecisionRequest)

    buyer, _ = await load_buyer(db, target_uid)
    updated = approve_buyer(buyer, admin.uid)
    assert_valid_buyer_state(updated)

    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_APPROVED",
        actor=admin,
        target_uid=target_uid,
        metadata={"previousStatus": buyer.approval_status, "notes": data.notes},
    )

    return ok(serialize_buyer_me(updated))


# =========================
# REJECT BUYER
# =========================

@router.post("/buyers/{uid}/reject")
async def reject(
    uid: str,
    request: Request,
    admin: Caller = Depends(require_superadmin),
    db=Depends(get_db),
):
    target_uid = parse_uid(uid)
    data = await read_json(request, AdminDecisionRequest)

    buyer, _ = await load_buyer(db, target_uid)
    updated = reject_buyer(buyer, data.rejection_reason or data.notes)
    assert_valid_buyer_state(updated)

    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_REJECTED",
        actor=admin,
        target_uid=target_uid,
        metadata={
            "previousStatus": buyer.approval_status,
            "rejectionReason": updated.rejection_reason,
        },
    )

    return ok(serialize_buyer_me(updated))


# =========================
# TIER OVERRIDE
# =========================

@router.post("/buyers/{uid}/setTier")
async def set_tier(
    uid: str,
    request: Request,
    admin: Caller = Depends(require_superadmin),
    db=Depends(get_db),
):
    target_uid = parse_uid(uid)
    data = await read_json(request, AdminSetTierRequest)

    buyer, _ = await load_buyer(db, target_uid)
    updated = apply_admin_tier(buyer, data)

    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_TIER_UPDATED",
        actor=admin,
        target_uid=target_uid,
        metadata={"buyerTier": updated.buyer_tier, "previousTier": buyer.buyer_tier},
    )

    return ok(serialize_buyer_me(updated))


# =========================
# PREMIUM PLAN / STATUS
# =========================

@router.post("/buyers/{uid}/setPremium")
async def set_premium(
    uid: str,
    request: Request,
    admin: Caller = Depends(require_superadmin),
    db=Depends(get_db),
):
    target_uid = parse_uid(uid)
    data = await read_json(request, AdminSetPremiumRequest)

    buyer, _ = await load_buyer(db, target_uid)
    updated = apply_admin_premium(buyer, data)

    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_PREMIUM_UPDATED",
        actor=admin,
        target_uid=target_uid,
        metadata={
            "premiumPlan": updated.premium_plan,
            "premiumStatus": updated.premium_status,
            "monthlyPriceKes": updated.billing.monthly_price_kes,
        },
    )

    return ok(serialize_buyer_me(updated))

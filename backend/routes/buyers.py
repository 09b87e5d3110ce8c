from fastapi import APIRouter, Depends, Request

from database import get_db
from models.buyer import (
    BuyerProfileCreateRequest,
    CommitPurchaseRequest,
    PremiumUpgradeRequestBody,
)
from utils.audit import write_audit_event
from utils.buyer_rules import (
    apply_profile,
    apply_purchase,
    request_premium_upgrade,
    require_approved,
)
from utils.buyer_store import load_buyer, save_buyer
from utils.responses import ok, read_json
from utils.security import Caller, get_current_caller
from utils.serializers import serialize_buyer_me

router = APIRouter(prefix="/buyers", tags=["Buyers"])


# ======================================================
# MY BUYER ACCOUNT
# ======================================================

@router.get("/me")
async def buyer_me(
    caller: Caller = Depends(get_current_caller),
    db=Depends(get_db),
):
    buyer, changed = await load_buyer(db, caller.uid)

    # first lookup seeds (or adopts) the record
    if changed:
        await save_buyer(db, buyer)

    return ok(serialize_buyer_me(buyer))


# ======================================================
# CREATE / UPDATE PROFILE
# ======================================================

@router.post("/createProfile")
async def create_profile(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    db=Depends(get_db),
):
    data = await read_json(request, BuyerProfileCreateRequest)

    buyer, _ = await load_buyer(db, caller.uid)
    created = apply_profile(buyer, data.model_dump(by_alias=True, exclude_none=True))

    await save_buyer(db, created)

    await write_audit_event(
        db,
        action="BUYER_CREATED",
        actor=caller,
        target_uid=caller.uid,
        metadata={"approvalStatus": created.approval_status},
    )

    return ok(serialize_buyer_me(created))


# ======================================================
# PREMIUM UPGRADE REQUEST
# ======================================================

@router.post("/requestPremiumUpgrade")
async def request_upgrade(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    db=Depends(get_db),
):
    data = await read_json(request, PremiumUpgradeRequestBody)

    buyer, _ = await load_buyer(db, caller.uid)
    require_approved(buyer, "request premium upgrade")

    updated = request_premium_upgrade(buyer, data, requested_by=caller.uid)
    requested_plan = updated.premium_upgrade_request.requested_plan

    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_PREMIUM_UPGRADE_REQUESTED",
        actor=caller,
        target_uid=caller.uid,
        metadata={"premiumPlan": requested_plan},
    )

    return ok({"requestedPlan": requested_plan, "status": "PENDING"})


# ======================================================
# PURCHASE COMPLETED
# ======================================================

@router.post("/commitPurchase")
@router.post("/recordPurchaseCompleted")
async def commit_purchase(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    db=Depends(get_db),
):
    data = await read_json(request, CommitPurchaseRequest)

    buyer, _ = await load_buyer(db, caller.uid)
    require_approved(buyer, "record completed purchase")

    # load -> apply -> save is not atomic; concurrent commits can lose an increment
    updated = apply_purchase(buyer, data)
    await save_buyer(db, updated)

    await write_audit_event(
        db,
        action="BUYER_PURCHASE_COMPLETED",
        actor=caller,
        target_uid=caller.uid,
        metadata={
            "amountKes": data.amount_kes,
            "hasDispute": data.has_dispute,
            "orderId": data.order_id,
            "crop": data.crop,
            "coopId": data.coop_id,
            "buyerTier": updated.buyer_tier,
        },
    )

    return ok({
        "metrics": updated.metrics.to_document(),
        "buyerTier": updated.buyer_tier,
    })

# backend/config/constants.py

from config.env import BUYER_TRIAL_DAYS

SERVICE_NAME = "agrismart-buyer-api"
AUDIT_MODULE = "buyer-accounts"

# -----------------------------
# BILLING
# -----------------------------

BILLING_CURRENCY = "KES"

PLAN_MONTHLY_PRICE_KES = {
    "NONE": 0,
    "GOLD_ADDON": 6000,
    "ENTERPRISE": 15000,
}

DEFAULT_UPGRADE_PLAN = "GOLD_ADDON"

# -----------------------------
# TRIAL
# -----------------------------

TRIAL_DAYS = BUYER_TRIAL_DAYS

# =========================================
# BUYER TIER RULES
# =========================================

BUYER_TIER_RULES = {
    "GOLD": {
        "min_purchases": 20,
        "max_disputes": 2,
    },
    "SILVER": {
        "min_purchases": 5,
        "max_disputes": 1,
    },
}

# premium statuses that keep paid entitlements open
ENTITLED_PREMIUM_STATUSES = {"ACTIVE", "TRIAL"}

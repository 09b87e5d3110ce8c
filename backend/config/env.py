import os
from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGODB_URI") or os.getenv("MONGO_URI")

# =====================================================
# FIREBASE AUTH
# =====================================================
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")


def _parse_csv(value: str | None) -> list[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


# =====================================================
# SUPERADMIN ALLOW-LIST
# =====================================================
SUPERADMIN_EMAILS = [v.lower() for v in _parse_csv(os.getenv("SUPERADMIN_EMAILS"))]
SUPERADMIN_UIDS = _parse_csv(os.getenv("SUPERADMIN_UIDS"))

# =====================================================
# BUYERS
# =====================================================
BUYER_TRIAL_DAYS = int(os.getenv("BUYER_TRIAL_DAYS", 60))
ADMIN_BUYER_LIST_LIMIT = int(os.getenv("ADMIN_BUYER_LIST_LIMIT", 400))

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = _parse_csv(os.getenv("CORS_ALLOWED_ORIGINS"))


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    required = {
        "MONGODB_URI": MONGO_URI,
        "FIREBASE_PROJECT_ID": FIREBASE_PROJECT_ID,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")

    if not SUPERADMIN_EMAILS and not SUPERADMIN_UIDS:
        raise RuntimeError("Production env misconfigured. No superadmin allow-list configured")

from dotenv import load_dotenv
load_dotenv()

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from database import get_db

# ENV
from config.env import ENV, CORS_ALLOWED_ORIGINS, LOG_LEVEL, validate_production_env
from config.constants import SERVICE_NAME

# ROUTES
from routes.buyers import router as buyers_router
from routes.admin import router as admin_router

from utils.errors import install_error_handlers, unhandled_error_response
from utils.indexes import ensure_indexes
from utils.responses import ok

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

logger.info("ENV: %s", ENV)


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_production_env()
    await ensure_indexes(get_db())
    yield


app = FastAPI(
    title="AgriSmart Buyer API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if ENV == "production" else "/docs",
    redoc_url=None if ENV == "production" else "/redoc",
    openapi_url=None if ENV == "production" else "/openapi.json",
)

install_error_handlers(app)

# -----------------------------
# REQUEST LOG / SECURITY HEADERS
# -----------------------------

@app.middleware("http")
async def request_context(request: Request, call_next):
    path = request.scope["path"]
    if len(path) > 1 and path.endswith("/"):
        request.scope["path"] = path.rstrip("/") or "/"

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        response = unhandled_error_response(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    logger.info(
        "%s %s %s %.1fms uid=%s",
        request.method,
        request.scope["path"],
        response.status_code,
        (time.perf_counter() - started) * 1000,
        getattr(request.state, "caller_uid", None),
    )
    return response

# -----------------------------
# CORS
# -----------------------------

allowed_origins = list(CORS_ALLOWED_ORIGINS)
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(buyers_router)
app.include_router(admin_router)

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get("/health")
async def health():
    return ok({"service": SERVICE_NAME, "status": "ok"})


@app.get("/health/db")
async def health_db(db=Depends(get_db)):
    await db.command("ping")
    return ok({"service": SERVICE_NAME, "status": "mongodb connected"})

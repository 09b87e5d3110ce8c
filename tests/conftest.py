"""Pytest configuration and fixtures."""

import os

# must be set before the app modules read their config
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/agrismart_test")
os.environ.setdefault("FIREBASE_PROJECT_ID", "agrismart-test")
os.environ.setdefault("BUYER_TRIAL_DAYS", "60")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from models.buyer import BuyerRecord
from utils.accounts import default_buyer_record
from utils.security import AllowListCapabilityChecker, get_capability_checker, get_current_caller

from helpers import ADMIN_UID, BUYER_UID, FIXED_NOW, fake_current_caller


@pytest.fixture
def db():
    """A fresh in-memory Mongo database per test."""
    return AsyncMongoMockClient()["agrismart_test"]


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with db, caller and capability checker swapped for fakes."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_caller] = fake_current_caller
    app.dependency_overrides[get_capability_checker] = lambda: AllowListCapabilityChecker(
        emails=[], uids=[ADMIN_UID]
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def raw_client(db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with only the db swapped; real bearer-token verification."""
    app.dependency_overrides[get_db] = lambda: db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def buyer() -> BuyerRecord:
    """A freshly seeded buyer at FIXED_NOW."""
    return default_buyer_record(BUYER_UID, now=FIXED_NOW)


@pytest.fixture
def approved_buyer(buyer: BuyerRecord) -> BuyerRecord:
    return buyer.model_copy(update={
        "approval_status": "APPROVED",
        "verified_buyer": True,
        "approved_by": ADMIN_UID,
        "approved_at": "2026-03-01T12:00:00Z",
    })

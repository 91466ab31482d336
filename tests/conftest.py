"""
Test Configuration
==================

Pytest fixtures for RewardGuard tests.
"""

import json
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["STORE_BACKEND"] = "memory"

from services.fraud_gate.engine import FraudApiClient, FraudGate, SubmissionHistoryStore
from services.fraud_gate.engine.api_client import (
    AccountVerificationResponse,
    DuplicateCheckResponse,
)
from shared.config import FraudPolicySettings
from shared.database import InMemoryKeyValueStore


# Fixed "now" used by every clock-driven test: 2026-01-15T12:00:00Z
NOW_MS = 1_768_478_400_000
MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

SUBMISSIONS_KEY = "fraud_detection:test-user:submissions"
BLOCK_KEY = "fraud_detection:test-user:blocked_until"


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = NOW_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at NOW_MS."""
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def policy() -> FraudPolicySettings:
    """Reference fraud policy."""
    return FraudPolicySettings()


@pytest.fixture
def history(store: InMemoryKeyValueStore, clock: FakeClock) -> SubmissionHistoryStore:
    """History store for the test user."""
    return SubmissionHistoryStore(store, namespace="test-user", clock=clock)


@pytest.fixture
def api() -> AsyncMock:
    """Remote fraud API that reports every post as new and every account as healthy."""
    mock = AsyncMock(spec=FraudApiClient)
    mock.check_duplicate.return_value = DuplicateCheckResponse(is_duplicate=False)
    mock.verify_account.return_value = AccountVerificationResponse(
        is_verified=True,
        account_age=365,
        follower_count=1500,
        post_count=120,
    )
    return mock


@pytest.fixture
def gate(
    history: SubmissionHistoryStore,
    api: AsyncMock,
    policy: FraudPolicySettings,
    clock: FakeClock,
) -> FraudGate:
    """Fraud gate wired to in-memory state and a mocked API."""
    return FraudGate(history, api, policy=policy, clock=clock)


@pytest.fixture
def seed_history(
    store: InMemoryKeyValueStore,
) -> Callable[..., Awaitable[None]]:
    """Write raw submission entries into the test user's history."""

    async def _seed(*timestamps: int, entries: list[dict[str, Any]] | None = None) -> None:
        payload = list(entries or [])
        for i, ts in enumerate(timestamps, start=1):
            payload.append({
                "url": f"https://instagram.com/p/SEED{i}",
                "postId": f"SEED{i}",
                "timestamp": ts,
                "deviceId": "device_123",
            })
        await store.set(SUBMISSIONS_KEY, json.dumps(payload))

    return _seed


@pytest_asyncio.fixture
async def fraud_gate_client(
    store: InMemoryKeyValueStore,
    api: AsyncMock,
    clock: FakeClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Fraud Gate Service."""
    from services.fraud_gate.dependencies import FraudGateFactory, set_gate_factory
    from services.fraud_gate.main import app
    from shared.config import get_settings

    set_gate_factory(FraudGateFactory(store, api, get_settings(), clock=clock))

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    set_gate_factory(None)

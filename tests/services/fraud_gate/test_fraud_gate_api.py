"""
Fraud Gate Service Tests
========================

Tests for the Fraud Gate HTTP endpoints.

Version: 0.1.0
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from services.fraud_gate.engine import HistoryStoreError, SubmissionHistoryStore

from tests.conftest import HOUR_MS, MINUTE_MS, NOW_MS

BASE = "/api/v1/fraud"
URL = "https://instagram.com/p/ABC123"


class TestHealth:
    """Tests for health and root endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, fraud_gate_client: AsyncClient) -> None:
        """Test health check reports the store."""
        response = await fraud_gate_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "fraud-gate"
        assert data["components"]["store"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_root(self, fraud_gate_client: AsyncClient) -> None:
        """Test root endpoint."""
        response = await fraud_gate_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "RewardGuard Fraud Gate"


class TestFraudCheckEndpoint:
    """Tests for the full fraud check endpoint."""

    @pytest.mark.asyncio
    async def test_clean_check(self, fraud_gate_client: AsyncClient) -> None:
        """Test a clean submission is allowed with camelCase fields."""
        response = await fraud_gate_client.post(
            f"{BASE}/test-user/check",
            json={"url": URL},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["allowed"] is True
        assert data["riskScore"] == 0
        assert data["riskLevel"] == "low"
        assert data["blockedReasons"] == []
        assert data["metadata"] == {
            "checksPassed": 5,
            "totalChecks": 5,
            "timestamp": NOW_MS,
        }

    @pytest.mark.asyncio
    async def test_skip_account_verification(
        self,
        fraud_gate_client: AsyncClient,
        api: AsyncMock,
    ) -> None:
        """Test the camelCase skip flag is honored."""
        response = await fraud_gate_client.post(
            f"{BASE}/test-user/check",
            json={"url": URL, "skipAccountVerification": True},
        )

        assert response.status_code == 200
        api.verify_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_rate_limited_check(self, fraud_gate_client: AsyncClient, seed_history) -> None:
        """Test a cooldown rejection is reported as critical."""
        await seed_history(NOW_MS - 10 * MINUTE_MS)

        response = await fraud_gate_client.post(
            f"{BASE}/test-user/check",
            json={"url": URL},
        )

        data = response.json()
        assert data["allowed"] is False
        assert data["riskLevel"] == "critical"
        assert "wait" in data["blockedReasons"][0]

    @pytest.mark.asyncio
    async def test_empty_url_rejected(self, fraud_gate_client: AsyncClient) -> None:
        """Test an empty URL fails request validation."""
        response = await fraud_gate_client.post(
            f"{BASE}/test-user/check",
            json={"url": ""},
        )

        assert response.status_code == 422


class TestIndividualChecks:
    """Tests for the single-check endpoints."""

    @pytest.mark.asyncio
    async def test_duplicates(self, fraud_gate_client: AsyncClient, seed_history) -> None:
        """Test a locally known post is reported as duplicate."""
        await seed_history(entries=[{
            "url": URL,
            "postId": "ABC123",
            "timestamp": NOW_MS - 2 * HOUR_MS,
            "deviceId": "device_123",
        }])

        response = await fraud_gate_client.post(
            f"{BASE}/test-user/duplicates",
            json={"url": URL},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isDuplicate"] is True
        assert data["submittedAt"] is not None

    @pytest.mark.asyncio
    async def test_rate_limit(self, fraud_gate_client: AsyncClient) -> None:
        """Test rate limit status for a new user."""
        response = await fraud_gate_client.get(f"{BASE}/new-user/rate-limit")

        assert response.status_code == 200
        data = response.json()
        assert data["allowed"] is True
        assert data["remainingSubmissions"] == 3

    @pytest.mark.asyncio
    async def test_velocity(self, fraud_gate_client: AsyncClient, seed_history) -> None:
        """Test a burst is reported as suspicious."""
        await seed_history(NOW_MS - 1000, NOW_MS - 2000, NOW_MS - 3000)

        response = await fraud_gate_client.get(f"{BASE}/test-user/velocity")

        assert response.status_code == 200
        assert response.json()["suspicious"] is True

    @pytest.mark.asyncio
    async def test_verify_account(self, fraud_gate_client: AsyncClient) -> None:
        """Test account verification returns the account signals."""
        response = await fraud_gate_client.post(
            f"{BASE}/verify-account",
            json={"url": URL},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isVerified"] is True
        assert data["followerCount"] == 1500
        assert data["riskFactors"] == []


class TestSubmissions:
    """Tests for history endpoints."""

    @pytest.mark.asyncio
    async def test_record_then_stats(self, fraud_gate_client: AsyncClient) -> None:
        """Test a recorded submission shows up in stats."""
        response = await fraud_gate_client.post(
            f"{BASE}/test-user/submissions",
            json={"url": URL},
        )

        assert response.status_code == 201
        record = response.json()
        assert record["postId"] == "ABC123"
        assert record["timestamp"] == NOW_MS
        assert record["deviceId"].startswith("device_")

        stats = (await fraud_gate_client.get(f"{BASE}/test-user/stats")).json()
        assert stats["totalSubmissions"] == 1
        assert stats["submissionsToday"] == 1
        assert stats["remainingDailySubmissions"] == 2
        assert stats["isBlocked"] is False
        assert stats["lastSubmission"] is not None

    @pytest.mark.asyncio
    async def test_record_failure_is_503(
        self,
        fraud_gate_client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a history write failure is surfaced as 503."""
        monkeypatch.setattr(
            SubmissionHistoryStore,
            "append",
            AsyncMock(side_effect=HistoryStoreError("store down")),
        )

        response = await fraud_gate_client.post(
            f"{BASE}/test-user/submissions",
            json={"url": URL},
        )

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "HTTP_503"
        assert "unavailable" in body["error"]

    @pytest.mark.asyncio
    async def test_clear(self, fraud_gate_client: AsyncClient, seed_history) -> None:
        """Test clearing history empties the stats."""
        await seed_history(NOW_MS - HOUR_MS * 2)

        response = await fraud_gate_client.delete(f"{BASE}/test-user/submissions")

        assert response.status_code == 204
        stats = (await fraud_gate_client.get(f"{BASE}/test-user/stats")).json()
        assert stats["totalSubmissions"] == 0
        assert stats["lastSubmission"] is None

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, fraud_gate_client: AsyncClient) -> None:
        """Test one user's submissions do not count against another."""
        await fraud_gate_client.post(f"{BASE}/alice/submissions", json={"url": URL})

        stats = (await fraud_gate_client.get(f"{BASE}/bob/stats")).json()

        assert stats["totalSubmissions"] == 0

"""
Fraud engine data model.

Persisted records (submission history, block state) and the transient
results returned by each check.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


Clock = Callable[[], int]

MS_PER_MINUTE = 60 * 1000
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE

# Last millisecond representable as a datetime (9999-12-31T23:59:59.999Z)
MAX_TIMESTAMP_MS = 253_402_300_799_999


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp / 1000, tz=UTC)


def parse_timestamp(value: Any, what: str) -> int:
    """
    Validate a stored epoch-millisecond value.

    Raises:
        ValueError: if value is not a finite number within datetime range.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Invalid {what}: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Non-finite {what}: {value!r}")
    if not 0 <= value <= MAX_TIMESTAMP_MS:
        raise ValueError(f"{what.capitalize()} out of range: {value!r}")
    return int(value)


class RiskLevel(str, Enum):
    """Severity bucket over the risk score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class SubmissionRecord:
    """One accepted submission kept in local history."""

    url: str
    post_id: str
    timestamp: int
    device_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "postId": self.post_id,
            "timestamp": self.timestamp,
            "deviceId": self.device_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubmissionRecord:
        """
        Build a record from its stored form.

        Raises:
            ValueError: if a required field is missing or mistyped.
        """
        timestamp = parse_timestamp(data.get("timestamp"), "submission timestamp")
        url = data.get("url")
        if not isinstance(url, str):
            raise ValueError(f"Invalid submission url: {url!r}")
        return cls(
            url=url,
            post_id=str(data.get("postId") or ""),
            timestamp=timestamp,
            device_id=str(data.get("deviceId") or ""),
        )


@dataclass(frozen=True)
class BlockRecord:
    """Time-boxed penalty that short-circuits every check while active."""

    until: int
    reason: str

    def is_active(self, now: int) -> bool:
        return self.until > now

    def to_dict(self) -> dict[str, Any]:
        return {"until": self.until, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlockRecord:
        until = parse_timestamp(data.get("until"), "block expiry")
        return cls(until=until, reason=str(data.get("reason") or ""))


@dataclass
class DuplicateCheckResult:
    """Outcome of the duplicate URL check."""

    is_duplicate: bool
    reason: str | None = None
    existing_submission_id: str | None = None
    submitted_at: datetime | None = None


@dataclass
class RateLimitStatus:
    """Outcome of the rate limit check."""

    allowed: bool
    remaining_submissions: int
    reset_time: int
    message: str | None = None


@dataclass
class VelocityResult:
    """Outcome of the velocity analysis."""

    suspicious: bool
    reason: str | None = None


@dataclass
class AccountVerificationResult:
    """Account signals and the risk factors derived from them."""

    is_verified: bool
    account_age: int = 0
    follower_count: int = 0
    post_count: int = 0
    verification_badge: bool = False
    following_count: int | None = None
    risk_factors: list[str] = field(default_factory=list)
    # Score contribution of risk_factors under the active policy
    risk_penalty: int = 0


@dataclass
class CheckMetadata:
    """Bookkeeping attached to a fraud check."""

    checks_passed: int
    total_checks: int
    timestamp: int


@dataclass
class FraudCheckResult:
    """Aggregate fraud decision for one submission."""

    allowed: bool
    risk_score: int
    risk_level: RiskLevel
    blocked_reasons: list[str]
    warnings: list[str]
    metadata: CheckMetadata


@dataclass
class FraudStats:
    """Read-only view over history and block state."""

    total_submissions: int
    submissions_today: int
    submissions_this_week: int
    is_blocked: bool
    remaining_daily_submissions: int
    last_submission: datetime | None = None

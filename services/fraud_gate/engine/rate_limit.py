"""
Submission rate limiting.

Enforces a cooldown between consecutive submissions and rolling daily,
weekly and monthly caps, all computed from the local history timestamps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from services.fraud_gate.engine.history import SubmissionHistoryStore
from services.fraud_gate.engine.models import (
    MS_PER_DAY,
    MS_PER_MINUTE,
    Clock,
    RateLimitStatus,
    SubmissionRecord,
    now_ms,
)
from shared.config import FraudPolicySettings


@dataclass(frozen=True)
class _Window:
    days: int
    cap: int
    message: str


class RateLimiter:
    """Cooldown plus rolling submission caps."""

    def __init__(
        self,
        history: SubmissionHistoryStore,
        policy: FraudPolicySettings,
        clock: Clock = now_ms,
    ) -> None:
        self.history = history
        self.policy = policy
        self._clock = clock

    def _windows(self) -> list[_Window]:
        p = self.policy
        return [
            _Window(
                days=1,
                cap=p.max_submissions_per_day,
                message=(
                    f"Daily limit reached ({p.max_submissions_per_day} posts/day). "
                    "Try again tomorrow."
                ),
            ),
            _Window(
                days=7,
                cap=p.max_submissions_per_week,
                message=(
                    f"Weekly limit reached ({p.max_submissions_per_week} posts/week). "
                    "Please try again later."
                ),
            ),
            _Window(
                days=30,
                cap=p.max_submissions_per_month,
                message=(
                    f"Monthly limit reached ({p.max_submissions_per_month} posts/month). "
                    "Please try again later."
                ),
            ),
        ]

    async def check(self) -> RateLimitStatus:
        return self.evaluate(await self.history.load())

    def evaluate(self, history: list[SubmissionRecord]) -> RateLimitStatus:
        """Apply the rate limit policy to an already-loaded history."""
        now = self._clock()
        daily_cap = self.policy.max_submissions_per_day

        if not history:
            return RateLimitStatus(
                allowed=True,
                remaining_submissions=daily_cap,
                reset_time=now + MS_PER_DAY,
            )

        last = max(r.timestamp for r in history)
        since_last = now - last
        cooldown = self.policy.cooldown_ms
        if since_last < cooldown:
            wait_minutes = math.ceil((cooldown - since_last) / MS_PER_MINUTE)
            return RateLimitStatus(
                allowed=False,
                remaining_submissions=0,
                reset_time=last + cooldown,
                message=f"Please wait {wait_minutes} minutes before submitting another post",
            )

        submissions_today = 0
        for window in self._windows():
            span = window.days * MS_PER_DAY
            in_window = [r.timestamp for r in history if r.timestamp >= now - span]
            if window.days == 1:
                submissions_today = len(in_window)
            if len(in_window) >= window.cap:
                return RateLimitStatus(
                    allowed=False,
                    remaining_submissions=0,
                    reset_time=min(in_window, default=now) + span,
                    message=window.message,
                )

        return RateLimitStatus(
            allowed=True,
            remaining_submissions=max(0, daily_cap - submissions_today),
            reset_time=now + MS_PER_DAY,
        )

"""
Submission velocity analysis.

Two independent detectors over the submission timestamps:

- Burst: too many submissions inside a short window ending now.
- Automation: the most recent gaps between submissions are near-identical.
  Human timing is irregular, so uniform spacing is itself a signal.
"""

from __future__ import annotations

from services.fraud_gate.engine.history import SubmissionHistoryStore
from services.fraud_gate.engine.models import Clock, SubmissionRecord, VelocityResult, now_ms
from shared.config import FraudPolicySettings


REASON_BURST = "Unusually high submission frequency detected"
REASON_AUTOMATION = "Automated submission pattern detected"


class VelocityAnalyzer:
    """Flags bursty or machine-regular submission timing."""

    def __init__(
        self,
        history: SubmissionHistoryStore,
        policy: FraudPolicySettings,
        clock: Clock = now_ms,
    ) -> None:
        self.history = history
        self.policy = policy
        self._clock = clock

    async def check(self) -> VelocityResult:
        return self.evaluate(await self.history.load())

    def evaluate(self, history: list[SubmissionRecord]) -> VelocityResult:
        """Run both detectors over an already-loaded history."""
        if len(history) < 2:
            return VelocityResult(suspicious=False)

        timestamps = sorted(r.timestamp for r in history)

        if self._is_burst(timestamps):
            return VelocityResult(suspicious=True, reason=REASON_BURST)

        if self._is_automated(timestamps):
            return VelocityResult(suspicious=True, reason=REASON_AUTOMATION)

        return VelocityResult(suspicious=False)

    def _is_burst(self, timestamps: list[int]) -> bool:
        window_start = self._clock() - int(self.policy.burst_window_seconds * 1000)
        recent = [t for t in timestamps if t >= window_start]
        return len(recent) >= self.policy.burst_threshold

    def _is_automated(self, timestamps: list[int]) -> bool:
        sample_size = self.policy.automation_sample_size
        if sample_size < 3 or len(timestamps) < sample_size:
            return False

        sample = timestamps[-sample_size:]
        deltas = [b - a for a, b in zip(sample, sample[1:])]

        max_interval = int(self.policy.automation_max_interval_seconds * 1000)
        if any(d <= 0 or d > max_interval for d in deltas):
            return False

        return max(deltas) - min(deltas) <= self.policy.automation_tolerance_ms

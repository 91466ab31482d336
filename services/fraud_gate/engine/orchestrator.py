"""
Fraud Orchestrator.

Composes the individual checks into a single allow/block decision and
owns the blocking policy. This is the only entry point the rest of the
application should call.

Check Pipeline:
1. Active block (short-circuit)
2. Duplicate URL (always blocking)
3. Rate limit (blocking)
4. Submission velocity (warning)
5. Account verification (warnings, optional)
6. Score aggregation and risk level
7. Block persistence on a duplicate or a score at the critical threshold.
   Rate-limit rejections force the critical level but never persist a block.
"""

from __future__ import annotations

from services.fraud_gate.engine.account import AccountVerifier
from services.fraud_gate.engine.api_client import FraudApiClient
from services.fraud_gate.engine.duplicates import DuplicateDetector
from services.fraud_gate.engine.history import HistoryStoreError, SubmissionHistoryStore
from services.fraud_gate.engine.models import (
    MS_PER_DAY,
    AccountVerificationResult,
    BlockRecord,
    CheckMetadata,
    Clock,
    DuplicateCheckResult,
    FraudCheckResult,
    FraudStats,
    RateLimitStatus,
    RiskLevel,
    SubmissionRecord,
    VelocityResult,
    ms_to_datetime,
    now_ms,
)
from services.fraud_gate.engine.normalizer import extract_post_id, has_post_id
from services.fraud_gate.engine.rate_limit import RateLimiter
from services.fraud_gate.engine.velocity import VelocityAnalyzer
from shared.config import FraudPolicySettings
from shared.logging import get_logger


logger = get_logger(__name__)

TOTAL_CHECKS = 5
BLOCKED_SCORE = 100

REASON_DUPLICATE_FALLBACK = "Duplicate submission detected"
REASON_RATE_LIMIT_FALLBACK = "Rate limit exceeded"
REASON_VELOCITY_FALLBACK = "Unusual submission pattern"
REASON_BLOCK_FALLBACK = "Suspicious activity"


def get_risk_level(score: int, policy: FraudPolicySettings) -> RiskLevel:
    """Map a risk score onto its severity bucket."""
    if score >= policy.risk_threshold_critical:
        return RiskLevel.CRITICAL
    if score >= policy.risk_threshold_high:
        return RiskLevel.HIGH
    if score >= policy.risk_threshold_medium:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class FraudGate:
    """
    Client-side anti-fraud gate for reward submissions.

    One instance serves one history namespace (user or device). The gate
    never records submissions itself; call record_submission() once the
    submission has actually been accepted downstream.

    Example:
        >>> gate = FraudGate(history, api)
        >>> result = await gate.perform_fraud_check(url)
        >>> if result.allowed:
        ...     await submit(url)
        ...     await gate.record_submission(url)
    """

    def __init__(
        self,
        history: SubmissionHistoryStore,
        api: FraudApiClient,
        policy: FraudPolicySettings | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.history = history
        self.api = api
        self.policy = policy or FraudPolicySettings()
        self._clock = clock

        self.duplicates = DuplicateDetector(
            history,
            api,
            failure_posture=self.policy.duplicate_failure_posture,
        )
        self.rate_limiter = RateLimiter(history, self.policy, clock=clock)
        self.velocity = VelocityAnalyzer(history, self.policy, clock=clock)
        self.account_verifier = AccountVerifier(
            api,
            self.policy,
            failure_posture=self.policy.account_failure_posture,
        )

    # =========================================================================
    # Individual checks
    # =========================================================================

    async def check_duplicate_url(self, url: str) -> DuplicateCheckResult:
        return await self.duplicates.check(url)

    async def check_rate_limit(self) -> RateLimitStatus:
        return await self.rate_limiter.check()

    async def check_submission_velocity(self) -> VelocityResult:
        return await self.velocity.check()

    async def verify_instagram_account(self, url: str) -> AccountVerificationResult:
        return await self.account_verifier.verify(url)

    # =========================================================================
    # Block state
    # =========================================================================

    async def is_blocked(self) -> BlockRecord | None:
        """Return the active block, if any. Expired blocks are ignored."""
        block = await self.history.get_block()
        if block is not None and block.is_active(self._clock()):
            return block
        return None

    async def block_user(self, duration_ms: int, reason: str) -> BlockRecord:
        """
        Persist a block for duration_ms from now.

        Raises:
            HistoryStoreError: if the block could not be written.
        """
        block = BlockRecord(until=self._clock() + duration_ms, reason=reason)
        await self.history.set_block(block)
        logger.warning(
            "submissions_blocked",
            namespace=self.history.namespace,
            until=block.until,
            reason=reason,
        )
        return block

    # =========================================================================
    # Orchestration
    # =========================================================================

    async def perform_fraud_check(
        self,
        url: str,
        skip_account_verification: bool = False,
    ) -> FraudCheckResult:
        """
        Run every check against a candidate submission.

        Args:
            url: Submission URL.
            skip_account_verification: Skip the (slow) remote account lookup.

        Returns:
            FraudCheckResult with the decision, score and reasons.
        """
        blocked_reasons: list[str] = []
        warnings: list[str] = []
        checks_passed = 0

        # 1. Active block
        block = await self.is_blocked()
        if block is not None:
            blocked_reasons.append(
                f"Submissions temporarily blocked: {block.reason or REASON_BLOCK_FALLBACK}"
            )
            logger.info(
                "fraud_check_short_circuited",
                namespace=self.history.namespace,
                until=block.until,
            )
            return FraudCheckResult(
                allowed=False,
                risk_score=BLOCKED_SCORE,
                risk_level=RiskLevel.CRITICAL,
                blocked_reasons=blocked_reasons,
                warnings=warnings,
                metadata=self._metadata(0),
            )
        checks_passed += 1

        history = await self.history.load()
        score = 0

        # 2. Duplicate URL
        duplicate = await self.duplicates.check(url, history=history)
        if duplicate.is_duplicate:
            blocked_reasons.append(duplicate.reason or REASON_DUPLICATE_FALLBACK)
            score += self.policy.duplicate_penalty
        else:
            checks_passed += 1

        # 3. Rate limit
        rate_limit = self.rate_limiter.evaluate(history)
        if not rate_limit.allowed:
            blocked_reasons.append(rate_limit.message or REASON_RATE_LIMIT_FALLBACK)
            score += self.policy.rate_limit_penalty
        else:
            checks_passed += 1
            if rate_limit.remaining_submissions <= self.policy.low_remaining_warning:
                warnings.append(
                    f"Only {rate_limit.remaining_submissions} submission(s) remaining today"
                )

        # 4. Velocity
        velocity = self.velocity.evaluate(history)
        if velocity.suspicious:
            warnings.append(velocity.reason or REASON_VELOCITY_FALLBACK)
            score += self.policy.velocity_penalty
        else:
            checks_passed += 1

        # 5. Account verification
        if not skip_account_verification:
            account = await self.account_verifier.verify(url)
            warnings.extend(account.risk_factors)
            score += account.risk_penalty
            if not account.risk_factors:
                checks_passed += 1
        else:
            checks_passed += 1

        # 6. Aggregate
        risk_level = get_risk_level(score, self.policy)
        if blocked_reasons:
            risk_level = RiskLevel.CRITICAL
        allowed = not blocked_reasons and risk_level != RiskLevel.CRITICAL

        # 7. Block on duplicate or critical score, not on rate limit alone
        if duplicate.is_duplicate or score >= self.policy.risk_threshold_critical:
            reason = (
                REASON_DUPLICATE_FALLBACK
                if duplicate.is_duplicate
                else f"High fraud risk score ({score})"
            )
            try:
                await self.block_user(self.policy.block_duration_ms, reason)
            except HistoryStoreError as e:
                logger.error(
                    "block_persist_failed",
                    namespace=self.history.namespace,
                    error=str(e),
                )

        logger.info(
            "fraud_check_completed",
            namespace=self.history.namespace,
            allowed=allowed,
            risk_score=score,
            risk_level=risk_level.value,
            blocked_reasons=len(blocked_reasons),
            warnings=len(warnings),
        )

        return FraudCheckResult(
            allowed=allowed,
            risk_score=score,
            risk_level=risk_level,
            blocked_reasons=blocked_reasons,
            warnings=warnings,
            metadata=self._metadata(checks_passed),
        )

    def _metadata(self, checks_passed: int) -> CheckMetadata:
        return CheckMetadata(
            checks_passed=checks_passed,
            total_checks=TOTAL_CHECKS,
            timestamp=self._clock(),
        )

    # =========================================================================
    # History management
    # =========================================================================

    async def record_submission(self, url: str) -> SubmissionRecord | None:
        """
        Append an accepted submission to history.

        Returns:
            The stored record, or None if it could not be persisted.
        """
        post_id = extract_post_id(url)
        if not has_post_id(post_id):
            logger.warning("submission_recorded_without_post_id")

        record = SubmissionRecord(
            url=url,
            post_id=post_id,
            timestamp=self._clock(),
            device_id=await self.history.device_id(),
        )

        try:
            await self.history.append(record)
        except HistoryStoreError as e:
            logger.error(
                "submission_record_failed",
                namespace=self.history.namespace,
                error=str(e),
            )
            return None

        logger.info(
            "submission_recorded",
            namespace=self.history.namespace,
            post_id=post_id,
            device_id=record.device_id,
        )
        return record

    async def clear_submission_history(self) -> bool:
        """Wipe the submission history. Returns False if the store failed."""
        try:
            await self.history.clear()
        except HistoryStoreError as e:
            logger.error(
                "submission_history_clear_failed",
                namespace=self.history.namespace,
                error=str(e),
            )
            return False

        logger.info("submission_history_cleared", namespace=self.history.namespace)
        return True

    async def get_fraud_stats(self) -> FraudStats:
        history = await self.history.load()
        block = await self.is_blocked()

        now = self._clock()
        one_day_ago = now - MS_PER_DAY
        one_week_ago = now - 7 * MS_PER_DAY

        today = sum(1 for r in history if r.timestamp >= one_day_ago)
        last = max((r.timestamp for r in history), default=None)

        return FraudStats(
            total_submissions=len(history),
            submissions_today=today,
            submissions_this_week=sum(1 for r in history if r.timestamp >= one_week_ago),
            is_blocked=block is not None,
            remaining_daily_submissions=max(0, self.policy.max_submissions_per_day - today),
            last_submission=ms_to_datetime(last) if last is not None else None,
        )

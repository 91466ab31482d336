"""Account risk verification."""

from __future__ import annotations

from services.fraud_gate.engine.api_client import (
    AccountVerificationResponse,
    FraudApiClient,
    FraudApiError,
)
from services.fraud_gate.engine.models import AccountVerificationResult
from shared.config import FailurePosture, FraudPolicySettings
from shared.logging import get_logger


logger = get_logger(__name__)

FACTOR_VERIFICATION_FAILED = "Verification failed"


class AccountVerifier:
    """
    Fetches account signals from the backend and derives risk factors.

    Fails closed by default: an account that cannot be verified is
    reported with a "Verification failed" risk factor.
    """

    def __init__(
        self,
        api: FraudApiClient,
        policy: FraudPolicySettings,
        failure_posture: FailurePosture = FailurePosture.CLOSED,
    ) -> None:
        self.api = api
        self.policy = policy
        self.failure_posture = failure_posture

    async def verify(self, url: str) -> AccountVerificationResult:
        try:
            response = await self.api.verify_account(url)
        except FraudApiError as e:
            logger.warning(
                "account_verification_failed",
                posture=self.failure_posture.value,
                error=str(e),
            )
            if self.failure_posture == FailurePosture.CLOSED:
                return AccountVerificationResult(
                    is_verified=False,
                    risk_factors=[FACTOR_VERIFICATION_FAILED],
                    risk_penalty=self.policy.verification_failed_penalty,
                )
            return AccountVerificationResult(is_verified=False)

        factors, penalty = self._assess(response)
        return AccountVerificationResult(
            is_verified=response.is_verified,
            account_age=response.account_age,
            follower_count=response.follower_count,
            post_count=response.post_count,
            verification_badge=response.verification_badge,
            following_count=response.following_count,
            risk_factors=factors,
            risk_penalty=penalty,
        )

    def _assess(self, response: AccountVerificationResponse) -> tuple[list[str], int]:
        p = self.policy
        factors: list[str] = []
        penalty = 0

        if response.account_age < p.min_account_age_days:
            factors.append(f"Instagram account too new ({response.account_age} days old)")
            penalty += p.account_too_new_penalty

        if response.follower_count < p.min_follower_count:
            factors.append(f"Low follower count ({response.follower_count} followers)")
            penalty += p.low_follower_penalty

        if response.post_count < p.min_post_count:
            factors.append(f"Low account activity ({response.post_count} posts)")
            penalty += p.low_activity_penalty

        return factors, penalty

"""Duplicate submission detection."""

from __future__ import annotations

from services.fraud_gate.engine.api_client import FraudApiClient, FraudApiError
from services.fraud_gate.engine.history import SubmissionHistoryStore
from services.fraud_gate.engine.models import (
    DuplicateCheckResult,
    SubmissionRecord,
    ms_to_datetime,
)
from services.fraud_gate.engine.normalizer import extract_post_id, has_post_id
from shared.config import FailurePosture
from shared.logging import get_logger


logger = get_logger(__name__)

REASON_NO_POST_ID = "Could not extract post ID"
REASON_LOCAL_DUPLICATE = "You have already submitted this post"
REASON_REMOTE_DUPLICATE = "This post has already been submitted"
REASON_UNVERIFIED = "Could not verify duplicate status"


class DuplicateDetector:
    """
    Checks a submission URL against local history, then the backend.

    Local hits short-circuit without a network call. When the backend is
    unreachable the configured failure posture decides the outcome
    (fail-open by default: the backend re-checks on acceptance anyway).
    """

    def __init__(
        self,
        history: SubmissionHistoryStore,
        api: FraudApiClient,
        failure_posture: FailurePosture = FailurePosture.OPEN,
    ) -> None:
        self.history = history
        self.api = api
        self.failure_posture = failure_posture

    async def check(
        self,
        url: str,
        history: list[SubmissionRecord] | None = None,
    ) -> DuplicateCheckResult:
        post_id = extract_post_id(url)
        if not has_post_id(post_id):
            return DuplicateCheckResult(is_duplicate=False, reason=REASON_NO_POST_ID)

        if history is None:
            history = await self.history.load()

        for record in history:
            if record.post_id == post_id or record.url == url:
                return DuplicateCheckResult(
                    is_duplicate=True,
                    reason=REASON_LOCAL_DUPLICATE,
                    submitted_at=ms_to_datetime(record.timestamp),
                )

        try:
            response = await self.api.check_duplicate(url, post_id)
        except FraudApiError as e:
            logger.warning(
                "duplicate_check_failed",
                post_id=post_id,
                posture=self.failure_posture.value,
                error=str(e),
            )
            return DuplicateCheckResult(
                is_duplicate=self.failure_posture == FailurePosture.CLOSED,
                reason=REASON_UNVERIFIED,
            )

        if response.is_duplicate:
            return DuplicateCheckResult(
                is_duplicate=True,
                reason=REASON_REMOTE_DUPLICATE,
                existing_submission_id=response.existing_submission_id,
                submitted_at=response.submitted_at,
            )

        return DuplicateCheckResult(is_duplicate=False)

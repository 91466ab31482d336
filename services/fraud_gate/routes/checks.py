"""
Fraud Check API Endpoints.

Per-user fraud checks, submission history and statistics.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.fraud_gate.dependencies import FraudGateFactory, get_gate_factory
from services.fraud_gate.engine import (
    AccountVerificationResult,
    DuplicateCheckResult,
    FraudCheckResult,
    FraudGate,
    FraudStats,
    RateLimitStatus,
    SubmissionRecord,
    VelocityResult,
)
from shared.logging import bind_context, clear_context


router = APIRouter(prefix="/fraud", tags=["fraud"])


def _gate_for(factory: FraudGateFactory, user_id: str) -> FraudGate:
    clear_context()
    bind_context(user_id=user_id)
    return factory.for_user(user_id)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmissionUrlRequest(_CamelModel):
    """Request carrying a submission URL."""

    url: str = Field(..., min_length=1, description="Submission (post) URL")


class FraudCheckRequest(SubmissionUrlRequest):
    """Request to run the full fraud check."""

    skip_account_verification: bool = False


class FraudCheckMetadata(_CamelModel):
    checks_passed: int
    total_checks: int
    timestamp: int


class FraudCheckResponse(_CamelModel):
    """Fraud check decision."""

    allowed: bool
    risk_score: int
    risk_level: str
    blocked_reasons: list[str]
    warnings: list[str]
    metadata: FraudCheckMetadata

    @classmethod
    def from_result(cls, result: FraudCheckResult) -> FraudCheckResponse:
        """Create response from FraudCheckResult."""
        return cls(
            allowed=result.allowed,
            risk_score=result.risk_score,
            risk_level=result.risk_level.value,
            blocked_reasons=result.blocked_reasons,
            warnings=result.warnings,
            metadata=FraudCheckMetadata(
                checks_passed=result.metadata.checks_passed,
                total_checks=result.metadata.total_checks,
                timestamp=result.metadata.timestamp,
            ),
        )


class DuplicateCheckResponse(_CamelModel):
    is_duplicate: bool
    reason: str | None = None
    existing_submission_id: str | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_result(cls, result: DuplicateCheckResult) -> DuplicateCheckResponse:
        return cls(
            is_duplicate=result.is_duplicate,
            reason=result.reason,
            existing_submission_id=result.existing_submission_id,
            submitted_at=result.submitted_at,
        )


class RateLimitResponse(_CamelModel):
    allowed: bool
    remaining_submissions: int
    reset_time: int
    message: str | None = None

    @classmethod
    def from_result(cls, result: RateLimitStatus) -> RateLimitResponse:
        return cls(
            allowed=result.allowed,
            remaining_submissions=result.remaining_submissions,
            reset_time=result.reset_time,
            message=result.message,
        )


class VelocityResponse(_CamelModel):
    suspicious: bool
    reason: str | None = None

    @classmethod
    def from_result(cls, result: VelocityResult) -> VelocityResponse:
        return cls(suspicious=result.suspicious, reason=result.reason)


class AccountVerificationResponse(_CamelModel):
    is_verified: bool
    account_age: int
    follower_count: int
    following_count: int | None = None
    post_count: int
    verification_badge: bool
    risk_factors: list[str]

    @classmethod
    def from_result(cls, result: AccountVerificationResult) -> AccountVerificationResponse:
        return cls(
            is_verified=result.is_verified,
            account_age=result.account_age,
            follower_count=result.follower_count,
            following_count=result.following_count,
            post_count=result.post_count,
            verification_badge=result.verification_badge,
            risk_factors=result.risk_factors,
        )


class SubmissionResponse(_CamelModel):
    url: str
    post_id: str
    timestamp: int
    device_id: str

    @classmethod
    def from_record(cls, record: SubmissionRecord) -> SubmissionResponse:
        return cls(
            url=record.url,
            post_id=record.post_id,
            timestamp=record.timestamp,
            device_id=record.device_id,
        )


class FraudStatsResponse(_CamelModel):
    total_submissions: int
    submissions_today: int
    submissions_this_week: int
    is_blocked: bool
    remaining_daily_submissions: int
    last_submission: datetime | None = None

    @classmethod
    def from_stats(cls, stats: FraudStats) -> FraudStatsResponse:
        return cls(
            total_submissions=stats.total_submissions,
            submissions_today=stats.submissions_today,
            submissions_this_week=stats.submissions_this_week,
            is_blocked=stats.is_blocked,
            remaining_daily_submissions=stats.remaining_daily_submissions,
            last_submission=stats.last_submission,
        )


@router.post(
    "/verify-account",
    response_model=AccountVerificationResponse,
    response_model_by_alias=True,
    summary="Verify the account behind a post",
)
async def verify_account(
    request: SubmissionUrlRequest,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> AccountVerificationResponse:
    """Fetch account signals and derived risk factors. Does not touch history."""
    gate = _gate_for(factory, "anonymous")
    result = await gate.verify_instagram_account(request.url)
    return AccountVerificationResponse.from_result(result)


@router.post(
    "/{user_id}/check",
    response_model=FraudCheckResponse,
    response_model_by_alias=True,
    summary="Run the full fraud check",
)
async def perform_fraud_check(
    user_id: str,
    request: FraudCheckRequest,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> FraudCheckResponse:
    """
    Decide whether a submission should be accepted.

    The submission is not recorded; call the submissions endpoint once it
    has been accepted.
    """
    gate = _gate_for(factory, user_id)
    result = await gate.perform_fraud_check(
        request.url,
        skip_account_verification=request.skip_account_verification,
    )
    return FraudCheckResponse.from_result(result)


@router.post(
    "/{user_id}/duplicates",
    response_model=DuplicateCheckResponse,
    response_model_by_alias=True,
    summary="Check a URL for duplicate submission",
)
async def check_duplicate_url(
    user_id: str,
    request: SubmissionUrlRequest,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> DuplicateCheckResponse:
    result = await _gate_for(factory, user_id).check_duplicate_url(request.url)
    return DuplicateCheckResponse.from_result(result)


@router.get(
    "/{user_id}/rate-limit",
    response_model=RateLimitResponse,
    response_model_by_alias=True,
    summary="Get rate limit status",
)
async def check_rate_limit(
    user_id: str,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> RateLimitResponse:
    result = await _gate_for(factory, user_id).check_rate_limit()
    return RateLimitResponse.from_result(result)


@router.get(
    "/{user_id}/velocity",
    response_model=VelocityResponse,
    response_model_by_alias=True,
    summary="Analyze submission velocity",
)
async def check_submission_velocity(
    user_id: str,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> VelocityResponse:
    result = await _gate_for(factory, user_id).check_submission_velocity()
    return VelocityResponse.from_result(result)


@router.post(
    "/{user_id}/submissions",
    response_model=SubmissionResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Record an accepted submission",
)
async def record_submission(
    user_id: str,
    request: SubmissionUrlRequest,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> SubmissionResponse:
    record = await _gate_for(factory, user_id).record_submission(request.url)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Submission history is temporarily unavailable",
        )
    return SubmissionResponse.from_record(record)


@router.delete(
    "/{user_id}/submissions",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear submission history",
)
async def clear_submission_history(
    user_id: str,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> Response:
    cleared = await _gate_for(factory, user_id).clear_submission_history()
    if not cleared:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Submission history is temporarily unavailable",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{user_id}/stats",
    response_model=FraudStatsResponse,
    response_model_by_alias=True,
    summary="Get submission statistics",
)
async def get_fraud_stats(
    user_id: str,
    factory: FraudGateFactory = Depends(get_gate_factory),
) -> FraudStatsResponse:
    stats = await _gate_for(factory, user_id).get_fraud_stats()
    return FraudStatsResponse.from_stats(stats)

"""Fraud detection engine for reward submissions."""

from services.fraud_gate.engine.account import AccountVerifier
from services.fraud_gate.engine.api_client import FraudApiClient, FraudApiError
from services.fraud_gate.engine.duplicates import DuplicateDetector
from services.fraud_gate.engine.history import HistoryStoreError, SubmissionHistoryStore
from services.fraud_gate.engine.models import (
    AccountVerificationResult,
    BlockRecord,
    DuplicateCheckResult,
    FraudCheckResult,
    FraudStats,
    RateLimitStatus,
    RiskLevel,
    SubmissionRecord,
    VelocityResult,
)
from services.fraud_gate.engine.normalizer import NO_POST_ID, extract_post_id
from services.fraud_gate.engine.orchestrator import FraudGate, get_risk_level
from services.fraud_gate.engine.rate_limit import RateLimiter
from services.fraud_gate.engine.velocity import VelocityAnalyzer

__all__ = [
    "AccountVerifier",
    "DuplicateDetector",
    "FraudApiClient",
    "FraudApiError",
    "FraudGate",
    "HistoryStoreError",
    "RateLimiter",
    "SubmissionHistoryStore",
    "VelocityAnalyzer",
    "extract_post_id",
    "get_risk_level",
    "NO_POST_ID",
    # Models
    "AccountVerificationResult",
    "BlockRecord",
    "DuplicateCheckResult",
    "FraudCheckResult",
    "FraudStats",
    "RateLimitStatus",
    "RiskLevel",
    "SubmissionRecord",
    "VelocityResult",
]

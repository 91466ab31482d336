"""
RewardGuard: Fraud Gate Service.

Anti-fraud gate for social-post reward submissions. Decides before a
submission is accepted whether it should be allowed, flagged or blocked.

Key Features:
- Duplicate post detection (local history + backend)
- Cooldown and rolling daily/weekly/monthly caps
- Burst and automation pattern detection
- Account trust verification
- Risk scoring with time-boxed blocking
"""

from services.fraud_gate.engine import (
    FraudCheckResult,
    FraudGate,
    RiskLevel,
    SubmissionHistoryStore,
)

__all__ = [
    "FraudCheckResult",
    "FraudGate",
    "RiskLevel",
    "SubmissionHistoryStore",
]

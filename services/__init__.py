"""
RewardGuard Services
====================

Services for the RewardGuard anti-fraud platform.

Services:
- fraud_gate: Submission fraud checks, history and blocking
"""

__all__ = [
    "fraud_gate",
]

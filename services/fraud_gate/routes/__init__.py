"""RewardGuard fraud gate API routes."""

from services.fraud_gate.routes.checks import router as checks_router

__all__ = [
    "checks_router",
]

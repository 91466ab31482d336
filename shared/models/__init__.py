"""
Shared Models
=============

Pydantic models shared across RewardGuard services.
"""

from shared.models.common import BaseResponse, ErrorResponse, HealthResponse


__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "HealthResponse",
]

"""
Fraud gate wiring.

Builds per-user FraudGate instances over one shared key-value store and
one shared remote API client.
"""

from __future__ import annotations

from services.fraud_gate.engine import FraudApiClient, FraudGate, SubmissionHistoryStore
from services.fraud_gate.engine.models import Clock, now_ms
from shared.config import Settings, get_settings
from shared.database import KeyValueStore, get_store
from shared.logging import get_logger

logger = get_logger(__name__)


class FraudGateFactory:
    """Creates a FraudGate bound to one user's history namespace."""

    def __init__(
        self,
        store: KeyValueStore,
        api: FraudApiClient,
        settings: Settings,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.api = api
        self.settings = settings
        self._clock = clock

    def for_user(self, user_id: str) -> FraudGate:
        history = SubmissionHistoryStore(
            self.store,
            namespace=user_id,
            key_prefix=self.settings.store.key_prefix,
            retention_ms=self.settings.fraud_policy.retention_ms,
            clock=self._clock,
        )
        return FraudGate(
            history,
            self.api,
            policy=self.settings.fraud_policy,
            clock=self._clock,
        )

    async def close(self) -> None:
        await self.api.close()
        await self.store.close()


_factory: FraudGateFactory | None = None


def get_gate_factory() -> FraudGateFactory:
    """
    Get the configured gate factory.

    Returns:
        FraudGateFactory built from settings on first use
    """
    global _factory

    if _factory is None:
        settings = get_settings()
        _factory = FraudGateFactory(
            store=get_store(),
            api=FraudApiClient(settings.fraud_api),
            settings=settings,
        )
        logger.info(
            "fraud_gate_factory_initialized",
            store_backend=settings.store.backend.value,
            api_base_url=settings.fraud_api.base_url,
        )

    return _factory


def set_gate_factory(factory: FraudGateFactory | None) -> None:
    """
    Set a custom gate factory (or None to rebuild from settings).

    Args:
        factory: FraudGateFactory instance
    """
    global _factory
    _factory = factory

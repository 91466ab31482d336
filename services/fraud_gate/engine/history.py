"""
Submission History Store.

Persists the bounded submission history, the active block record and the
device identifier in a key-value store. Reads never raise: missing,
unreadable or corrupted data degrades to an empty/neutral value so the
checks built on top fall back to their permissive path. Writes raise
HistoryStoreError so callers decide what a failed write means.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from services.fraud_gate.engine.models import (
    BlockRecord,
    Clock,
    SubmissionRecord,
    now_ms,
)
from shared.database import KeyValueStore, StoreError
from shared.logging import get_logger


logger = get_logger(__name__)

DEFAULT_RETENTION_MS = 90 * 24 * 60 * 60 * 1000


class HistoryStoreError(Exception):
    """A history or block write could not be persisted."""


class SubmissionHistoryStore:
    """
    Submission history and block state for one namespace (user or device).

    Example:
        >>> history = SubmissionHistoryStore(InMemoryKeyValueStore(), namespace="user-1")
        >>> await history.append(record)
        >>> records = await history.load()
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str = "default",
        key_prefix: str = "fraud_detection",
        retention_ms: int = DEFAULT_RETENTION_MS,
        clock: Clock = now_ms,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self.retention_ms = retention_ms
        self._clock = clock

        base = f"{key_prefix}:{namespace}"
        self.submissions_key = f"{base}:submissions"
        self.block_key = f"{base}:blocked_until"
        self.device_key = f"{base}:device_id"

    # =========================================================================
    # Submission history
    # =========================================================================

    async def load(self) -> list[SubmissionRecord]:
        """Read the persisted history. Never raises."""
        payload = await self._read_json(self.submissions_key)
        if payload is None:
            return []

        if not isinstance(payload, list):
            logger.warning(
                "submission_history_corrupted",
                namespace=self.namespace,
                payload_type=type(payload).__name__,
            )
            return []

        records: list[SubmissionRecord] = []
        dropped = 0
        for entry in payload:
            try:
                if not isinstance(entry, dict):
                    raise ValueError(f"Expected object, got {type(entry).__name__}")
                records.append(SubmissionRecord.from_dict(entry))
            except ValueError:
                dropped += 1

        if dropped:
            logger.warning(
                "submission_history_entries_dropped",
                namespace=self.namespace,
                dropped=dropped,
                kept=len(records),
            )

        return self._retained(records)

    async def append(self, record: SubmissionRecord) -> list[SubmissionRecord]:
        """
        Append a record and write the whole (pruned) list back.

        Returns:
            The history as persisted.

        Raises:
            HistoryStoreError: if the write fails.
        """
        history = await self.load()
        history.append(record)
        await self._write_json(
            self.submissions_key,
            [r.to_dict() for r in history],
        )
        return history

    async def clear(self) -> None:
        """Remove the persisted history entirely."""
        await self._remove(self.submissions_key)

    def _retained(self, records: list[SubmissionRecord]) -> list[SubmissionRecord]:
        cutoff = self._clock() - self.retention_ms
        return [r for r in records if r.timestamp >= cutoff]

    # =========================================================================
    # Block state
    # =========================================================================

    async def get_block(self) -> BlockRecord | None:
        """Read the block record, or None when absent or unreadable."""
        payload = await self._read_json(self.block_key)
        if payload is None:
            return None

        if not isinstance(payload, dict):
            logger.warning("block_record_corrupted", namespace=self.namespace)
            return None

        try:
            return BlockRecord.from_dict(payload)
        except ValueError as e:
            logger.warning(
                "block_record_corrupted",
                namespace=self.namespace,
                error=str(e),
            )
            return None

    async def set_block(self, record: BlockRecord) -> None:
        await self._write_json(self.block_key, record.to_dict())

    async def clear_block(self) -> None:
        await self._remove(self.block_key)

    # =========================================================================
    # Device identifier
    # =========================================================================

    async def device_id(self) -> str:
        """
        Return the persisted device id, creating one on first use.

        Falls back to a throwaway id when the store is unavailable.
        """
        try:
            existing = await self.store.get(self.device_key)
            if existing:
                return existing

            device_id = f"device_{self._clock()}_{uuid.uuid4().hex[:12]}"
            await self.store.set(self.device_key, device_id)
            logger.info("device_id_created", namespace=self.namespace)
            return device_id
        except StoreError as e:
            logger.error(
                "device_id_unavailable",
                namespace=self.namespace,
                error=str(e),
            )
            return f"fallback_{self._clock()}"

    # =========================================================================
    # Raw I/O
    # =========================================================================

    async def _read_json(self, key: str) -> Any:
        try:
            raw = await self.store.get(key)
        except StoreError as e:
            logger.error("store_read_failed", key=key, error=str(e))
            return None

        if not raw:
            return None

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("store_payload_unparseable", key=key, error=str(e))
            return None

    async def _write_json(self, key: str, value: Any) -> None:
        try:
            await self.store.set(key, json.dumps(value))
        except StoreError as e:
            raise HistoryStoreError(f"Could not write {key}: {e}") from e

    async def _remove(self, key: str) -> None:
        try:
            await self.store.remove(key)
        except StoreError as e:
            raise HistoryStoreError(f"Could not remove {key}: {e}") from e

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/status.py.
"""

from __future__ import annotations

import asyncio

from ..clock import Clock, SystemClock
from ..types import DeliveryState, StatusRecord


class StatusProjection:
    """Latest lifecycle record per message identity; no history is kept."""

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._records: dict[str, StatusRecord] = {}
        self._lock = asyncio.Lock()

    async def set_status(
        self,
        message_id: str,
        state: DeliveryState,
        backend: str | None,
        attempts: int,
    ) -> StatusRecord:
        record = StatusRecord(
            status=DeliveryState(state),
            backend=backend,
            attempts=attempts,
            timestamp=self._clock.wall(),
        )
        async with self._lock:
            self._records[message_id] = record
        return record

    def get_status(self, message_id: str) -> StatusRecord | None:
        return self._records.get(message_id)

    def list_statuses(self) -> list[StatusRecord]:
        """List every tracked record (for debugging and tests)."""
        return list(self._records.values())

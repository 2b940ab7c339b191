"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/dedupe.py.
"""

from __future__ import annotations

import asyncio
import logging

from ..types import Outcome

logger = logging.getLogger("courier.dedupe")


class DuplicateSuppressor:
    """Process-lifetime map of message identity to its terminal outcome."""

    def __init__(self) -> None:
        self._outcomes: dict[str, Outcome] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._outcomes)

    async def has_outcome(self, message_id: str) -> bool:
        async with self._lock:
            return message_id in self._outcomes

    async def record_outcome(self, message_id: str, outcome: Outcome) -> None:
        """Store the terminal outcome; the first write for an identity wins."""
        async with self._lock:
            if message_id in self._outcomes:
                logger.warning(
                    "Outcome for message %s already recorded; keeping the original",
                    message_id,
                )
                return
            self._outcomes[message_id] = outcome

    async def get_outcome(self, message_id: str) -> Outcome | None:
        async with self._lock:
            return self._outcomes.get(message_id)

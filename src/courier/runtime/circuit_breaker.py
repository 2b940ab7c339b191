"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/circuit_breaker.py.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..clock import Clock, SystemClock
from .contracts import CircuitBreakerPolicy

logger = logging.getLogger("courier.circuit")


@dataclass(slots=True)
class _State:
    """Data type for state."""

    failures: int = 0
    tripped_at_s: float | None = None


class CircuitState:
    """
    Per-backend consecutive-failure breaker.

    Two states only: once the cool-down elapses the entry is fully reset and
    the backend is immediately eligible again, there is no half-open probe.
    Each backend gets its own lock so resets are atomic per name.
    """

    def __init__(
        self,
        policy: CircuitBreakerPolicy | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._policy = policy or CircuitBreakerPolicy()
        self._clock = clock or SystemClock()
        self._rows: dict[str, _State] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def policy(self) -> CircuitBreakerPolicy:
        return self._policy

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks.setdefault(key, asyncio.Lock())
        return lock

    async def is_open(self, key: str) -> bool:
        async with self._lock_for(key):
            state = self._rows.get(key)
            if state is None or state.tripped_at_s is None:
                return False
            age = self._clock.now() - state.tripped_at_s
            if age >= self._policy.cooldown_s:
                self._rows[key] = _State()
                logger.info("Circuit breaker reset for %s after %.1fs cool-down", key, age)
                return False
            return True

    async def record_failure(self, key: str) -> None:
        async with self._lock_for(key):
            state = self._rows.setdefault(key, _State())
            state.failures += 1
            if state.failures >= self._policy.failure_threshold:
                # Repeated failures past the threshold restart the cool-down.
                state.tripped_at_s = self._clock.now()
                logger.warning(
                    "Circuit breaker tripped for %s (%d consecutive failures)",
                    key,
                    state.failures,
                )

    async def record_success(self, key: str) -> None:
        async with self._lock_for(key):
            self._rows[key] = _State()

    def snapshot(self, key: str) -> tuple[int, float | None]:
        """Return `(consecutive_failures, tripped_at_s)` for one backend."""
        state = self._rows.get(key)
        if state is None:
            return 0, None
        return state.failures, state.tripped_at_s

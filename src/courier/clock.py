"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Injectable clock/timer used for backoff, circuit cool-down and status stamps.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """Time source plus suspension primitive."""

    def now(self) -> float:
        """Monotonic seconds used for windows and cool-downs."""
        ...

    def wall(self) -> float:
        """Unix epoch seconds used for status timestamps."""
        ...

    async def sleep(self, delay_s: float) -> None:
        """Suspend the caller for `delay_s` seconds."""
        ...


class SystemClock:
    """Real clock backed by `time` and `asyncio.sleep`."""

    def now(self) -> float:
        return time.monotonic()

    def wall(self) -> float:
        return time.time()

    async def sleep(self, delay_s: float) -> None:
        await asyncio.sleep(max(0.0, delay_s))


class ManualClock:
    """
    Deterministic clock for tests.

    `sleep` advances virtual time instantly and records the requested delay,
    then yields once to the event loop so other coroutines can interleave.
    """

    def __init__(self, start_s: float = 0.0, *, wall_offset_s: float = 1_700_000_000.0) -> None:
        self._now = float(start_s)
        self._wall_offset = float(wall_offset_s)
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    def wall(self) -> float:
        return self._wall_offset + self._now

    def advance(self, delta_s: float) -> None:
        if delta_s < 0:
            raise ValueError("Cannot move a clock backwards")
        self._now += delta_s

    async def sleep(self, delay_s: float) -> None:
        delay = max(0.0, delay_s)
        self.sleeps.append(delay)
        self._now += delay
        await asyncio.sleep(0)

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/admission.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from ..clock import Clock, SystemClock
from .contracts import AdmissionPolicy

logger = logging.getLogger("courier.admission")


class AdmissionGate:
    """Sliding-window limiter shared by every dispatch, first come first served."""

    def __init__(self, policy: AdmissionPolicy | None = None, *, clock: Clock | None = None) -> None:
        self._policy = policy or AdmissionPolicy()
        self._clock = clock or SystemClock()
        self._window: deque[float] = deque()
        self._lock = asyncio.Lock()

    @property
    def policy(self) -> AdmissionPolicy:
        return self._policy

    @property
    def in_window(self) -> int:
        """Number of admissions currently held in the window (not pruned)."""
        return len(self._window)

    async def try_admit(self) -> bool:
        if self._policy.capacity <= 0:
            return True
        async with self._lock:
            now = self._clock.now()
            while self._window and now - self._window[0] >= self._policy.window_s:
                self._window.popleft()

            if len(self._window) < self._policy.capacity:
                self._window.append(now)
                return True

        logger.warning(
            "Admission denied: %d requests within %.2fs window",
            self._policy.capacity,
            self._policy.window_s,
        )
        return False

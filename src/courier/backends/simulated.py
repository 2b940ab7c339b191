"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Simulated delivery backends for demos, benchmarks and local runs.
"""

from __future__ import annotations

import logging
import random

from ..clock import Clock, SystemClock
from ..types import DeliveryReport, Message

logger = logging.getLogger("courier.backends.simulated")


class SimulatedBackend:
    """
    Backend that succeeds with a fixed probability after a fixed latency.

    Pass a seeded `random.Random` and a `ManualClock` for reproducible runs.
    """

    def __init__(
        self,
        name: str,
        *,
        success_rate: float,
        latency_s: float = 0.0,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Backend name must be non-empty")
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be within [0, 1]")
        self.name = name
        self.success_rate = success_rate
        self.latency_s = latency_s
        self._clock = clock or SystemClock()
        self._rng = rng or random.Random()
        self.calls = 0

    @classmethod
    def provider_a(cls, **kwargs) -> "SimulatedBackend":
        """Primary mock provider: 70% success, 200ms latency."""
        return cls("ProviderA", success_rate=0.7, latency_s=0.2, **kwargs)

    @classmethod
    def provider_b(cls, **kwargs) -> "SimulatedBackend":
        """Fallback mock provider: 85% success, 300ms latency."""
        return cls("ProviderB", success_rate=0.85, latency_s=0.3, **kwargs)

    async def attempt_delivery(self, message: Message) -> DeliveryReport:
        self.calls += 1
        logger.debug("[%s] Attempting delivery to %s", self.name, message.to)
        await self._clock.sleep(self.latency_s)
        if self._rng.random() < self.success_rate:
            return DeliveryReport(success=True, message=f"[{self.name}] Message sent successfully.")
        return DeliveryReport(success=False, message=f"[{self.name}] Failed to send message.")

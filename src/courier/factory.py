"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for building the dispatcher and resubmitter from settings.
"""

from __future__ import annotations

from collections.abc import Sequence

from .backends.contracts import DeliveryBackend
from .backends.simulated import SimulatedBackend
from .clock import Clock
from .observability.telemetry import TelemetrySink
from .queues.metrics import ResubmitterMetrics
from .queues.resubmitter import Resubmitter
from .runtime.dispatcher import Dispatcher
from .settings import DispatchSettings


def create_dispatcher_from_env(
    backends: Sequence[DeliveryBackend] | None = None,
    *,
    settings: DispatchSettings | None = None,
    clock: Clock | None = None,
    telemetry: str | TelemetrySink | None = None,
) -> Dispatcher:
    """
    Create a dispatcher from `COURIER_*` environment variables.

    When `backends` is omitted the two simulated providers are used, primary
    first. `telemetry` overrides `COURIER_TELEMETRY_BACKEND`.
    """
    settings = settings or DispatchSettings.from_env()
    if backends is None:
        backends = [
            SimulatedBackend.provider_a(clock=clock),
            SimulatedBackend.provider_b(clock=clock),
        ]
    return Dispatcher(
        backends,
        retry_policy=settings.to_retry_policy(),
        admission_policy=settings.to_admission_policy(),
        circuit_breaker_policy=settings.to_circuit_breaker_policy(),
        coalescing_policy=settings.to_coalescing_policy(),
        clock=clock,
        telemetry=telemetry if telemetry is not None else settings.telemetry_backend,
    )


def create_resubmitter_from_env(
    dispatcher: Dispatcher,
    *,
    settings: DispatchSettings | None = None,
    clock: Clock | None = None,
    metrics: ResubmitterMetrics | None = None,
) -> Resubmitter:
    """Create a resubmitter for `dispatcher` from `COURIER_RESUBMIT_*` variables."""
    settings = settings or DispatchSettings.from_env()
    return Resubmitter(
        dispatcher,
        policy=settings.to_resubmit_policy(),
        clock=clock,
        metrics=metrics,
    )

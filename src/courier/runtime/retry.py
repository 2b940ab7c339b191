"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/retry.py.
"""

from __future__ import annotations

import asyncio
import logging

from ..backends.contracts import DeliveryBackend, coerce_report
from ..clock import Clock
from ..observability.sinks import guard_telemetry_sink
from ..observability.telemetry import TelemetrySink, event
from ..types import DeliveryReport, DeliveryState, FailureKind, Message, Outcome
from ..utils import backoff_delay
from .circuit_breaker import CircuitState
from .contracts import RetryPolicy
from .status import StatusProjection

logger = logging.getLogger("courier.retry")


async def _attempt_once(backend: DeliveryBackend, message: Message) -> DeliveryReport:
    """Invoke the backend once; raised errors become failed reports."""
    try:
        raw = await backend.attempt_delivery(message)
    except asyncio.CancelledError:
        raise
    except Exception as error:  # noqa: BLE001
        return DeliveryReport(success=False, message=str(error) or type(error).__name__)
    return coerce_report(raw)


async def deliver_with_retry(
    backend: DeliveryBackend,
    message: Message,
    *,
    policy: RetryPolicy,
    circuit: CircuitState,
    status: StatusProjection,
    clock: Clock,
    telemetry: TelemetrySink,
) -> Outcome:
    """
    Run the bounded retry loop for one backend.

    Returns a successful outcome as soon as one attempt succeeds. A backend
    whose circuit is open is skipped without consuming an attempt.
    """
    telemetry = guard_telemetry_sink(telemetry)
    name = backend.name
    if await circuit.is_open(name):
        logger.warning("Skipping %s due to circuit breaker tripped.", name)
        telemetry.record_event(event("courier.circuit.skipped", backend=name, message_id=message.id))
        return Outcome(
            success=False,
            detail=f"[{name}] Skipped: circuit breaker tripped.",
            backend=None,
            attempts=0,
            failure=FailureKind.CIRCUIT_OPEN,
        )

    last_detail = ""
    for attempt in range(1, policy.max_attempts + 1):
        logger.info("Attempt %d to deliver %s via %s", attempt, message.id, name)
        report = await _attempt_once(backend, message)

        if report.success:
            await circuit.record_success(name)
            await status.set_status(message.id, DeliveryState.SENT, name, attempt)
            return Outcome(
                success=True,
                detail=report.message,
                backend=name,
                attempts=attempt,
            )

        last_detail = report.message or "Unknown failure"
        await circuit.record_failure(name)
        await status.set_status(message.id, DeliveryState.RETRYING, name, attempt)
        telemetry.increment_counter(
            "courier.attempt.failures",
            attributes={"backend": name, "kind": FailureKind.TRANSIENT_BACKEND_FAILURE.value},
        )
        logger.warning("[%s] Attempt %d failed: %s", name, attempt, last_detail)

        if attempt < policy.max_attempts:
            await clock.sleep(
                backoff_delay(attempt - 1, policy.backoff_base_s, policy.backoff_max_s)
            )

    logger.error("[%s] All %d attempts failed for %s", name, policy.max_attempts, message.id)
    return Outcome(
        success=False,
        detail=f"[{name}] Exhausted after {policy.max_attempts} attempts: {last_detail}",
        backend=None,
        attempts=policy.max_attempts,
        failure=FailureKind.BACKEND_EXHAUSTED,
    )

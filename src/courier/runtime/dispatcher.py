"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Resilient dispatch orchestrator.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..backends.contracts import DeliveryBackend
from ..clock import Clock, SystemClock
from ..errors import DispatchConfigError
from ..observability.registry import create_telemetry_sink
from ..observability.sinks import guard_telemetry_sink
from ..observability.telemetry import TelemetrySink
from ..types import DeliveryState, FailureKind, Message, Outcome, StatusRecord
from .admission import AdmissionGate
from .circuit_breaker import CircuitState
from .coalescing import InFlightGuard
from .contracts import (
    AdmissionPolicy,
    CircuitBreakerPolicy,
    CoalescingPolicy,
    RetryPolicy,
)
from .dedupe import DuplicateSuppressor
from .retry import deliver_with_retry
from .status import StatusProjection

logger = logging.getLogger("courier.dispatcher")

ADMISSION_DENIED_DETAIL = "Rate limit exceeded. Please try again later."


class Dispatcher:
    """
    Deliver messages through an ordered list of interchangeable backends.

    Per message: admission check, idempotent replay, then the retry loop on
    each backend in order until one succeeds. The terminal outcome is recorded
    once and never raised; backend errors always come back as data.

    Every shared state object can be injected so tests (or several
    dispatchers) can share or isolate them explicitly.
    """

    def __init__(
        self,
        backends: Sequence[DeliveryBackend],
        *,
        retry_policy: RetryPolicy | None = None,
        admission_policy: AdmissionPolicy | None = None,
        circuit_breaker_policy: CircuitBreakerPolicy | None = None,
        coalescing_policy: CoalescingPolicy | None = None,
        admission: AdmissionGate | None = None,
        circuit: CircuitState | None = None,
        dedupe: DuplicateSuppressor | None = None,
        status: StatusProjection | None = None,
        clock: Clock | None = None,
        telemetry: str | TelemetrySink | None = None,
    ) -> None:
        self._backends = list(backends)
        if not self._backends:
            raise DispatchConfigError("Dispatcher requires at least one backend")
        names = [backend.name for backend in self._backends]
        if len(set(names)) != len(names):
            raise DispatchConfigError(f"Backend names must be unique: {names}")

        self._clock = clock or SystemClock()
        self._retry_policy = retry_policy or RetryPolicy()
        self._coalescing_policy = coalescing_policy or CoalescingPolicy()

        self._admission = admission or AdmissionGate(admission_policy, clock=self._clock)
        self._circuit = circuit or CircuitState(circuit_breaker_policy, clock=self._clock)
        self._dedupe = dedupe or DuplicateSuppressor()
        self._status = status or StatusProjection(clock=self._clock)
        self._inflight = InFlightGuard()
        self._telemetry = guard_telemetry_sink(create_telemetry_sink(telemetry))

    @property
    def backends(self) -> tuple[DeliveryBackend, ...]:
        return tuple(self._backends)

    @property
    def admission(self) -> AdmissionGate:
        return self._admission

    @property
    def circuit(self) -> CircuitState:
        return self._circuit

    @property
    def dedupe(self) -> DuplicateSuppressor:
        return self._dedupe

    @property
    def status(self) -> StatusProjection:
        return self._status

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def telemetry(self) -> TelemetrySink:
        """The configured sink, without the error guard."""
        return self._telemetry.inner

    def get_status(self, message_id: str) -> StatusRecord | None:
        """Return the latest lifecycle record for one message id."""
        return self._status.get_status(message_id)

    def list_statuses(self) -> list[StatusRecord]:
        return self._status.list_statuses()

    async def dispatch(self, message: Message) -> Outcome:
        """Dispatch one message and return its terminal outcome."""
        span = self._telemetry.start_span(
            "courier.dispatch",
            attributes={"message_id": message.id},
        )
        outcome: Outcome | None = None
        result = "cancelled"
        try:
            outcome, result = await self._dispatch(message)
        finally:
            if outcome is None:
                self._telemetry.end_span(span, status="error", error=result)
            else:
                self._telemetry.end_span(
                    span,
                    status="ok" if outcome.success else "error",
                    error=None if outcome.success else outcome.detail,
                    attributes={
                        "result": result,
                        "backend": outcome.backend,
                        "attempts": outcome.attempts,
                    },
                )

        self._telemetry.increment_counter(
            "courier.dispatch.outcomes",
            attributes={"result": result},
        )
        if result not in ("replayed", "admission_denied"):
            self._telemetry.record_histogram(
                "courier.dispatch.attempts",
                outcome.attempts,
                attributes={"result": result},
            )
        return outcome

    async def _dispatch(self, message: Message) -> tuple[Outcome, str]:
        logger.info("Request to deliver %s to %s", message.id, message.to)

        if not await self._admission.try_admit():
            await self._status.set_status(message.id, DeliveryState.FAILED, None, 0)
            outcome = Outcome(
                success=False,
                detail=ADMISSION_DENIED_DETAIL,
                backend=None,
                attempts=0,
                failure=FailureKind.ADMISSION_DENIED,
            )
            return outcome, "admission_denied"

        if self._coalescing_policy.enabled:
            async with self._inflight.hold(message.id):
                return await self._deliver(message)
        return await self._deliver(message)

    async def _deliver(self, message: Message) -> tuple[Outcome, str]:
        existing = await self._dedupe.get_outcome(message.id)
        if existing is not None:
            logger.warning("Message %s already has a recorded outcome; replaying it", message.id)
            return existing, "replayed"

        attempts_total = 0
        last = Outcome(success=False, detail="")
        for index, backend in enumerate(self._backends):
            if index > 0:
                logger.warning(
                    "Backend %s failed for %s. Switching to %s.",
                    self._backends[index - 1].name,
                    message.id,
                    backend.name,
                )
            last = await deliver_with_retry(
                backend,
                message,
                policy=self._retry_policy,
                circuit=self._circuit,
                status=self._status,
                clock=self._clock,
                telemetry=self._telemetry,
            )
            attempts_total += last.attempts
            if last.success:
                break

        if last.success:
            outcome = last
        else:
            outcome = Outcome(
                success=False,
                detail=f"Message failed to send via all backends. Last error: {last.detail}",
                backend=None,
                attempts=attempts_total,
                failure=FailureKind.ALL_BACKENDS_EXHAUSTED,
            )

        await self._dedupe.record_outcome(message.id, outcome)

        if outcome.success:
            await self._status.set_status(
                message.id, DeliveryState.SENT, outcome.backend, outcome.attempts
            )
            logger.info(
                "Message %s sent via %s in %d attempt(s)",
                message.id,
                outcome.backend,
                outcome.attempts,
            )
            return outcome, "sent"

        await self._status.set_status(message.id, DeliveryState.FAILED, None, attempts_total)
        logger.error("Message %s failed to send via every backend", message.id)
        return outcome, "failed"

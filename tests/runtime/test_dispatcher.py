from __future__ import annotations

import asyncio

import pytest

from courier import (
    AdmissionPolicy,
    CircuitBreakerPolicy,
    CoalescingPolicy,
    DeliveryReport,
    DeliveryState,
    DispatchConfigError,
    Dispatcher,
    FailureKind,
    ManualClock,
    Message,
    RetryPolicy,
)
from courier.observability import InMemoryTelemetrySink
from courier.runtime import ADMISSION_DENIED_DETAIL


def run_async(coro):
    return asyncio.run(coro)


class _ScriptedBackend:
    """Backend that replays a fixed list of results, then repeats the last one."""

    def __init__(self, name: str, script: list[object]) -> None:
        self.name = name
        self._script = list(script)
        self.calls = 0

    async def attempt_delivery(self, message: Message):
        self.calls += 1
        await asyncio.sleep(0)
        index = min(self.calls - 1, len(self._script) - 1)
        result = self._script[index]
        if isinstance(result, Exception):
            raise result
        return result


class _DenyingGate:
    async def try_admit(self) -> bool:
        return False


OK = DeliveryReport(success=True, message="delivered")
FAIL = DeliveryReport(success=False, message="boom")


def _message(message_id: str = "email-001") -> Message:
    return Message(id=message_id, to="user@example.com", subject="Hi", body="Body")


def _dispatcher(*backends, clock: ManualClock | None = None, **kwargs) -> Dispatcher:
    kwargs.setdefault("admission_policy", AdmissionPolicy(capacity=100))
    return Dispatcher(list(backends), clock=clock or ManualClock(), **kwargs)


def test_primary_success_is_sent_in_one_attempt():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [OK])
        secondary = _ScriptedBackend("ProviderB", [OK])
        dispatcher = _dispatcher(primary, secondary)

        outcome = await dispatcher.dispatch(_message())

        assert outcome.success is True
        assert outcome.backend == "ProviderA"
        assert outcome.attempts == 1
        assert outcome.failure is None
        assert secondary.calls == 0
        record = dispatcher.get_status("email-001")
        assert record is not None
        assert record.status == DeliveryState.SENT
        assert record.backend == "ProviderA"
        assert record.attempts == 1

    run_async(scenario())


def test_admission_denied_is_terminal_without_backend_or_dedupe():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [OK])
        dispatcher = Dispatcher([primary], admission=_DenyingGate(), clock=ManualClock())

        outcome = await dispatcher.dispatch(_message("email-limit"))

        assert outcome.success is False
        assert outcome.attempts == 0
        assert outcome.backend is None
        assert outcome.failure == FailureKind.ADMISSION_DENIED
        assert "Rate limit exceeded" in outcome.detail
        assert outcome.detail == ADMISSION_DENIED_DETAIL
        assert primary.calls == 0
        assert len(dispatcher.dedupe) == 0

        record = dispatcher.get_status("email-limit")
        assert record is not None
        assert record.as_dict() == {
            "status": "failed",
            "backend": None,
            "attempts": 0,
            "timestamp": record.timestamp,
        }

    run_async(scenario())


def test_admission_gate_denies_after_capacity_is_used():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [OK])
        dispatcher = _dispatcher(primary, admission_policy=AdmissionPolicy(capacity=2))

        first = await dispatcher.dispatch(_message("m-1"))
        second = await dispatcher.dispatch(_message("m-2"))
        third = await dispatcher.dispatch(_message("m-3"))

        assert first.success and second.success
        assert third.failure == FailureKind.ADMISSION_DENIED
        assert primary.calls == 2

    run_async(scenario())


def test_replay_returns_same_outcome_without_contacting_backends():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [FAIL])
        secondary = _ScriptedBackend("ProviderB", [FAIL])
        dispatcher = _dispatcher(primary, secondary)
        message = _message("email-003")

        first = await dispatcher.dispatch(message)
        calls_after_first = (primary.calls, secondary.calls)
        second = await dispatcher.dispatch(message)

        assert first.success is False
        assert second is first
        assert (primary.calls, secondary.calls) == calls_after_first

    run_async(scenario())


def test_always_failing_backend_consumes_exactly_max_attempts():
    async def scenario() -> None:
        clock = ManualClock()
        primary = _ScriptedBackend("ProviderA", [FAIL])
        dispatcher = _dispatcher(primary, clock=clock, retry_policy=RetryPolicy(max_attempts=3))

        outcome = await dispatcher.dispatch(_message())

        assert primary.calls == 3
        assert outcome.attempts == 3
        assert outcome.failure == FailureKind.ALL_BACKENDS_EXHAUSTED
        # Backoff doubles from 200ms; no wait after the final attempt.
        assert clock.sleeps == pytest.approx([0.2, 0.4])

    run_async(scenario())


def test_both_backends_failing_reports_summed_attempts():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [DeliveryReport(success=False)])
        secondary = _ScriptedBackend("ProviderB", [DeliveryReport(success=False)])
        dispatcher = _dispatcher(primary, secondary)

        outcome = await dispatcher.dispatch(_message("email-both-fail"))

        assert outcome.success is False
        assert outcome.backend is None
        assert outcome.attempts == 6
        record = dispatcher.get_status("email-both-fail")
        assert record is not None
        assert record.status == DeliveryState.FAILED
        assert record.backend is None
        assert record.attempts == 6

    run_async(scenario())


def test_fallback_to_secondary_when_primary_exhausted():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [FAIL])
        secondary = _ScriptedBackend("ProviderB", [OK])
        dispatcher = _dispatcher(primary, secondary)

        outcome = await dispatcher.dispatch(_message("email-002"))

        assert outcome.success is True
        assert outcome.backend == "ProviderB"
        assert outcome.attempts == 1
        record = dispatcher.get_status("email-002")
        assert record is not None
        assert (record.status, record.backend, record.attempts) == (
            DeliveryState.SENT,
            "ProviderB",
            1,
        )

    run_async(scenario())


def test_status_reports_attempts_after_one_retry():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [FAIL, OK])
        dispatcher = _dispatcher(primary, _ScriptedBackend("ProviderB", [OK]))

        outcome = await dispatcher.dispatch(_message("email-status-001"))

        assert outcome.success is True
        record = dispatcher.get_status("email-status-001")
        assert record is not None
        assert record.status == DeliveryState.SENT
        assert record.backend == "ProviderA"
        assert record.attempts == 2

    run_async(scenario())


def test_circuit_skips_tripped_backend_until_cooldown_elapses():
    async def scenario() -> None:
        clock = ManualClock()
        primary = _ScriptedBackend("ProviderA", [FAIL])
        secondary = _ScriptedBackend("ProviderB", [OK])
        dispatcher = _dispatcher(
            primary,
            secondary,
            clock=clock,
            circuit_breaker_policy=CircuitBreakerPolicy(failure_threshold=3, cooldown_s=10.0),
        )

        await dispatcher.dispatch(_message("cb-1"))
        assert primary.calls == 3
        assert await dispatcher.circuit.is_open("ProviderA") is True

        skipped = await dispatcher.dispatch(_message("cb-2"))
        assert primary.calls == 3
        assert skipped.success is True
        assert skipped.backend == "ProviderB"
        assert skipped.attempts == 1

        clock.advance(10.0)
        await dispatcher.dispatch(_message("cb-3"))
        assert primary.calls == 6

    run_async(scenario())


def test_every_backend_tripped_fails_without_attempts():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [FAIL])
        secondary = _ScriptedBackend("ProviderB", [FAIL])
        dispatcher = _dispatcher(primary, secondary)

        await dispatcher.dispatch(_message("cb-0"))
        outcome = await dispatcher.dispatch(_message("cb-final"))

        assert outcome.success is False
        assert outcome.attempts == 0
        assert "circuit breaker" in outcome.detail
        assert (primary.calls, secondary.calls) == (3, 3)

    run_async(scenario())


def test_backend_exceptions_are_normalized_into_failures():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [RuntimeError("smtp down")])
        dispatcher = _dispatcher(primary, retry_policy=RetryPolicy(max_attempts=2))

        outcome = await dispatcher.dispatch(_message())

        assert outcome.success is False
        assert outcome.attempts == 2
        assert "smtp down" in outcome.detail

    run_async(scenario())


def test_mapping_reports_are_accepted_and_success_must_be_true():
    async def scenario() -> None:
        truthy = _ScriptedBackend("ProviderA", [{"success": "yes", "message": "maybe"}])
        mapping = _ScriptedBackend("ProviderB", [{"success": True, "message": "ok"}])
        dispatcher = _dispatcher(truthy, mapping)

        outcome = await dispatcher.dispatch(_message())

        assert truthy.calls == 3
        assert outcome.success is True
        assert outcome.backend == "ProviderB"
        assert outcome.detail == "ok"

    run_async(scenario())


def test_concurrent_same_identity_contacts_backend_once_when_coalesced():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [OK])
        dispatcher = _dispatcher(primary)
        message = _message("email-dup")

        first, second = await asyncio.gather(
            dispatcher.dispatch(message),
            dispatcher.dispatch(message),
        )

        assert primary.calls == 1
        assert first is second

    run_async(scenario())


def test_concurrent_same_identity_without_coalescing_may_send_twice():
    async def scenario() -> None:
        primary = _ScriptedBackend("ProviderA", [OK])
        dispatcher = _dispatcher(primary, coalescing_policy=CoalescingPolicy(enabled=False))
        message = _message("email-dup")

        first, second = await asyncio.gather(
            dispatcher.dispatch(message),
            dispatcher.dispatch(message),
        )

        assert primary.calls == 2
        # First recorded outcome wins; later replays return it.
        stored = await dispatcher.dedupe.get_outcome("email-dup")
        assert stored is first
        assert await dispatcher.dispatch(message) is first
        assert second.success is True

    run_async(scenario())


def test_dispatch_emits_telemetry():
    async def scenario() -> None:
        sink = InMemoryTelemetrySink()
        primary = _ScriptedBackend("ProviderA", [FAIL])
        secondary = _ScriptedBackend("ProviderB", [OK])
        dispatcher = _dispatcher(primary, secondary, telemetry=sink)

        await dispatcher.dispatch(_message("t-1"))
        await dispatcher.dispatch(_message("t-1"))
        await dispatcher.dispatch(_message("t-2"))

        assert sink.counter_total("courier.dispatch.outcomes", result="sent") == 2
        assert sink.counter_total("courier.dispatch.outcomes", result="replayed") == 1
        assert sink.counter_total("courier.attempt.failures", backend="ProviderA") == 3
        assert "courier.circuit.skipped" in sink.event_names()
        assert [span["status"] for span in sink.spans] == ["ok", "ok", "ok"]
        assert [row["value"] for row in sink.histograms] == [1.0, 1.0]

    run_async(scenario())


class _BrokenSink(InMemoryTelemetrySink):
    """Sink whose exporter is down for every call except span start."""

    def increment_counter(self, name, value=1, *, attributes=None):
        raise RuntimeError("exporter offline")

    def record_histogram(self, name, value, *, attributes=None):
        raise RuntimeError("exporter offline")

    def record_event(self, event):
        raise RuntimeError("exporter offline")

    def end_span(self, span, *, status, error=None, attributes=None):
        super().end_span(span, status=status, error=error, attributes=attributes)
        raise RuntimeError("exporter offline")


def test_failing_telemetry_sink_never_breaks_dispatch():
    async def scenario() -> None:
        sink = _BrokenSink()
        primary = _ScriptedBackend("ProviderA", [FAIL])
        dispatcher = _dispatcher(
            primary,
            retry_policy=RetryPolicy(max_attempts=2),
            circuit_breaker_policy=CircuitBreakerPolicy(failure_threshold=1),
            telemetry=sink,
        )

        outcome = await dispatcher.dispatch(_message("m-1"))
        second = await dispatcher.dispatch(_message("m-2"))

        assert outcome.success is False
        assert outcome.failure == FailureKind.ALL_BACKENDS_EXHAUSTED
        assert outcome.attempts == 2
        assert second.failure == FailureKind.ALL_BACKENDS_EXHAUSTED
        assert second.attempts == 0
        record = dispatcher.get_status("m-1")
        assert record.status == DeliveryState.FAILED
        assert record.attempts == 2
        assert await dispatcher.dedupe.get_outcome("m-1") is outcome
        assert [span["status"] for span in sink.spans] == ["error", "error"]

    run_async(scenario())


def test_dispatcher_requires_backends():
    with pytest.raises(DispatchConfigError, match="at least one backend"):
        Dispatcher([])


def test_dispatcher_rejects_duplicate_backend_names():
    with pytest.raises(DispatchConfigError, match="unique"):
        Dispatcher([_ScriptedBackend("A", [OK]), _ScriptedBackend("A", [OK])])


def test_list_statuses_tracks_every_message():
    async def scenario() -> None:
        dispatcher = _dispatcher(_ScriptedBackend("ProviderA", [OK]))
        await dispatcher.dispatch(_message("a"))
        await dispatcher.dispatch(_message("b"))
        assert len(dispatcher.list_statuses()) == 2
        assert dispatcher.get_status("missing") is None

    run_async(scenario())

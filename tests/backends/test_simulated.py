from __future__ import annotations

import asyncio
import random

import pytest

from courier import DeliveryBackend, DeliveryReport, ManualClock, Message, SimulatedBackend
from courier.backends import coerce_report


def run_async(coro):
    return asyncio.run(coro)


MESSAGE = Message(id="email-001", to="user1@example.com", subject="Welcome!", body="Thanks")


def test_provider_presets_match_mock_providers():
    a = SimulatedBackend.provider_a()
    b = SimulatedBackend.provider_b()
    assert (a.name, a.success_rate, a.latency_s) == ("ProviderA", 0.7, 0.2)
    assert (b.name, b.success_rate, b.latency_s) == ("ProviderB", 0.85, 0.3)
    assert isinstance(a, DeliveryBackend)


def test_simulated_backend_waits_latency_and_reports():
    async def scenario() -> None:
        clock = ManualClock()
        always = SimulatedBackend("always", success_rate=1.0, latency_s=0.25, clock=clock)
        never = SimulatedBackend("never", success_rate=0.0, latency_s=0.5, clock=clock)

        ok = await always.attempt_delivery(MESSAGE)
        bad = await never.attempt_delivery(MESSAGE)

        assert ok == DeliveryReport(success=True, message="[always] Message sent successfully.")
        assert bad.success is False
        assert "Failed" in bad.message
        assert clock.sleeps == [0.25, 0.5]
        assert (always.calls, never.calls) == (1, 1)

    run_async(scenario())


def test_seeded_backend_is_reproducible():
    async def outcomes(seed: int) -> list[bool]:
        backend = SimulatedBackend.provider_a(clock=ManualClock(), rng=random.Random(seed))
        return [(await backend.attempt_delivery(MESSAGE)).success for _ in range(20)]

    assert run_async(outcomes(42)) == run_async(outcomes(42))


def test_simulated_backend_validates_arguments():
    with pytest.raises(ValueError, match="non-empty"):
        SimulatedBackend("  ", success_rate=0.5)
    with pytest.raises(ValueError, match="success_rate"):
        SimulatedBackend("x", success_rate=1.5)


def test_coerce_report_variants():
    class _Obj:
        success = True
        message = "attr"

    assert coerce_report(DeliveryReport(success=True)).success is True
    assert coerce_report({"success": True, "message": "ok"}) == DeliveryReport(True, "ok")
    assert coerce_report({"success": 1}) == DeliveryReport(False, "")
    assert coerce_report(_Obj()) == DeliveryReport(True, "attr")
    assert coerce_report(None) == DeliveryReport(False, "")


def test_message_requires_identity():
    with pytest.raises(ValueError):
        Message(id="", to="x@example.com")

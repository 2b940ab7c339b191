"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

courier: resilient message dispatch across interchangeable backends.

Usage::

    from courier import Dispatcher, Message, SimulatedBackend

    dispatcher = Dispatcher([SimulatedBackend.provider_a(), SimulatedBackend.provider_b()])
    outcome = await dispatcher.dispatch(Message(id="m-1", to="user@example.com"))
"""

from .backends import DeliveryBackend, SimulatedBackend
from .clock import Clock, ManualClock, SystemClock
from .errors import CourierError, DispatchConfigError, TelemetryBackendError
from .factory import create_dispatcher_from_env, create_resubmitter_from_env
from .queues import Resubmitter
from .runtime import (
    AdmissionGate,
    AdmissionPolicy,
    CircuitBreakerPolicy,
    CircuitState,
    CoalescingPolicy,
    Dispatcher,
    DuplicateSuppressor,
    ResubmitPolicy,
    RetryPolicy,
    StatusProjection,
)
from .settings import DispatchSettings
from .types import DeliveryReport, DeliveryState, FailureKind, Message, Outcome, StatusRecord

__all__ = [
    "AdmissionGate",
    "AdmissionPolicy",
    "CircuitBreakerPolicy",
    "CircuitState",
    "Clock",
    "CoalescingPolicy",
    "CourierError",
    "DeliveryBackend",
    "DeliveryReport",
    "DeliveryState",
    "DispatchConfigError",
    "DispatchSettings",
    "Dispatcher",
    "DuplicateSuppressor",
    "FailureKind",
    "ManualClock",
    "Message",
    "Outcome",
    "ResubmitPolicy",
    "Resubmitter",
    "RetryPolicy",
    "SimulatedBackend",
    "StatusProjection",
    "StatusRecord",
    "SystemClock",
    "TelemetryBackendError",
    "create_dispatcher_from_env",
    "create_resubmitter_from_env",
]

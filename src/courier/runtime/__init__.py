"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .admission import AdmissionGate
from .circuit_breaker import CircuitState
from .coalescing import InFlightGuard
from .contracts import (
    AdmissionPolicy,
    CircuitBreakerPolicy,
    CoalescingPolicy,
    ResubmitPolicy,
    RetryPolicy,
)
from .dedupe import DuplicateSuppressor
from .dispatcher import ADMISSION_DENIED_DETAIL, Dispatcher
from .retry import deliver_with_retry
from .status import StatusProjection

__all__ = [
    "ADMISSION_DENIED_DETAIL",
    "AdmissionGate",
    "AdmissionPolicy",
    "CircuitBreakerPolicy",
    "CircuitState",
    "CoalescingPolicy",
    "Dispatcher",
    "DuplicateSuppressor",
    "InFlightGuard",
    "ResubmitPolicy",
    "RetryPolicy",
    "StatusProjection",
    "deliver_with_retry",
]

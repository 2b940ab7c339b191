"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Exception hierarchy for wiring and configuration failures.

Delivery failures are never raised; they are reported through `Outcome`.
"""

from __future__ import annotations


class CourierError(RuntimeError):
    """Base error for courier runtime wiring."""


class DispatchConfigError(CourierError):
    """Raised when a dispatcher is constructed with invalid wiring."""


class TelemetryBackendError(CourierError):
    """Raised when telemetry backend registration/resolution fails."""

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for resilient dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AdmissionPolicy:
    """
    Sliding-window admission limit shared by every dispatch.

    A `capacity` of zero or less disables the gate: every request is admitted.
    """

    capacity: int = 5
    window_s: float = 1.0

    def __post_init__(self) -> None:
        if self.window_s <= 0:
            raise ValueError("window_s must be > 0")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded per-backend retry with exponential backoff."""

    max_attempts: int = 3
    backoff_base_s: float = 0.2
    backoff_max_s: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_base_s < 0:
            raise ValueError("backoff_base_s must be >= 0")
        if self.backoff_max_s is not None and self.backoff_max_s < 0:
            raise ValueError("backoff_max_s must be >= 0")


@dataclass(frozen=True, slots=True)
class CircuitBreakerPolicy:
    """Consecutive failure policy with a full reset after cool-down."""

    failure_threshold: int = 3
    cooldown_s: float = 10.0

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.cooldown_s < 0:
            raise ValueError("cooldown_s must be >= 0")


@dataclass(frozen=True, slots=True)
class ResubmitPolicy:
    """Background re-submission cadence."""

    interval_s: float = 5.0
    max_rounds: int | None = None

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        if self.max_rounds is not None and self.max_rounds < 1:
            raise ValueError("max_rounds must be >= 1 when set")


@dataclass(frozen=True, slots=True)
class CoalescingPolicy:
    """Serialize concurrent dispatches that share one message identity."""

    enabled: bool = True

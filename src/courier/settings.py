"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Dispatch runtime settings and explicit config loading.
"""

from __future__ import annotations

from dataclasses import dataclass

from .runtime.contracts import (
    AdmissionPolicy,
    CircuitBreakerPolicy,
    CoalescingPolicy,
    ResubmitPolicy,
    RetryPolicy,
)
from .utils import env_first, env_flag


def _optional_float(raw: str | None) -> float | None:
    return float(raw) if raw is not None else None


def _optional_int(raw: str | None) -> int | None:
    return int(raw) if raw is not None else None


@dataclass(frozen=True, slots=True)
class DispatchSettings:
    """Explicit settings used to build the dispatcher and resubmitter."""

    rate_limit_per_window: int = 5
    rate_window_s: float = 1.0

    max_attempts: int = 3
    backoff_base_s: float = 0.2
    backoff_max_s: float | None = None

    circuit_failure_threshold: int = 3
    circuit_cooldown_s: float = 10.0

    resubmit_interval_s: float = 5.0
    resubmit_max_rounds: int | None = None

    coalesce_inflight: bool = True
    telemetry_backend: str = "null"

    @staticmethod
    def from_env() -> "DispatchSettings":
        """Load settings from `COURIER_*` environment variables."""
        return DispatchSettings(
            rate_limit_per_window=int(env_first("COURIER_RATE_LIMIT_PER_S", default="5") or "5"),
            rate_window_s=float(env_first("COURIER_RATE_WINDOW_S", default="1.0") or "1.0"),
            max_attempts=int(env_first("COURIER_MAX_ATTEMPTS", default="3") or "3"),
            backoff_base_s=float(env_first("COURIER_BACKOFF_BASE_S", default="0.2") or "0.2"),
            backoff_max_s=_optional_float(env_first("COURIER_BACKOFF_MAX_S")),
            circuit_failure_threshold=int(
                env_first("COURIER_CIRCUIT_FAILURE_THRESHOLD", default="3") or "3"
            ),
            circuit_cooldown_s=float(
                env_first("COURIER_CIRCUIT_COOLDOWN_S", default="10") or "10"
            ),
            resubmit_interval_s=float(
                env_first("COURIER_RESUBMIT_INTERVAL_S", default="5") or "5"
            ),
            resubmit_max_rounds=_optional_int(env_first("COURIER_RESUBMIT_MAX_ROUNDS")),
            coalesce_inflight=env_flag("COURIER_COALESCE_INFLIGHT", True),
            telemetry_backend=(
                env_first("COURIER_TELEMETRY_BACKEND", default="null") or "null"
            ).lower(),
        )

    def to_admission_policy(self) -> AdmissionPolicy:
        return AdmissionPolicy(capacity=self.rate_limit_per_window, window_s=self.rate_window_s)

    def to_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff_base_s=self.backoff_base_s,
            backoff_max_s=self.backoff_max_s,
        )

    def to_circuit_breaker_policy(self) -> CircuitBreakerPolicy:
        return CircuitBreakerPolicy(
            failure_threshold=self.circuit_failure_threshold,
            cooldown_s=self.circuit_cooldown_s,
        )

    def to_resubmit_policy(self) -> ResubmitPolicy:
        return ResubmitPolicy(
            interval_s=self.resubmit_interval_s,
            max_rounds=self.resubmit_max_rounds,
        )

    def to_coalescing_policy(self) -> CoalescingPolicy:
        return CoalescingPolicy(enabled=self.coalesce_inflight)

"""Synchronous, outcome-driven circuit breaker.

This package implements the circuit breaker pattern from *Release It!*.

Key behavior notes:
  - The breaker never performs the guarded call. Callers ask ``can_execute()``,
    make the call, then report ``record_success()`` or ``record_failure()``.
  - ``OPEN`` breakers move to ``HALF_OPEN`` lazily, on the next permission
    query after the recovery timeout. There is no background timer.
  - ``can_execute()``, ``status()`` and the registry aggregates built on them
    are not pure reads: they may perform the ``OPEN -> HALF_OPEN`` transition.
    ``snapshot()`` is the side-effect free view.
  - Listener hooks run synchronously after the transition; their exceptions
    are logged and never reach the caller.
"""

from breaker_core.circuit_breaker.breaker import (
    DEFAULT_CONFIG,
    CircuitBreaker,
    CircuitBreakerConfig,
)
from breaker_core.circuit_breaker.events import (
    BreakerEvent,
    BreakerListener,
    CircuitClosedEvent,
    CircuitHalfOpenEvent,
    CircuitOpenedEvent,
    CircuitResetEvent,
)
from breaker_core.circuit_breaker.exceptions import (
    CircuitBreakerError,
    CircuitOpenError,
)
from breaker_core.circuit_breaker.listeners import LoggingBreakerListener
from breaker_core.circuit_breaker.registry import CircuitBreakerRegistry
from breaker_core.circuit_breaker.state import (
    BreakerSnapshot,
    BreakerStatus,
    CircuitState,
)

__all__ = [
    "DEFAULT_CONFIG",
    "BreakerEvent",
    "BreakerListener",
    "BreakerSnapshot",
    "BreakerStatus",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitBreakerRegistry",
    "CircuitClosedEvent",
    "CircuitHalfOpenEvent",
    "CircuitOpenError",
    "CircuitOpenedEvent",
    "CircuitResetEvent",
    "CircuitState",
    "LoggingBreakerListener",
]

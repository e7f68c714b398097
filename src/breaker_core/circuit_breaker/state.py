"""Circuit breaker state primitives."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class BreakerStatus:
    """Status record returned by ``CircuitBreaker.status()``.

    ``can_execute`` is computed through the permission gate without spending
    a half-open probe slot. Building a status may still move an ``OPEN``
    breaker to ``HALF_OPEN``.

    Attributes:
        state: Breaker state after the permission query ran.
        failure_count: Current failure counter.
        success_count: Successes recorded since the last reset.
        can_execute: Result of the permission query.
    """

    state: CircuitState
    failure_count: int
    success_count: int
    can_execute: bool


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker internals useful for metrics/logging.

    Unlike ``BreakerStatus`` this is read without side effects.

    Attributes:
        name: Breaker name.
        state: Current breaker state.
        failure_count: Current failure counter.
        success_count: Successes recorded since the last reset.
        half_open_attempts: Probe slots consumed in the current half-open episode.
        last_failure_at: Timestamp of the last recorded failure, if any.
        retry_after_ms: Milliseconds until a probe may be attempted while
            ``OPEN``; ``0.0`` in every other state.
    """

    name: str
    state: CircuitState
    failure_count: int
    success_count: int
    half_open_attempts: int
    last_failure_at: datetime | None
    retry_after_ms: float

"""Notification payloads and listener hooks for circuit breakers."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CircuitOpenedEvent:
    """Emitted when a breaker enters ``OPEN``."""

    name: str
    failure_count: int
    threshold: int


@dataclass(frozen=True)
class CircuitClosedEvent:
    """Emitted when a half-open breaker recovers to ``CLOSED``."""

    name: str
    success_count: int


@dataclass(frozen=True)
class CircuitHalfOpenEvent:
    """Emitted when an open breaker starts probing."""

    name: str
    attempt_number: int


@dataclass(frozen=True)
class CircuitResetEvent:
    """Emitted on every explicit ``reset()``."""

    name: str


BreakerEvent = (
    CircuitOpenedEvent | CircuitClosedEvent | CircuitHalfOpenEvent | CircuitResetEvent
)


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker notifications.

    Notes:
        Hooks are invoked synchronously on the thread that caused the
        transition, after the breaker has released its lock. Exceptions raised
        by a hook are logged and never reach the caller.
    """

    def on_opened(self, event: CircuitOpenedEvent) -> None:
        """Handle a transition into ``OPEN``."""

    def on_closed(self, event: CircuitClosedEvent) -> None:
        """Handle recovery from ``HALF_OPEN`` to ``CLOSED``."""

    def on_half_open(self, event: CircuitHalfOpenEvent) -> None:
        """Handle a transition from ``OPEN`` to ``HALF_OPEN``."""

    def on_reset(self, event: CircuitResetEvent) -> None:
        """Handle an explicit reset."""

"""Core circuit breaker implementation."""

import logging
import math
import threading
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from breaker_core.circuit_breaker.events import (
    BreakerEvent,
    BreakerListener,
    CircuitClosedEvent,
    CircuitHalfOpenEvent,
    CircuitOpenedEvent,
    CircuitResetEvent,
)
from breaker_core.circuit_breaker.exceptions import CircuitOpenError
from breaker_core.circuit_breaker.state import (
    BreakerSnapshot,
    BreakerStatus,
    CircuitState,
)
from breaker_core.logging import bind_breaker_context, log_exception

_logger = logging.getLogger(__name__)

_HOOKS: dict[type[BreakerEvent], str] = {
    CircuitOpenedEvent: "on_opened",
    CircuitClosedEvent: "on_closed",
    CircuitHalfOpenEvent: "on_half_open",
    CircuitResetEvent: "on_reset",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration values.

    Attributes:
        failure_threshold: Failures required while ``CLOSED`` before opening.
        recovery_timeout_ms: Milliseconds to wait after the last failure
            before an ``OPEN`` breaker admits a probe.
        half_open_attempts: Probe slots available per half-open episode.
    """

    failure_threshold: int = 5
    recovery_timeout_ms: float = 60_000.0
    half_open_attempts: int = 3

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.recovery_timeout_ms < 0:
            raise ValueError("recovery_timeout_ms must be >= 0")
        if self.half_open_attempts < 1:
            raise ValueError("half_open_attempts must be >= 1")


DEFAULT_CONFIG = CircuitBreakerConfig()


class CircuitBreaker:
    """Outcome-driven guard for one named dependency.

    The breaker never runs the guarded operation. Callers ask
    ``can_execute()``, perform the call themselves, then report the outcome
    with ``record_success()`` or ``record_failure()``.

    Each instance serializes its own reads and transitions with a re-entrant
    lock. Listener hooks run after that lock is released.
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        *,
        listeners: Sequence[BreakerListener] | None = None,
    ) -> None:
        """Build a breaker in ``CLOSED`` state with all counters at zero.

        Args:
            name: Dependency name reported in notifications.
            config: Breaker behavior configuration. Defaults to
                ``DEFAULT_CONFIG``.
            listeners: Optional listener hooks for breaker notifications.
        """
        self.name = name
        self._config = DEFAULT_CONFIG if config is None else config
        self._listeners: tuple[BreakerListener, ...] = (
            tuple(listeners) if listeners is not None else ()
        )
        self._lock = threading.RLock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._half_open_attempts = 0
        self._last_failure_at: datetime | None = None

    def __repr__(self) -> str:
        return f"CircuitBreaker(name={self.name!r}, state={self._state.value!r})"

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def success_count(self) -> int:
        return self._success_count

    @property
    def half_open_attempts(self) -> int:
        return self._half_open_attempts

    @property
    def last_failure_at(self) -> datetime | None:
        return self._last_failure_at

    @property
    def config(self) -> CircuitBreakerConfig:
        """Return the active configuration. Instances are immutable."""
        return self._config

    def get_config(self) -> CircuitBreakerConfig:
        """Return a copy of the active configuration."""
        return replace(self._config)

    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    def is_half_open(self) -> bool:
        return self._state == CircuitState.HALF_OPEN

    def set_config(
        self,
        *,
        failure_threshold: int | None = None,
        recovery_timeout_ms: float | None = None,
        half_open_attempts: int | None = None,
    ) -> None:
        """Merge the given fields into the current configuration.

        State and counters are left untouched.

        Raises:
            ValueError: When the merged configuration is invalid.
        """
        changes: dict[str, float] = {}
        if failure_threshold is not None:
            changes["failure_threshold"] = failure_threshold
        if recovery_timeout_ms is not None:
            changes["recovery_timeout_ms"] = recovery_timeout_ms
        if half_open_attempts is not None:
            changes["half_open_attempts"] = half_open_attempts
        with self._lock:
            self._config = replace(self._config, **changes)

    def add_listener(self, listener: BreakerListener) -> None:
        """Subscribe ``listener`` to this breaker's notifications."""
        with self._lock:
            self._listeners = (*self._listeners, listener)

    def remove_listener(self, listener: BreakerListener) -> bool:
        """Unsubscribe ``listener``. Returns whether it was subscribed."""
        with self._lock:
            if listener not in self._listeners:
                return False
            remaining = list(self._listeners)
            remaining.remove(listener)
            self._listeners = tuple(remaining)
            return True

    def can_execute(self) -> bool:
        """Return whether a call may proceed right now.

        Not a pure read: when the breaker is ``OPEN`` and the recovery timeout
        has elapsed, this moves it to ``HALF_OPEN`` and consumes the first
        probe slot. Every further permitted query while ``HALF_OPEN`` consumes
        one more slot until ``half_open_attempts`` is reached; queries are
        then denied until an outcome is recorded.
        """
        events: list[BreakerEvent] = []
        with self._lock:
            allowed = self._can_execute_locked(_utcnow(), events)
        self._emit(events)
        return allowed

    def is_available(self) -> bool:
        """Evaluate the permission gate without spending a half-open probe slot.

        Used for monitoring. It may still move an ``OPEN`` breaker whose
        recovery timeout has elapsed to ``HALF_OPEN``; that transition takes
        the first probe slot just as it does in ``can_execute()``.
        """
        events: list[BreakerEvent] = []
        with self._lock:
            allowed = self._can_execute_locked(_utcnow(), events, consume=False)
        self._emit(events)
        return allowed

    def require_permission(self) -> None:
        """Raise ``CircuitOpenError`` unless ``can_execute()`` allows a call.

        Raises:
            CircuitOpenError: When the permission query denies the call.
        """
        events: list[BreakerEvent] = []
        with self._lock:
            now = _utcnow()
            allowed = self._can_execute_locked(now, events)
            retry_after_ms = self._retry_after_ms(now)
        self._emit(events)
        if not allowed:
            raise CircuitOpenError(self.name, retry_after_ms=retry_after_ms)

    def record_success(self) -> None:
        """Record a successful guarded call.

        ``HALF_OPEN`` recovers to ``CLOSED``. In ``CLOSED`` one success
        forgives one accumulated failure. ``OPEN`` only counts the success.
        """
        events: list[BreakerEvent] = []
        with self._lock:
            self._success_count += 1
            if self._state == CircuitState.HALF_OPEN:
                self._transition_to_closed(events)
            elif self._state == CircuitState.CLOSED:
                self._failure_count = max(0, self._failure_count - 1)
        self._emit(events)

    def record_failure(self) -> None:
        """Record a failed guarded call and re-arm the recovery timer."""
        events: list[BreakerEvent] = []
        with self._lock:
            self._failure_count += 1
            self._last_failure_at = _utcnow()
            if self._state == CircuitState.HALF_OPEN:
                self._transition_to_open(events)
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            ):
                self._transition_to_open(events)
        self._emit(events)

    def reset(self) -> None:
        """Return to the initial ``CLOSED`` state with every counter at zero."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._success_count = 0
            self._half_open_attempts = 0
            self._last_failure_at = None
        self._emit([CircuitResetEvent(name=self.name)])

    def status(self) -> BreakerStatus:
        """Return state, counters and the result of a permission query.

        Not a pure read: ``can_execute`` is computed like ``is_available()``,
        which may move an ``OPEN`` breaker to ``HALF_OPEN``. It never spends a
        further half-open probe slot. Use
        ``snapshot()`` for a side-effect free view.
        """
        events: list[BreakerEvent] = []
        with self._lock:
            allowed = self._can_execute_locked(_utcnow(), events, consume=False)
            status = BreakerStatus(
                state=self._state,
                failure_count=self._failure_count,
                success_count=self._success_count,
                can_execute=allowed,
            )
        self._emit(events)
        return status

    def snapshot(self) -> BreakerSnapshot:
        """Return a point-in-time view without evaluating the recovery gate."""
        with self._lock:
            return BreakerSnapshot(
                name=self.name,
                state=self._state,
                failure_count=self._failure_count,
                success_count=self._success_count,
                half_open_attempts=self._half_open_attempts,
                last_failure_at=self._last_failure_at,
                retry_after_ms=self._retry_after_ms(_utcnow()),
            )

    def _can_execute_locked(
        self,
        now: datetime,
        events: list[BreakerEvent],
        *,
        consume: bool = True,
    ) -> bool:
        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.OPEN:
            if self._elapsed_since_failure_ms(now) >= self._config.recovery_timeout_ms:
                self._transition_to_half_open(events)
                return True
            return False
        if self._half_open_attempts >= self._config.half_open_attempts:
            return False
        if consume:
            self._half_open_attempts += 1
        return True

    def _elapsed_since_failure_ms(self, now: datetime) -> float:
        if self._last_failure_at is None:
            return math.inf
        return (now - self._last_failure_at).total_seconds() * 1000.0

    def _retry_after_ms(self, now: datetime) -> float:
        if self._state != CircuitState.OPEN:
            return 0.0
        remaining = self._config.recovery_timeout_ms - self._elapsed_since_failure_ms(
            now
        )
        return max(remaining, 0.0)

    def _transition_to_open(self, events: list[BreakerEvent]) -> None:
        if self._state == CircuitState.OPEN:
            return
        self._state = CircuitState.OPEN
        self._half_open_attempts = 0
        events.append(
            CircuitOpenedEvent(
                name=self.name,
                failure_count=self._failure_count,
                threshold=self._config.failure_threshold,
            )
        )

    def _transition_to_closed(self, events: list[BreakerEvent]) -> None:
        if self._state == CircuitState.CLOSED:
            return
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._half_open_attempts = 0
        events.append(
            CircuitClosedEvent(name=self.name, success_count=self._success_count)
        )

    def _transition_to_half_open(self, events: list[BreakerEvent]) -> None:
        if self._state != CircuitState.HALF_OPEN:
            self._state = CircuitState.HALF_OPEN
            self._half_open_attempts = 0
            events.append(CircuitHalfOpenEvent(name=self.name, attempt_number=0))
        # The transition itself consumes the first probe slot.
        self._half_open_attempts += 1

    def _emit(self, events: Sequence[BreakerEvent]) -> None:
        if not events:
            return
        listeners = self._listeners
        with bind_breaker_context(self.name):
            for event in events:
                hook_name = _HOOKS[type(event)]
                for listener in listeners:
                    try:
                        getattr(listener, hook_name)(event)
                    except Exception:
                        log_exception(
                            _logger,
                            "circuit_breaker.listener_failed",
                            breaker=self.name,
                            hook=hook_name,
                        )

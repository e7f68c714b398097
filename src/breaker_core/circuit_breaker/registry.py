"""Keyed collection of circuit breakers, one per dependency name."""

import threading
from collections.abc import Sequence

from breaker_core.circuit_breaker.breaker import (
    DEFAULT_CONFIG,
    CircuitBreaker,
    CircuitBreakerConfig,
)
from breaker_core.circuit_breaker.events import BreakerListener
from breaker_core.circuit_breaker.state import BreakerStatus


class CircuitBreakerRegistry:
    """Lazily create and manage breakers under one default configuration.

    The name to breaker mapping is guarded by a lock. Aggregate operations
    iterate over a copy taken under that lock, so breakers may be added or
    removed concurrently.

    ``status_of_all()``, ``has_available_dependency()`` and
    ``list_available()`` evaluate each breaker's permission gate and can move
    ``OPEN`` breakers to ``HALF_OPEN`` as a side effect. They never spend a
    further half-open probe slot.
    """

    def __init__(
        self,
        default_config: CircuitBreakerConfig | None = None,
        *,
        listeners: Sequence[BreakerListener] | None = None,
    ) -> None:
        """Create an empty registry.

        Args:
            default_config: Configuration for breakers created without one.
                Defaults to ``DEFAULT_CONFIG``.
            listeners: Listener hooks attached to every breaker this registry
                creates.
        """
        self._default_config = (
            DEFAULT_CONFIG if default_config is None else default_config
        )
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    @property
    def default_config(self) -> CircuitBreakerConfig:
        return self._default_config

    def __len__(self) -> int:
        with self._lock:
            return len(self._breakers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._breakers

    def names(self) -> list[str]:
        with self._lock:
            return list(self._breakers)

    def get(self, name: str) -> CircuitBreaker | None:
        """Return the managed breaker for ``name`` without creating one."""
        with self._lock:
            return self._breakers.get(name)

    def get_or_create(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
    ) -> CircuitBreaker:
        """Return the breaker for ``name``, creating it when absent.

        ``config`` only applies on creation; it is ignored when a breaker for
        ``name`` already exists.
        """
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(
                    name,
                    self._default_config if config is None else config,
                    listeners=self._listeners,
                )
                self._breakers[name] = breaker
            return breaker

    def remove(self, name: str) -> bool:
        """Stop managing ``name``. Returns whether a breaker was removed."""
        with self._lock:
            return self._breakers.pop(name, None) is not None

    def reset_all(self) -> None:
        for breaker in self._snapshot_breakers().values():
            breaker.reset()

    def status_of_all(self) -> dict[str, BreakerStatus]:
        """Return each managed breaker's ``status()`` keyed by name."""
        return {
            name: breaker.status()
            for name, breaker in self._snapshot_breakers().items()
        }

    def set_default_config(self, config: CircuitBreakerConfig) -> None:
        """Replace the default used by future ``get_or_create`` calls only."""
        with self._lock:
            self._default_config = config

    def has_available_dependency(self) -> bool:
        """Return True when at least one managed breaker permits a call."""
        return any(
            breaker.is_available() for breaker in self._snapshot_breakers().values()
        )

    def list_available(self) -> list[str]:
        """Return names of managed breakers currently permitting a call."""
        return [
            name
            for name, breaker in self._snapshot_breakers().items()
            if breaker.is_available()
        ]

    def _snapshot_breakers(self) -> dict[str, CircuitBreaker]:
        with self._lock:
            return dict(self._breakers)

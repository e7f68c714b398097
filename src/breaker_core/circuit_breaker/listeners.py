"""Ready-made breaker listeners."""

import structlog

from breaker_core.circuit_breaker.events import (
    BreakerListener,
    CircuitClosedEvent,
    CircuitHalfOpenEvent,
    CircuitOpenedEvent,
    CircuitResetEvent,
)
from breaker_core.logging import StructuredLogger, log_info, log_warning


class LoggingBreakerListener(BreakerListener):
    """Listener that writes one structured log event per notification."""

    def __init__(self, *, logger: StructuredLogger | None = None) -> None:
        """Create a logging listener.

        Args:
            logger: Structured logger to write to. Defaults to a structlog
                logger named after this module.
        """
        self._logger = structlog.get_logger(__name__) if logger is None else logger

    def on_opened(self, event: CircuitOpenedEvent) -> None:
        log_warning(
            self._logger,
            "circuit_breaker.opened",
            breaker=event.name,
            failure_count=event.failure_count,
            threshold=event.threshold,
        )

    def on_closed(self, event: CircuitClosedEvent) -> None:
        log_info(
            self._logger,
            "circuit_breaker.closed",
            breaker=event.name,
            success_count=event.success_count,
        )

    def on_half_open(self, event: CircuitHalfOpenEvent) -> None:
        log_info(
            self._logger,
            "circuit_breaker.half_open",
            breaker=event.name,
            attempt_number=event.attempt_number,
        )

    def on_reset(self, event: CircuitResetEvent) -> None:
        log_info(self._logger, "circuit_breaker.reset", breaker=event.name)

"""Circuit breaker exceptions.

Callers can distinguish between:
  - A call being rejected because the circuit is open.
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class CircuitOpenError(CircuitBreakerError):
    """Raised by ``require_permission()`` when the breaker denies a call.

    Attributes:
        breaker_name: Name of the breaker rejecting the call.
        retry_after_ms: Milliseconds until a half-open probe may be attempted.
            ``0.0`` when the breaker is half-open with no probe slot left.
    """

    def __init__(self, breaker_name: str, retry_after_ms: float) -> None:
        """Initialize a circuit-open exception payload.

        Args:
            breaker_name: Breaker rejecting the call.
            retry_after_ms: Milliseconds until the next probe window opens.
        """
        self.breaker_name = breaker_name
        self.retry_after_ms = retry_after_ms
        super().__init__(
            f"circuit_open: {breaker_name} retry_after={retry_after_ms:g}ms"
        )

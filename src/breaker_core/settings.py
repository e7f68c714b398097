from __future__ import annotations

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from breaker_core.circuit_breaker import CircuitBreakerConfig
from breaker_core.logging import get_log_level_value


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Default breaker configuration loaded from ``BREAKER_*`` variables.

    Nothing in the breaker or registry reads these settings implicitly;
    applications build them and pass ``to_config()`` where they need it.
    """

    model_config = prefixed_settings_config("BREAKER_")

    failure_threshold: int = 5
    recovery_timeout_ms: float = 60_000.0
    half_open_attempts: int = 3
    log_level: str = "INFO"

    @field_validator("failure_threshold", "half_open_attempts")
    @classmethod
    def _validate_positive(cls, value: int, info: ValidationInfo) -> int:
        if value < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return value

    @field_validator("recovery_timeout_ms")
    @classmethod
    def _validate_recovery_timeout(cls, value: float) -> float:
        if value < 0:
            raise ValueError("recovery_timeout_ms must be >= 0")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        get_log_level_value(value)
        return value.strip().upper()

    def to_config(self) -> CircuitBreakerConfig:
        """Build the breaker configuration described by these settings."""
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            recovery_timeout_ms=self.recovery_timeout_ms,
            half_open_attempts=self.half_open_attempts,
        )

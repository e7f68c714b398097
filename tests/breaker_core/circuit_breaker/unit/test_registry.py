import threading

from breaker_core.circuit_breaker import (
    DEFAULT_CONFIG,
    BreakerStatus,
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitResetEvent,
    CircuitState,
)
from tests.breaker_core.support.fakes import FakeClock, RecordingListener


def test_get_or_create_returns_same_instance_and_ignores_second_config() -> None:
    registry = CircuitBreakerRegistry()
    custom = CircuitBreakerConfig(failure_threshold=2)

    first = registry.get_or_create("db", custom)
    second = registry.get_or_create("db", CircuitBreakerConfig(failure_threshold=9))

    assert first is second
    assert second.config == custom
    assert len(registry) == 1
    assert "db" in registry


def test_get_or_create_uses_registry_default_config() -> None:
    default = CircuitBreakerConfig(failure_threshold=7, recovery_timeout_ms=10)
    registry = CircuitBreakerRegistry(default)

    assert registry.default_config == default
    assert registry.get_or_create("db").config == default
    assert CircuitBreakerRegistry().get_or_create("db").config == DEFAULT_CONFIG


def test_get_does_not_create() -> None:
    registry = CircuitBreakerRegistry()

    assert registry.get("db") is None
    breaker = registry.get_or_create("db")
    assert registry.get("db") is breaker
    assert registry.names() == ["db"]


def test_remove_reports_whether_breaker_was_managed() -> None:
    registry = CircuitBreakerRegistry()
    assert registry.remove("missing") is False

    original = registry.get_or_create("db")
    original.record_failure()

    assert registry.remove("db") is True
    assert "db" not in registry

    fresh = registry.get_or_create("db")
    assert fresh is not original
    assert fresh.failure_count == 0


def test_set_default_config_only_affects_future_breakers() -> None:
    registry = CircuitBreakerRegistry()
    existing = registry.get_or_create("db")
    updated = CircuitBreakerConfig(failure_threshold=1)

    registry.set_default_config(updated)

    assert existing.config == DEFAULT_CONFIG
    assert registry.get_or_create("cache").config == updated
    assert registry.default_config == updated


def test_reset_all_resets_every_breaker(recording_listener: RecordingListener) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=1),
        listeners=[recording_listener],
    )
    registry.get_or_create("db").record_failure()
    registry.get_or_create("cache").record_failure()

    registry.reset_all()

    for name in ("db", "cache"):
        breaker = registry.get_or_create(name)
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
    assert ("reset", CircuitResetEvent(name="db")) in recording_listener.events
    assert ("reset", CircuitResetEvent(name="cache")) in recording_listener.events


def test_status_of_all_reports_each_breaker(fake_clock: FakeClock) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=1, recovery_timeout_ms=100)
    )
    registry.get_or_create("healthy").record_success()
    registry.get_or_create("broken").record_failure()

    status = registry.status_of_all()

    assert status == {
        "healthy": BreakerStatus(
            state=CircuitState.CLOSED,
            failure_count=0,
            success_count=1,
            can_execute=True,
        ),
        "broken": BreakerStatus(
            state=CircuitState.OPEN,
            failure_count=1,
            success_count=0,
            can_execute=False,
        ),
    }

    fake_clock.advance_ms(100)
    status = registry.status_of_all()
    assert status["broken"].can_execute is True
    assert registry.get_or_create("broken").state == CircuitState.HALF_OPEN


def test_monitoring_reads_leave_probe_budget_for_callers(
    fake_clock: FakeClock,
) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(
            failure_threshold=1, recovery_timeout_ms=10, half_open_attempts=3
        )
    )
    breaker = registry.get_or_create("db")
    breaker.record_failure()
    fake_clock.advance_ms(10)
    assert breaker.can_execute() is True

    for _ in range(3):
        registry.status_of_all()
        registry.list_available()
        registry.has_available_dependency()

    assert breaker.half_open_attempts == 1
    assert breaker.can_execute() is True
    assert breaker.can_execute() is True
    assert breaker.can_execute() is False


def test_availability_queries(fake_clock: FakeClock) -> None:
    registry = CircuitBreakerRegistry(
        CircuitBreakerConfig(failure_threshold=1, recovery_timeout_ms=100)
    )
    assert registry.has_available_dependency() is False
    assert registry.list_available() == []

    registry.get_or_create("primary").record_failure()
    registry.get_or_create("replica")

    assert registry.has_available_dependency() is True
    assert registry.list_available() == ["replica"]

    registry.get_or_create("replica").record_failure()
    assert registry.has_available_dependency() is False

    fake_clock.advance_ms(100)
    assert sorted(registry.list_available()) == ["primary", "replica"]
    assert registry.get_or_create("primary").state == CircuitState.HALF_OPEN


def test_registry_listeners_attach_to_created_breakers(
    recording_listener: RecordingListener,
) -> None:
    registry = CircuitBreakerRegistry(listeners=[recording_listener])

    registry.get_or_create("db").reset()

    assert recording_listener.events == [("reset", CircuitResetEvent(name="db"))]


def test_concurrent_get_or_create_yields_one_breaker() -> None:
    registry = CircuitBreakerRegistry()
    barrier = threading.Barrier(8)
    seen: list[object] = []
    seen_lock = threading.Lock()

    def _worker() -> None:
        barrier.wait()
        breaker = registry.get_or_create("db")
        with seen_lock:
            seen.append(breaker)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(seen) == 8
    assert all(breaker is seen[0] for breaker in seen)
    assert len(registry) == 1

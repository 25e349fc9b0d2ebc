import json

import pytest

from jobfit.domain.errors import ProviderError, QuotaExceededError
from jobfit.domain.models.monitoring import HealthStatus
from jobfit.infrastructure.monitoring.call_monitor import CallMonitor


def run_calls(monitor: CallMonitor, successes: int, failures: int, error_factory=lambda i: RuntimeError(f"boom {i}")):
    for _ in range(successes):
        monitor.record_call()
        monitor.record_success()
    for i in range(failures):
        monitor.record_call()
        monitor.record_failure(error_factory(i))


@pytest.fixture
def monitor() -> CallMonitor:
    return CallMonitor(max_error_log_size=5)


def test_empty_monitor_is_healthy_with_zero_rates(monitor):
    stats = monitor.get_stats()
    assert stats["total_calls"] == 0
    assert stats["success_rate"] == "0%"
    assert stats["cache_hit_rate"] == "0%"
    assert stats["error_rate"] == "0%"

    health = monitor.get_health()
    assert health.status is HealthStatus.HEALTHY
    assert health.success_rate == "100.00%"
    assert health.recommendations == []


@pytest.mark.parametrize("successes,expected", [
    (4, HealthStatus.CRITICAL),
    (7, HealthStatus.WARNING),
    (9, HealthStatus.HEALTHY),
])
def test_health_follows_success_rate(monitor, successes, expected):
    run_calls(monitor, successes=successes, failures=10 - successes)

    health = monitor.get_health()

    assert health.status is expected
    assert health.success_rate == f"{successes * 10:.2f}%"


def test_critical_health_recommends_checking_provider(monitor):
    run_calls(monitor, successes=4, failures=6)
    recommendations = monitor.get_health().recommendations
    assert "More than 50% of API calls are failing" in recommendations


def test_frequent_quota_errors_raise_a_warning(monitor):
    run_calls(monitor, successes=9, failures=1, error_factory=lambda i: QuotaExceededError("quota", status=429))

    health = monitor.get_health()

    assert monitor.snapshot().quota_errors == 1
    assert monitor.is_quota_error_frequent()
    assert health.status is HealthStatus.WARNING
    assert "Frequent quota errors detected" in health.recommendations


def test_raw_rate_limit_errors_count_as_quota_errors(monitor):
    monitor.record_failure(RuntimeError("429 Too Many Requests"))
    monitor.record_failure(RuntimeError("something else"))
    assert monitor.snapshot().quota_errors == 1


def test_many_retries_raise_a_warning(monitor):
    run_calls(monitor, successes=10, failures=0)
    for _ in range(21):
        monitor.record_retry()

    health = monitor.get_health()

    assert health.status is HealthStatus.WARNING
    assert "High retry rate detected" in health.recommendations


def test_stats_derive_percentages(monitor):
    run_calls(monitor, successes=3, failures=1)
    monitor.record_cache_hit()

    stats = monitor.get_stats()

    assert stats["success_calls"] == 3
    assert stats["failure_calls"] == 1
    assert stats["cache_hits"] == 1
    assert stats["success_rate"] == "75.00%"
    assert stats["cache_hit_rate"] == "25.00%"
    assert stats["error_rate"] == "25.00%"
    assert stats["last_success"] is not None
    assert stats["last_error"] is not None


def test_error_log_is_bounded_and_newest_first(monitor):
    run_calls(monitor, successes=0, failures=8)

    recent = monitor.get_recent_errors(limit=10)

    assert len(recent) == 5
    assert recent[0].message == "boom 7"
    assert recent[-1].message == "boom 3"


def test_classified_failure_keeps_kind_and_status(monitor):
    monitor.record_failure(ProviderError("Groq error: overloaded", status=503, code="overloaded"))

    entry = monitor.get_recent_errors()[0]

    assert entry.kind == "provider_error"
    assert entry.status == 503
    assert entry.code == "overloaded"


def test_reset_zeroes_everything(monitor):
    run_calls(monitor, successes=2, failures=2)
    monitor.record_cache_hit()
    monitor.record_retry()

    monitor.reset()

    snapshot = monitor.snapshot()
    assert snapshot.total_calls == 0
    assert snapshot.cache_hits == 0
    assert snapshot.retries == 0
    assert snapshot.recent_errors == []
    assert snapshot.last_error is None


def test_export_stats_is_json(monitor):
    run_calls(monitor, successes=1, failures=1)
    exported = json.loads(monitor.export_stats())
    assert exported["total_calls"] == 2
    assert exported["recent_errors"][0]["message"] == "boom 0"

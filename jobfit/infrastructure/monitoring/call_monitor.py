"""Provider call monitoring.

Tracks cumulative call volume, outcomes, cache hits, quota errors and
retries for the inference provider, and derives a health assessment from
them. One instance is created by the composition root and handed to every
component that records events.
"""

import json
import logging
import threading
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from jobfit.domain.errors import AnalysisError, QuotaExceededError
from jobfit.domain.models.monitoring import ErrorLogEntry, HealthReport, HealthStatus, MonitorStats
from jobfit.infrastructure.resilience.error_classifier import code_of, is_rate_limit_signal, status_of

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERROR_LOG_SIZE = 50
DEFAULT_RECENT_ERRORS_LIMIT = 10

# Health thresholds
CRITICAL_SUCCESS_RATE = 0.5
WARNING_SUCCESS_RATE = 0.8
QUOTA_ERROR_SHARE = 0.3 # of failed calls
RETRY_TO_SUCCESS_RATIO = 2


def _format_rate(numerator: int, denominator: int) -> str:
    if denominator <= 0:
        return "0%"
    return f"{numerator / denominator * 100:.2f}%"


class CallMonitor:
    """Process-wide counters for the provider dependency."""

    def __init__(self, max_error_log_size: int = DEFAULT_MAX_ERROR_LOG_SIZE):
        self.max_error_log_size = max_error_log_size
        self._lock = threading.Lock()
        self._stats = MonitorStats()
        logger.info(f"CallMonitor initialized (error log size={max_error_log_size})")

    # --- Recording ---

    def record_call(self) -> None:
        """Records a provider call attempt (a cache miss)."""
        with self._lock:
            self._stats.total_calls += 1

    def record_success(self) -> None:
        with self._lock:
            self._stats.success_calls += 1
            self._stats.last_success = datetime.now()

    def record_failure(self, error: BaseException) -> None:
        """Records a surfaced failure and keeps it in the bounded error log."""
        if isinstance(error, AnalysisError):
            is_quota = isinstance(error, QuotaExceededError)
            entry = ErrorLogEntry(
                timestamp=datetime.now(),
                message=error.message,
                status=error.status,
                code=error.code,
                kind=error.kind.value,
            )
        else:
            is_quota = is_rate_limit_signal(error)
            entry = ErrorLogEntry(
                timestamp=datetime.now(),
                message=str(error),
                status=status_of(error),
                code=code_of(error),
            )

        with self._lock:
            self._stats.failure_calls += 1
            self._stats.last_error = entry.timestamp
            if is_quota:
                self._stats.quota_errors += 1
            self._stats.recent_errors.insert(0, entry)
            del self._stats.recent_errors[self.max_error_log_size:]
        logger.debug(f"Recorded provider failure: {entry.kind or type(error).__name__}: {entry.message}")

    def record_cache_hit(self) -> None:
        with self._lock:
            self._stats.cache_hits += 1

    def record_retry(self, *_: Any) -> None:
        """Records one retry. Accepts and ignores the executor's retry event."""
        with self._lock:
            self._stats.retries += 1

    def reset(self) -> None:
        """Zeroes every counter and the error log (operator action)."""
        with self._lock:
            self._stats = MonitorStats()
        logger.info("CallMonitor statistics reset.")

    # --- Introspection ---

    def snapshot(self) -> MonitorStats:
        """A consistent copy of the current counters."""
        with self._lock:
            return replace(self._stats, recent_errors=list(self._stats.recent_errors))

    def get_stats(self) -> Dict[str, Any]:
        """Counters plus derived percentages (``'0%'`` when nothing was called)."""
        stats = self.snapshot()
        data = asdict(stats)
        data["success_rate"] = _format_rate(stats.success_calls, stats.total_calls)
        data["cache_hit_rate"] = _format_rate(stats.cache_hits, stats.total_calls)
        data["error_rate"] = _format_rate(stats.failure_calls, stats.total_calls)
        return data

    def get_recent_errors(self, limit: int = DEFAULT_RECENT_ERRORS_LIMIT) -> List[ErrorLogEntry]:
        with self._lock:
            return self._stats.recent_errors[:limit]

    def is_quota_error_frequent(self, stats: Optional[MonitorStats] = None) -> bool:
        """True when quota errors exceed 30% of failed calls."""
        stats = stats or self.snapshot()
        return (
            stats.failure_calls > 0
            and stats.quota_errors / stats.failure_calls > QUOTA_ERROR_SHARE
        )

    def get_health(self) -> HealthReport:
        """Derives healthy/warning/critical from the cumulative counters."""
        stats = self.snapshot()
        success_rate = stats.success_calls / stats.total_calls if stats.total_calls > 0 else 1.0

        status = HealthStatus.HEALTHY
        recommendations: List[str] = []

        if success_rate < CRITICAL_SUCCESS_RATE:
            status = HealthStatus.CRITICAL
            recommendations.append("More than 50% of API calls are failing")
            recommendations.append("Check the provider's API status and billing")
        elif success_rate < WARNING_SUCCESS_RATE:
            status = HealthStatus.WARNING
            recommendations.append("Success rate is below 80%")
            recommendations.append("Monitor API usage and errors")

        if self.is_quota_error_frequent(stats):
            if status is not HealthStatus.CRITICAL:
                status = HealthStatus.WARNING
            recommendations.append("Frequent quota errors detected")
            recommendations.append("Consider upgrading the provider plan or reducing usage")

        if stats.retries > stats.success_calls * RETRY_TO_SUCCESS_RATIO:
            if status is not HealthStatus.CRITICAL:
                status = HealthStatus.WARNING
            recommendations.append("High retry rate detected")
            recommendations.append("Check network connectivity and API response times")

        return HealthReport(
            status=status,
            success_rate=f"{success_rate * 100:.2f}%",
            recommendations=recommendations,
            last_error=stats.last_error,
            last_success=stats.last_success,
        )

    def export_stats(self) -> str:
        """JSON rendering of ``get_stats()``."""
        return json.dumps(self.get_stats(), indent=2, default=str)

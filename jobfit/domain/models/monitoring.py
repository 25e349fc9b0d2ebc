"""Domain models for provider call monitoring and health reporting."""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


class HealthStatus(str, enum.Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorLogEntry:
    """One entry of the bounded, newest-first failure log."""
    timestamp: datetime
    message: str
    status: Optional[int] = None
    code: Optional[str] = None
    kind: Optional[str] = None # ErrorKind value when the error was classified


@dataclass
class MonitorStats:
    """Cumulative counters for the provider dependency."""
    total_calls: int = 0
    success_calls: int = 0
    failure_calls: int = 0
    cache_hits: int = 0
    quota_errors: int = 0
    retries: int = 0
    last_error: Optional[datetime] = None
    last_success: Optional[datetime] = None
    recent_errors: List[ErrorLogEntry] = field(default_factory=list)


@dataclass(frozen=True)
class HealthReport:
    """Derived tri-state assessment with human-readable recommendations."""
    status: HealthStatus
    success_rate: str
    recommendations: List[str]
    last_error: Optional[datetime] = None
    last_success: Optional[datetime] = None

"""Domain Events related to provider calls and resilience.

Examples include events for when calls are retried, fail, succeed or are
served from the response cache.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a provider call is about to be made."""
    provider: str # e.g., 'openai', 'groq'
    endpoint: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a provider call succeeds."""
    provider: str
    endpoint: str
    latency_ms: float
    response_summary: Optional[Any] = None # e.g., token usage
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a provider call fails definitively (after retries)."""
    provider: str
    endpoint: str
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed operation."""
    attempt_number: int # 1-based number of the attempt that just failed
    max_attempts: int
    delay_seconds: float
    error: BaseException
    operation: str = "operation"
    timestamp: float = field(default_factory=time.time)

@dataclass
class CacheHitRecorded(DomainEvent):
    """Event triggered when an analysis is served from the response cache."""
    cache_key: str
    timestamp: float = field(default_factory=time.time)

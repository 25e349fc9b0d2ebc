"""Concrete implementation of the analysis response cache.

In-memory, time-expiring store keyed by a SHA-256 fingerprint of the
fields that influence an analysis. Expired entries are dropped lazily on
read and by a periodic sweep task owned by the cache itself.
"""

import asyncio
import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from jobfit.domain.interfaces.cache import CacheService
from jobfit.domain.models.analysis import AnalysisResult, CandidateProfile, JobPosting
from jobfit.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

# Default Configuration Constants (overridden from settings by the composition root)
DEFAULT_TTL_SECONDS = 60 * 60  # 1 hour
DEFAULT_SWEEP_INTERVAL_SECONDS = 10 * 60  # 10 minutes
SWEEP_BATCH_SIZE = 256 # keys examined per lock acquisition during a sweep

@dataclass
class CacheEntry:
    """Internal representation of a cache entry with expiry."""
    value: AnalysisResult
    expiry_time: float # Clock timestamp when the entry expires


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _years(value: Any) -> Any:
    """5, 5.0 and "5" all become 5.0; non-numeric text is kept as cleaned text."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return _clean(value)


def fingerprint_fields(profile: CandidateProfile, job: JobPosting) -> Dict[str, Any]:
    """The normalized subset of request fields that participates in the key."""
    return {
        "user": {
            "skills": [_clean(skill) for skill in (profile.skills or [])],
            "experience": _years(profile.experience_years),
            "current_title": _clean(profile.current_title),
            "education": [_clean(item) for item in (profile.education or [])],
        },
        "job": {
            "title": _clean(job.title),
            "description": _clean(job.description),
            "requirements": _clean(job.requirements),
            "company": _clean(job.company),
        },
    }


class ResponseCache(CacheService):
    """Thread-safe TTL cache for analysis results."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initializes the cache.

        Args:
            default_ttl: Lifetime in seconds applied when ``set`` gets no ttl.
            sweep_interval: Seconds between background sweeps.
            max_entries: Optional size bound; oldest inserted entries are
                evicted first. ``None`` means unbounded.
            clock: Time source, injectable for tests.
        """
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self.max_entries = max_entries
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None
        self.hits = 0
        self.misses = 0
        logger.info(
            f"ResponseCache initialized (ttl={default_ttl}s, sweep every {sweep_interval}s, "
            f"max_entries={max_entries or 'unbounded'})"
        )

    # --- CacheService Interface Implementation ---

    def make_key(self, profile: CandidateProfile, job: JobPosting) -> CacheKey:
        """Deterministic SHA-256 over a canonical JSON rendering of the fields."""
        combined = json.dumps(
            fingerprint_fields(profile, job),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        return CacheKey(hashlib.sha256(combined.encode("utf-8")).hexdigest())

    async def get(self, key: CacheKey) -> Optional[AnalysisResult]:
        """Retrieves a live entry; an expired one is removed and reported as a miss."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                logger.debug(f"Cache miss for key: {key[:16]}")
                return None
            if now >= entry.expiry_time:
                del self._entries[key]
                self.misses += 1
                logger.debug(f"Cache entry expired for key: {key[:16]}. Removed.")
                return None
            self.hits += 1
        logger.debug(f"Cache hit for key: {key[:16]}")
        return entry.value

    async def set(self, key: CacheKey, value: AnalysisResult, ttl: Optional[float] = None) -> None:
        """Stores an item; the last writer for a key wins."""
        effective_ttl = self.default_ttl if ttl is None else ttl
        entry = CacheEntry(value=value, expiry_time=self._clock() + effective_ttl)
        with self._lock:
            self._entries.pop(key, None) # re-insert so eviction order follows the latest write
            self._entries[key] = entry
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted_key, _ = self._entries.popitem(last=False)
                    logger.debug(f"Evicted oldest cache entry: {evicted_key[:16]}")
        logger.debug(f"Stored analysis in cache: key={key[:16]}, ttl={effective_ttl}s")

    async def delete(self, key: CacheKey) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Deleted cache entry: key={key[:16]}")

    async def clear(self) -> None:
        """Clears all items from the cache."""
        with self._lock:
            self._entries.clear()
        logger.info("Cleared response cache.")

    def sweep(self) -> int:
        """Removes all expired entries.

        Works on a snapshot of the keys and re-acquires the lock for every
        batch, so concurrent readers are never blocked for a whole sweep.
        """
        now = self._clock()
        with self._lock:
            keys = list(self._entries.keys())
        removed = 0
        for start in range(0, len(keys), SWEEP_BATCH_SIZE):
            with self._lock:
                for key in keys[start:start + SWEEP_BATCH_SIZE]:
                    entry = self._entries.get(key)
                    if entry is not None and now >= entry.expiry_time:
                        del self._entries[key]
                        removed += 1
        if removed:
            logger.info(f"Cache sweep removed {removed} expired entries.")
        return removed

    # --- Background sweep lifecycle ---

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Starts the periodic sweep on the running event loop. Idempotent."""
        if self.is_sweeping:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.debug("Cache sweeper started.")

    async def stop(self) -> None:
        """Cancels the sweep task and waits for it to finish."""
        if self._sweeper is None:
            return
        task, self._sweeper = self._sweeper, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cache sweeper stopped.")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}", exc_info=True)

    async def __aenter__(self) -> "ResponseCache":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # --- Introspection ---

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Size and hit/miss counters of the cache."""
        with self._lock:
            return {
                "size": len(self._entries),
                "ttl_seconds": self.default_ttl,
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }

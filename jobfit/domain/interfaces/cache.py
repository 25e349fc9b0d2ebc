"""Interface for the analysis response cache.

Defines the contract for fingerprinting requests and for storing,
retrieving and expiring previously computed analyses.
"""

import abc
from typing import Optional

from ..models.analysis import AnalysisResult, CandidateProfile, JobPosting
from ..models.common import CacheKey

class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    def make_key(self, profile: CandidateProfile, job: JobPosting) -> CacheKey:
        """Derives the deterministic fingerprint of a request.

        Must be pure and stable across process restarts.
        """
        pass

    @abc.abstractmethod
    async def get(self, key: CacheKey) -> Optional[AnalysisResult]:
        """Retrieves an item from the cache asynchronously.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached item if found and not expired, otherwise None.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: CacheKey, value: AnalysisResult, ttl: Optional[float] = None) -> None:
        """Stores an item, overwriting any existing entry for the key.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live in seconds (uses the cache default if None).
        """
        pass

    @abc.abstractmethod
    async def delete(self, key: CacheKey) -> None:
        pass

    @abc.abstractmethod
    async def clear(self) -> None:
        """Clears all items from the cache asynchronously."""
        pass

    @abc.abstractmethod
    def sweep(self) -> int:
        """Removes every expired entry and returns how many were removed."""
        pass

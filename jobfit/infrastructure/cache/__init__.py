"""Response Cache Implementation.

Provides the in-memory, time-expiring implementation of the CacheService
interface, keyed by a deterministic request fingerprint.
Bounded Context: Cache Management
"""

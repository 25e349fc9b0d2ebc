"""Interface for the persistence collaborator.

Stores finalized (or failed) match analyses keyed by an opaque record id.
Durability, indexing and pagination are left to implementations.
"""

import abc
from typing import List, Optional

from ..models.analysis import MatchRecord
from ..models.common import RecordId, UserId


class MatchRepository(abc.ABC):
    """Abstract Base Class for storing match records."""

    @abc.abstractmethod
    async def save(self, record: MatchRecord) -> RecordId:
        """Persists a record and returns its id."""
        pass

    @abc.abstractmethod
    async def get(self, record_id: RecordId) -> Optional[MatchRecord]:
        pass

    @abc.abstractmethod
    async def list_for_user(self, user_id: UserId, status: Optional[str] = None) -> List[MatchRecord]:
        """Returns a user's records, newest first, optionally filtered by status."""
        pass

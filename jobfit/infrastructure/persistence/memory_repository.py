"""In-process MatchRepository. Records live as long as the process does."""

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

from jobfit.domain.interfaces.repository import MatchRepository
from jobfit.domain.models.analysis import MatchRecord
from jobfit.domain.models.common import RecordId, UserId

logger = logging.getLogger(__name__)

class InMemoryMatchRepository(MatchRepository):

    def __init__(self):
        self._records: Dict[RecordId, MatchRecord] = {}
        self._lock = asyncio.Lock()

    async def save(self, record: MatchRecord) -> RecordId:
        record_id = record.record_id or RecordId(uuid.uuid4().hex)
        async with self._lock:
            self._records[record_id] = replace(record, record_id=record_id)
        logger.debug(f"Saved {record.status} match record {record_id} for user {record.user_id}")
        return record_id

    async def get(self, record_id: RecordId) -> Optional[MatchRecord]:
        async with self._lock:
            return self._records.get(record_id)

    async def list_for_user(self, user_id: UserId, status: Optional[str] = None) -> List[MatchRecord]:
        async with self._lock:
            records = [
                r for r in self._records.values()
                if r.user_id == user_id and (status is None or r.status == status)
            ]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

"""
Application service for job-match requests from a user.

Validates the posting, runs the analysis and records the outcome (analyzed
or error) with the persistence collaborator.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from jobfit.core.services.analysis_service import AnalysisService
from jobfit.domain.errors import AnalysisError
from jobfit.domain.interfaces.repository import MatchRepository
from jobfit.domain.models.analysis import CandidateProfile, JobPosting, MatchRecord
from jobfit.domain.models.common import UserId

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"
STATUS_ANALYZED = "analyzed"
STATUS_ERROR = "error"


class JobMatchService:
    """Runs analyses on behalf of users and keeps a history of them."""

    def __init__(self, analysis_service: AnalysisService, repository: MatchRepository):
        self.analysis_service = analysis_service
        self.repository = repository

    async def analyze_manual_entry(
        self, user_id: UserId, profile: CandidateProfile, job: JobPosting
    ) -> MatchRecord:
        """Analyzes a manually entered posting and stores the outcome.

        Raises:
            ValueError: If the job title or description is missing.
            AnalysisError: If the analysis failed; an error record is stored first.
        """
        if not job.title.strip() or not job.description.strip():
            raise ValueError("Job title and description are required")

        job = replace(
            job,
            company=job.company or NOT_SPECIFIED,
            location=job.location or NOT_SPECIFIED,
        )

        try:
            result = await self.analysis_service.analyze(profile, job)
        except AnalysisError as e:
            logger.error(f"Job match analysis failed for user {user_id}: {e.message}")
            await self.repository.save(MatchRecord(
                user_id=user_id, job=job, status=STATUS_ERROR, error=e.message,
            ))
            raise

        record = MatchRecord(
            user_id=user_id,
            job=job,
            status=STATUS_ANALYZED,
            result=result,
            analyzed_at=datetime.now(),
        )
        record.record_id = await self.repository.save(record)
        return record

    async def history(self, user_id: UserId, status: Optional[str] = STATUS_ANALYZED) -> List[MatchRecord]:
        """A user's stored analyses, newest first."""
        return await self.repository.list_for_user(user_id, status=status)

import asyncio
from dataclasses import replace

import pytest
from unittest.mock import AsyncMock, MagicMock

from jobfit.core.services.analysis_service import AnalysisService
from jobfit.core.services.job_match_service import JobMatchService
from jobfit.domain.errors import ProviderError
from jobfit.domain.models.analysis import AnalysisResult
from jobfit.infrastructure.persistence.memory_repository import InMemoryMatchRepository


@pytest.fixture
def analysis_service():
    mock = MagicMock(spec=AnalysisService)
    mock.analyze = AsyncMock(return_value=AnalysisResult(match_score=77, strengths=("Python",)))
    return mock


@pytest.fixture
def repository():
    return InMemoryMatchRepository()


@pytest.fixture
def service(analysis_service, repository):
    return JobMatchService(analysis_service=analysis_service, repository=repository)


def test_successful_analysis_is_stored(service, repository, profile, job):
    record = asyncio.run(service.analyze_manual_entry("u1", profile, replace(job, location="")))

    assert record.status == "analyzed"
    assert record.result.match_score == 77
    assert record.analyzed_at is not None
    assert record.job.location == "Not specified"
    assert record.job.company == "Acme"
    stored = asyncio.run(repository.get(record.record_id))
    assert stored.status == "analyzed"


@pytest.mark.parametrize("changes", [{"title": ""}, {"description": "   "}])
def test_title_and_description_are_required(service, analysis_service, profile, job, changes):
    with pytest.raises(ValueError, match="Job title and description are required"):
        asyncio.run(service.analyze_manual_entry("u1", profile, replace(job, **changes)))
    analysis_service.analyze.assert_not_awaited()


def test_failed_analysis_stores_error_record_and_reraises(service, analysis_service, profile, job):
    analysis_service.analyze.side_effect = ProviderError("Groq error: overloaded", status=503)

    with pytest.raises(ProviderError):
        asyncio.run(service.analyze_manual_entry("u1", profile, job))

    errors = asyncio.run(service.history("u1", status="error"))
    assert len(errors) == 1
    assert errors[0].error == "Groq error: overloaded"
    assert asyncio.run(service.history("u1")) == []

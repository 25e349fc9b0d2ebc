"""
Core service for job-match analysis requests.

Coordinates the response cache, the provider call (through the backoff
executor), classification of provider failures, response parsing and the
call monitor:

    cache check -> [hit] done
                -> [miss] provider call (with retries) -> parse -> cache write -> done
                                                       -> classify error -> record -> raise
"""

import logging
import time
from typing import Any, List, Optional

from jobfit.domain.errors import AnalysisError
from jobfit.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    CacheHitRecorded,
    DomainEvent,
)
from jobfit.domain.interfaces.ai_model import AIModel
from jobfit.domain.interfaces.cache import CacheService
from jobfit.domain.models.ai import ChatMessage, StructuredAIResponse
from jobfit.domain.models.analysis import AnalysisResult, CandidateProfile, JobPosting
from jobfit.domain.models.common import MessageRole, PromptText
from jobfit.infrastructure.agents.response_parser import AnalysisResponseParser
from jobfit.infrastructure.monitoring.call_monitor import CallMonitor
from jobfit.infrastructure.resilience.api_retry import BackoffExecutor, RetryPolicy
from jobfit.infrastructure.resilience.error_classifier import classify_provider_error, is_retryable_error

logger = logging.getLogger(__name__)

ENDPOINT_NAME = "chat.completions"

SYSTEM_INSTRUCTION = (
    "You are an expert career advisor and HR professional with deep knowledge of job "
    "matching and candidate assessment. Analyze the job-candidate fit objectively and "
    "provide actionable insights."
)

RESPONSE_FORMAT_INSTRUCTIONS = """Please analyze the match and provide a response in the following EXACT format:

MATCHING_PERCENTAGE: [number between 0-100]

STRENGTHS:
- [strength 1]
- [strength 2]
- [strength 3]
(list 3-5 key strengths that make this candidate a good fit)

AREAS_TO_IMPROVE:
- [area 1]
- [area 2]
- [area 3]
(list 3-5 areas where the candidate could improve to better fit this role)

DETAILED_ANALYSIS:
[A comprehensive paragraph (150-250 words) covering overall fit, why the matching
percentage was assigned, key alignment points, critical gaps and recommendations.]

Base the matching percentage on: skills match (40%), experience relevance (30%),
education/certifications (15%), and soft skills/preferences (15%).
Keep STRENGTHS and AREAS_TO_IMPROVE concise (one line each)."""


def default_retry_policy() -> RetryPolicy:
    """3 attempts, 2s base delay, 30s cap, retrying rate limits and transient transport faults."""
    return RetryPolicy(
        max_attempts=3,
        base_delay_s=2.0,
        max_delay_s=30.0,
        retry_predicate=is_retryable_error,
    )


def _line(label: str, value: Any) -> Optional[str]:
    if value in (None, "", [], ()):
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value)
    return f"- {label}: {value}"


def build_user_prompt(profile: CandidateProfile, job: JobPosting) -> PromptText:
    """Plain rendering of the profile and posting followed by the output format."""
    candidate_lines = [
        _line("Name", profile.name),
        _line("Location", profile.location),
        _line("Current Title", profile.current_title),
        _line("Current Company", profile.current_company),
        _line("Years of Experience", profile.experience_years),
        _line("Industry", profile.industry),
        _line("Technical Skills", profile.skills),
        _line("Soft Skills", profile.soft_skills),
        _line("Education", profile.education),
        _line("Certifications", profile.certifications),
        _line("Desired Roles", profile.desired_roles),
    ]
    job_lines = [
        _line("Job Title", job.title),
        _line("Company", job.company),
        _line("Location", job.location),
        _line("Requirements", job.requirements),
    ]
    sections = [
        "I need you to analyze the fit between a candidate's profile and a job posting.",
        "**Candidate Profile:**\n" + "\n".join(line for line in candidate_lines if line),
        "**Job Posting Details:**\n" + "\n".join(line for line in job_lines if line),
    ]
    if job.description:
        sections.append(f"**Job Description:**\n{job.description}")
    sections.append(RESPONSE_FORMAT_INSTRUCTIONS)
    return PromptText("\n\n".join(sections))


class AnalysisService:
    """Orchestrates a cached, retried, monitored job-match analysis."""

    def __init__(
        self,
        ai_model: AIModel,
        cache_service: CacheService,
        monitor: CallMonitor,
        executor: Optional[BackoffExecutor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        parser: Optional[AnalysisResponseParser] = None,
        cache_ttl: Optional[float] = None,
    ):
        """Initializes the AnalysisService with its dependencies.

        Args:
            ai_model: Provider adapter used on cache misses.
            cache_service: Shared response cache.
            monitor: Shared call monitor.
            executor: Backoff executor (a default one is created if None).
            retry_policy: Policy for provider calls (``default_retry_policy()`` if None).
            parser: Completion parser.
            cache_ttl: TTL for written entries (the cache default if None).
        """
        self.ai_model = ai_model
        self.cache_service = cache_service
        self.monitor = monitor
        self.executor = executor or BackoffExecutor()
        self.retry_policy = retry_policy or default_retry_policy()
        self.parser = parser or AnalysisResponseParser()
        self.cache_ttl = cache_ttl
        self.provider_name = getattr(ai_model, "provider_name", ai_model.__class__.__name__)
        logger.info(
            f"AnalysisService initialized with AI model: {ai_model.__class__.__name__} "
            f"(max_attempts={self.retry_policy.max_attempts})"
        )

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")

    def build_messages(self, profile: CandidateProfile, job: JobPosting) -> List[ChatMessage]:
        return [
            {"role": MessageRole("system"), "content": SYSTEM_INSTRUCTION},
            {"role": MessageRole("user"), "content": build_user_prompt(profile, job)},
        ]

    async def _call_provider(self, messages: List[ChatMessage]) -> StructuredAIResponse:
        async def send() -> StructuredAIResponse:
            self._dispatch_event(ApiCallInitiated(provider=self.provider_name, endpoint=ENDPOINT_NAME))
            return await self.ai_model.send_messages(messages)

        return await self.executor.execute(
            send,
            self.retry_policy,
            on_retry=self.monitor.record_retry,
            operation_name=f"{self.provider_name}.{ENDPOINT_NAME}",
        )

    async def analyze(self, profile: CandidateProfile, job: JobPosting) -> AnalysisResult:
        """Returns the analysis for ``(profile, job)``, from cache when possible.

        Raises:
            AnalysisError: A classified provider failure (QuotaExceededError,
                AuthenticationFailedError, InvalidRequestError,
                ProviderUnreachableError or ProviderError), already recorded
                in the monitor.
        """
        # 1. Cache check
        cache_key = self.cache_service.make_key(profile, job)
        cached_result = await self.cache_service.get(cache_key)
        if cached_result is not None:
            self.monitor.record_cache_hit()
            self._dispatch_event(CacheHitRecorded(cache_key=cache_key))
            logger.info(f"Analysis cache hit for key: {cache_key[:16]}")
            return cached_result
        logger.info(f"Analysis cache miss for key: {cache_key[:16]}")

        # 2. Provider call with retries
        self.monitor.record_call()
        start_time = time.perf_counter()
        try:
            response = await self._call_provider(self.build_messages(profile, job))
        except Exception as e:
            error: AnalysisError = classify_provider_error(e, provider=self.provider_name)
            self.monitor.record_failure(error)
            self._dispatch_event(ApiCallFailed(
                provider=self.provider_name,
                endpoint=ENDPOINT_NAME,
                error_type=type(error).__name__,
                error_message=error.message,
            ))
            logger.error(f"Analysis failed ({error.kind.value}): {error.message}")
            if error is e:
                raise
            raise error from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        self._dispatch_event(ApiCallSucceeded(
            provider=self.provider_name,
            endpoint=ENDPOINT_NAME,
            latency_ms=latency_ms,
            response_summary=response.token_usage,
        ))

        # 3. Parse (never raises) and cache
        result = self.parser.process_response(response)
        if result.degraded:
            logger.warning("Provider completion was only partially parseable; returning degraded analysis.")
        await self.cache_service.set(cache_key, result, ttl=self.cache_ttl)
        self.monitor.record_success()
        logger.info(f"Analysis completed: match_score={result.match_score} (cached under {cache_key[:16]})")
        return result

import asyncio
import time
from dataclasses import replace
from typing import Iterable, List

import pytest
from unittest.mock import MagicMock

from jobfit.core.services.analysis_service import (
    AnalysisService,
    build_user_prompt,
    default_retry_policy,
)
from jobfit.domain.errors import AuthenticationFailedError, QuotaExceededError
from jobfit.domain.interfaces.ai_model import AIModel
from jobfit.domain.models.ai import ChatMessage, StructuredAIResponse
from jobfit.infrastructure.cache.caching_service import ResponseCache
from jobfit.infrastructure.monitoring.call_monitor import CallMonitor
from jobfit.infrastructure.resilience.api_retry import BackoffExecutor, RetryPolicy
from jobfit.infrastructure.resilience.error_classifier import is_retryable_error


class ScriptedModel(AIModel):
    """Returns (or raises) the scripted outcomes in order."""

    provider_name = "scripted"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: List[List[ChatMessage]] = []

    async def send_messages(self, messages: List[ChatMessage]) -> StructuredAIResponse:
        self.calls.append(messages)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return StructuredAIResponse(content=outcome)


class TitleAwareModel(AIModel):
    """Answers every prompt after a short latency; listed job titles are rate limited once."""

    provider_name = "scripted"

    def __init__(self, completion: str, rate_limited: Iterable[str] = (), latency: float = 0.05):
        self.completion = completion
        self.pending_rate_limits = set(rate_limited)
        self.latency = latency
        self.calls = 0
        self.in_flight = 0
        self.peak_in_flight = 0

    async def send_messages(self, messages: List[ChatMessage]) -> StructuredAIResponse:
        self.calls += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
            prompt = messages[-1]["content"]
            for title in list(self.pending_rate_limits):
                if title in prompt:
                    self.pending_rate_limits.discard(title)
                    raise RuntimeError("429 Too Many Requests")
            return StructuredAIResponse(content=self.completion)
        finally:
            self.in_flight -= 1


class AuthError(Exception):
    status_code = 401


@pytest.fixture
def monitor() -> CallMonitor:
    return CallMonitor()


@pytest.fixture
def cache(clock) -> ResponseCache:
    return ResponseCache(default_ttl=3600, clock=clock)


def make_service(model, cache, monitor, recorded_sleeps):
    return AnalysisService(
        ai_model=model,
        cache_service=cache,
        monitor=monitor,
        executor=BackoffExecutor(sleep=recorded_sleeps),
    )


def test_cache_miss_calls_provider_then_hit_is_served_from_cache(
    profile, job, cache, monitor, recorded_sleeps, completion_text
):
    model = ScriptedModel(completion_text)
    service = make_service(model, cache, monitor, recorded_sleeps)

    first = asyncio.run(service.analyze(profile, job))
    second = asyncio.run(service.analyze(profile, job))

    assert first.match_score == 82
    assert second == first
    assert len(model.calls) == 1
    stats = monitor.snapshot()
    assert stats.total_calls == 1
    assert stats.success_calls == 1
    assert stats.cache_hits == 1
    assert len(cache) == 1


def test_prompt_contains_profile_and_job(profile, job, cache, monitor, recorded_sleeps, completion_text):
    model = ScriptedModel(completion_text)
    asyncio.run(make_service(model, cache, monitor, recorded_sleeps).analyze(profile, job))

    system, user = model.calls[0]
    assert system["role"] == "system"
    assert user["role"] == "user"
    assert "Senior Python Engineer" in user["content"]
    assert "Python, PostgreSQL, Docker" in user["content"]
    assert "MATCHING_PERCENTAGE" in user["content"]


def test_rate_limit_is_retried_and_counted(profile, job, cache, monitor, recorded_sleeps, completion_text):
    model = ScriptedModel(RuntimeError("429 Too Many Requests"), completion_text)
    service = make_service(model, cache, monitor, recorded_sleeps)

    result = asyncio.run(service.analyze(profile, job))

    assert result.match_score == 82
    assert len(model.calls) == 2
    assert len(recorded_sleeps.delays) == 1
    stats = monitor.snapshot()
    assert stats.retries == 1
    assert stats.total_calls == 1
    assert stats.success_calls == 1
    assert stats.failure_calls == 0


def test_exhausted_retries_surface_quota_error(profile, job, cache, monitor, recorded_sleeps):
    original = RuntimeError("Rate limit reached")
    model = ScriptedModel(original, original, original)
    service = make_service(model, cache, monitor, recorded_sleeps)

    with pytest.raises(QuotaExceededError) as exc_info:
        asyncio.run(service.analyze(profile, job))

    assert exc_info.value.__cause__ is original
    assert len(model.calls) == 3
    stats = monitor.snapshot()
    assert stats.failure_calls == 1
    assert stats.quota_errors == 1
    assert stats.retries == 2
    assert stats.recent_errors[0].kind == "quota_exceeded"
    assert len(cache) == 0


def test_authentication_failure_is_not_retried(profile, job, cache, monitor, recorded_sleeps):
    model = ScriptedModel(AuthError("invalid key"))
    service = make_service(model, cache, monitor, recorded_sleeps)

    with pytest.raises(AuthenticationFailedError):
        asyncio.run(service.analyze(profile, job))

    assert len(model.calls) == 1
    assert recorded_sleeps.delays == []
    assert monitor.snapshot().failure_calls == 1


def test_unparseable_completion_is_degraded_but_cached(profile, job, cache, monitor, recorded_sleeps):
    model = ScriptedModel("I cannot follow formats today.")
    service = make_service(model, cache, monitor, recorded_sleeps)

    result = asyncio.run(service.analyze(profile, job))

    assert result.degraded
    assert result.match_score == 50
    assert monitor.snapshot().success_calls == 1
    assert len(cache) == 1


def test_custom_cache_ttl_is_passed_to_the_cache(profile, job, monitor, completion_text):
    cache = MagicMock(spec=ResponseCache)
    cache.make_key.return_value = "key"
    cache.get.return_value = None
    service = AnalysisService(ai_model=ScriptedModel(completion_text), cache_service=cache, monitor=monitor, cache_ttl=30)

    asyncio.run(service.analyze(profile, job))

    cache.set.assert_awaited_once()
    assert cache.set.await_args.kwargs["ttl"] == 30


def test_default_retry_policy_values():
    policy = default_retry_policy()
    assert (policy.max_attempts, policy.base_delay_s, policy.max_delay_s) == (3, 2.0, 30.0)


def test_build_user_prompt_skips_empty_fields(profile, job):
    prompt = build_user_prompt(profile, job)
    assert "Certifications" not in prompt
    assert "Years of Experience: 5" in prompt


def test_concurrent_analyses_share_cache_and_monitor(profile, job, cache, monitor, completion_text):
    jobs = [replace(job, title=f"Platform Engineer {i:02d}") for i in range(20)]
    model = TitleAwareModel(completion_text, rate_limited={"Platform Engineer 07"})
    service = AnalysisService(
        ai_model=model,
        cache_service=cache,
        monitor=monitor,
        executor=BackoffExecutor(rng=lambda: 0.0),
        retry_policy=RetryPolicy(max_attempts=3, base_delay_s=0.2, max_delay_s=1.0,
                                 retry_predicate=is_retryable_error),
    )

    async def analyze_all():
        started = time.perf_counter()
        results = await asyncio.gather(*(service.analyze(profile, posting) for posting in jobs))
        return results, time.perf_counter() - started

    results, elapsed = asyncio.run(analyze_all())

    assert [r.match_score for r in results] == [82] * 20
    stats = monitor.snapshot()
    assert stats.total_calls == 20
    assert stats.success_calls == 20
    assert stats.failure_calls == 0
    assert stats.retries == 1
    assert model.calls == 21
    assert model.peak_in_flight > 1
    assert len(cache) == 20
    # One backoff (0.2s) plus two provider round trips; serial calls would take over 1s
    assert 0.2 <= elapsed < 0.8

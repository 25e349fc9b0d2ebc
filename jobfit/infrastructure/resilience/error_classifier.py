"""Translates provider SDK failures into the domain error taxonomy.

This is the only place where provider-specific signals (HTTP-like status
codes, provider error codes, transport errno names, message fragments) are
inspected. Callers get back a tagged ``AnalysisError`` and a retry verdict.
"""

import asyncio
import errno
import logging
import socket
from typing import Iterator, Optional

import groq
import openai

from jobfit.domain.errors import (
    AnalysisError,
    AuthenticationFailedError,
    InvalidRequestError,
    ProviderError,
    ProviderUnreachableError,
    QuotaExceededError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
AUTH_STATUS = 401
INVALID_REQUEST_STATUSES = (400, 422)

QUOTA_CODES = frozenset({"rate_limit_exceeded", "insufficient_quota"})
QUOTA_MESSAGE_MARKERS = ("429", "rate limit", "quota")
AUTH_CODES = frozenset({"invalid_api_key"})

# Transport faults worth another attempt
RETRYABLE_TRANSPORT_CODES = frozenset({"ECONNRESET", "ETIMEDOUT"})
# Every transport fault that means "we never got an answer"
TRANSPORT_CODES = RETRYABLE_TRANSPORT_CODES | frozenset({
    "ECONNREFUSED", "ENOTFOUND", "EHOSTUNREACH", "ENETUNREACH", "EAI_AGAIN",
})

TIMEOUT_ERRORS = (openai.APITimeoutError, groq.APITimeoutError, TimeoutError, asyncio.TimeoutError)
SDK_CONNECTION_ERRORS = (openai.APIConnectionError, groq.APIConnectionError)
CONNECTION_ERRORS = SDK_CONNECTION_ERRORS + (ConnectionError, socket.gaierror)
RATE_LIMIT_ERRORS = (openai.RateLimitError, groq.RateLimitError)
AUTH_ERRORS = (openai.AuthenticationError, groq.AuthenticationError)
BAD_REQUEST_ERRORS = (
    openai.BadRequestError, groq.BadRequestError,
    openai.UnprocessableEntityError, groq.UnprocessableEntityError,
)


# --- Signal extraction ---

def _error_chain(error: BaseException) -> Iterator[BaseException]:
    """Yields the error and its causes (SDK errors wrap the transport error)."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def status_of(error: BaseException) -> Optional[int]:
    """HTTP-like status carried by the error, if any."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def code_of(error: BaseException) -> Optional[str]:
    """Provider error code (e.g. 'insufficient_quota') or errno name (e.g. 'ECONNRESET')."""
    code = getattr(error, "code", None)
    if isinstance(code, str) and code:
        return code
    if isinstance(error, OSError) and isinstance(error.errno, int):
        return errno.errorcode.get(error.errno)
    return None


def _transport_codes(error: BaseException) -> set:
    codes = set()
    for link in _error_chain(error):
        code = code_of(link)
        if code and code.upper() in TRANSPORT_CODES:
            codes.add(code.upper())
    return codes


def is_rate_limit_signal(error: BaseException) -> bool:
    """True for explicit 429s, quota/rate-limit codes, or messages saying so."""
    if isinstance(error, QuotaExceededError) or isinstance(error, RATE_LIMIT_ERRORS):
        return True
    if status_of(error) == RATE_LIMIT_STATUS:
        return True
    code = code_of(error)
    if code and code.lower() in QUOTA_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_MESSAGE_MARKERS)


def is_transport_failure(error: BaseException) -> bool:
    if isinstance(error, ProviderUnreachableError):
        return True
    for link in _error_chain(error):
        if isinstance(link, TIMEOUT_ERRORS) or isinstance(link, CONNECTION_ERRORS):
            return True
    return bool(_transport_codes(error))


def is_retryable_transport_failure(error: BaseException) -> bool:
    """Connection resets and timeouts; refused or unresolvable hosts are not retried.

    An SDK connection error with no recognizable cause counts as retryable.
    """
    chain = list(_error_chain(error))
    for link in chain:
        if isinstance(link, TIMEOUT_ERRORS) or isinstance(link, ConnectionResetError):
            return True
    codes = _transport_codes(error)
    if codes:
        return bool(codes & RETRYABLE_TRANSPORT_CODES)
    if any(isinstance(link, (ConnectionError, socket.gaierror)) for link in chain):
        return False
    return any(isinstance(link, SDK_CONNECTION_ERRORS) for link in chain)


def is_retryable_error(error: BaseException) -> bool:
    """Default retry predicate for provider calls.

    Rate limits, quota exhaustion and transient transport faults are retried;
    everything else (auth, malformed requests, unknown failures) is not.
    """
    if isinstance(error, AnalysisError):
        if isinstance(error, ProviderUnreachableError):
            if error.original is not None:
                return is_retryable_transport_failure(error.original)
            return error.code in RETRYABLE_TRANSPORT_CODES
        return isinstance(error, QuotaExceededError)
    if isinstance(error, AUTH_ERRORS) or isinstance(error, BAD_REQUEST_ERRORS):
        return False
    if status_of(error) in (AUTH_STATUS,) + INVALID_REQUEST_STATUSES:
        return False
    return is_rate_limit_signal(error) or is_retryable_transport_failure(error)


# --- Classification ---

def classify_provider_error(error: BaseException, provider: str = "AI provider") -> AnalysisError:
    """Maps a provider failure onto the domain taxonomy, in priority order:
    rate limit/quota, authentication, malformed request, transport, other.
    """
    if isinstance(error, AnalysisError):
        return error

    status = status_of(error)
    code = code_of(error)
    detail = str(error) or type(error).__name__

    if is_rate_limit_signal(error):
        if code == "insufficient_quota" or "quota" in detail.lower():
            message = f"{provider} quota exceeded. Please check your plan and billing details or try again later."
        else:
            message = f"{provider} rate limit exceeded (429). Please retry later."
        return QuotaExceededError(message, status=status or RATE_LIMIT_STATUS, code=code, original=error)

    if status == AUTH_STATUS or isinstance(error, AUTH_ERRORS) or (code and code.lower() in AUTH_CODES):
        return AuthenticationFailedError(
            f"{provider} authentication failed. Please check your API key.",
            status=status or AUTH_STATUS, code=code, original=error,
        )

    if status in INVALID_REQUEST_STATUSES or isinstance(error, BAD_REQUEST_ERRORS):
        return InvalidRequestError(f"{provider} rejected the request as invalid: {detail}",
                                   status=status, code=code, original=error)

    if is_transport_failure(error):
        transport_code = next(iter(sorted(_transport_codes(error))), None)
        return ProviderUnreachableError(
            f"Unable to connect to {provider}. Please check your internet connection. ({detail})",
            status=status, code=code or transport_code, original=error,
        )

    return ProviderError(f"{provider} error: {detail}", status=status, code=code, original=error)

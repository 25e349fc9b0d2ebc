"""Domain error taxonomy for provider failures.

Every failure that leaves the analysis layer is one of the five kinds below.
Provider SDK exceptions are translated into these at a single boundary
(``jobfit.infrastructure.resilience.error_classifier``); everything past that
boundary dispatches on ``ErrorKind`` instead of inspecting messages.
"""

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Tag identifying the class of a provider failure."""
    QUOTA_EXCEEDED = "quota_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"
    INVALID_REQUEST = "invalid_request"
    PROVIDER_UNREACHABLE = "provider_unreachable"
    PROVIDER_ERROR = "provider_error"

    @property
    def suggested_http_status(self) -> int:
        """Status a web caller would typically answer with. Advisory only."""
        return _SUGGESTED_HTTP_STATUS[self]


_SUGGESTED_HTTP_STATUS = {
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.AUTHENTICATION_FAILED: 500, # misconfigured key, not the end user's fault
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.PROVIDER_UNREACHABLE: 503,
    ErrorKind.PROVIDER_ERROR: 502,
}


class AnalysisError(Exception):
    """Base class for classified provider failures."""

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        original: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.original = original

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status!r}, message={self.message!r})"


class QuotaExceededError(AnalysisError):
    """Provider reported rate limiting or exhausted quota."""
    kind = ErrorKind.QUOTA_EXCEEDED


class AuthenticationFailedError(AnalysisError):
    """Provider rejected the credentials."""
    kind = ErrorKind.AUTHENTICATION_FAILED


class InvalidRequestError(AnalysisError):
    """Provider rejected the request as malformed."""
    kind = ErrorKind.INVALID_REQUEST


class ProviderUnreachableError(AnalysisError):
    """The provider could not be reached over the network."""
    kind = ErrorKind.PROVIDER_UNREACHABLE


class ProviderError(AnalysisError):
    """Any other provider failure; carries the original message."""
    kind = ErrorKind.PROVIDER_ERROR


ERROR_TYPES = {
    error_type.kind: error_type
    for error_type in (
        QuotaExceededError,
        AuthenticationFailedError,
        InvalidRequestError,
        ProviderUnreachableError,
        ProviderError,
    )
}

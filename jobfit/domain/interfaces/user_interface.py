"""Interface for interacting with the user (output only).

Defines the contract for displaying analysis results, monitor reports,
errors and informational messages, allowing different UI implementations
(e.g., console, web).
"""

import abc
from typing import Any, Dict

from jobfit.domain.models.analysis import AnalysisResult, JobPosting
from jobfit.domain.models.monitoring import HealthReport

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_analysis(self, job: JobPosting, result: AnalysisResult, **kwargs: Any) -> None:
        """Displays one job-match analysis.

        Args:
            job: The posting that was analyzed.
            result: The parsed analysis.
            **kwargs: Additional arguments for formatting (e.g., from_cache).
        """
        pass

    @abc.abstractmethod
    def display_health(self, report: HealthReport) -> None:
        """Displays the provider health assessment."""
        pass

    @abc.abstractmethod
    def display_stats(self, stats: Dict[str, Any]) -> None:
        """Displays a monitor statistics snapshot."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates the
work to the job-match service; reports come from the call monitor.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from jobfit.core.services.job_match_service import JobMatchService
from jobfit.domain.errors import AnalysisError
from jobfit.domain.interfaces.user_interface import UserInterface
from jobfit.domain.models.analysis import CandidateProfile, JobPosting
from jobfit.domain.models.common import UserId
from jobfit.infrastructure.monitoring.call_monitor import CallMonitor

logger = logging.getLogger(__name__)

CLI_USER_ID = UserId("cli")


def _read_json(path: Path) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} must contain a JSON object")
    return data


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        job_match_service: JobMatchService,
        monitor: CallMonitor,
        ui: UserInterface,
    ):
        self.job_match_service = job_match_service
        self.monitor = monitor
        self.ui = ui

    async def handle_analyze(self, profile_path: Path, job_paths: List[Path]) -> int:
        """Analyzes every job file against the profile file.

        Returns:
            The number of jobs that could not be analyzed.
        """
        logger.info(f"Handling 'analyze' command: profile={profile_path}, jobs={len(job_paths)}")
        try:
            profile = CandidateProfile.from_dict(_read_json(profile_path))
        except (OSError, ValueError) as e:
            logger.error(f"Could not load profile {profile_path}: {e}")
            self.ui.display_error(f"Could not load profile: {e}")
            return len(job_paths)

        failures = 0
        for job_path in job_paths:
            try:
                job = JobPosting.from_dict(_read_json(job_path))
            except (OSError, ValueError) as e:
                logger.error(f"Could not load job {job_path}: {e}")
                self.ui.display_error(f"Could not load job {job_path.name}: {e}")
                failures += 1
                continue

            hits_before = self.monitor.snapshot().cache_hits
            try:
                record = await self.job_match_service.analyze_manual_entry(CLI_USER_ID, profile, job)
            except ValueError as e:
                self.ui.display_warning(f"{job_path.name}: {e}")
                failures += 1
                continue
            except AnalysisError as e:
                self.ui.display_error(
                    f"Analysis of '{job.title}' failed ({e.kind.value}, "
                    f"HTTP {e.kind.suggested_http_status}): {e.message}"
                )
                failures += 1
                continue

            from_cache = self.monitor.snapshot().cache_hits > hits_before
            self.ui.display_analysis(record.job, record.result, from_cache=from_cache)

        return failures

    def handle_report(self, show_health: bool = False, stats_path: Optional[Path] = None) -> None:
        """Renders the call statistics gathered by this run.

        Args:
            show_health: Also render the provider health assessment.
            stats_path: When set, the statistics are also written there as JSON.
        """
        self.ui.display_stats(self.monitor.get_stats())
        if show_health:
            self.ui.display_health(self.monitor.get_health())
        if stats_path is None:
            return
        try:
            with open(stats_path, "w", encoding="utf-8") as f:
                f.write(self.monitor.export_stats())
            self.ui.display_info(f"Call statistics written to {stats_path}")
        except OSError as e:
            logger.error(f"Failed to write statistics to {stats_path}: {e}")
            self.ui.display_error(f"Could not write statistics: {e}")

import logging
from typing import Any, Dict, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from jobfit.domain.interfaces.user_interface import UserInterface
from jobfit.domain.models.analysis import AnalysisResult, JobPosting
from jobfit.domain.models.monitoring import HealthReport, HealthStatus

logger = logging.getLogger(__name__)

HEALTH_STYLES = {
    HealthStatus.HEALTHY: "bold green",
    HealthStatus.WARNING: "bold yellow",
    HealthStatus.CRITICAL: "bold red",
}

STAT_ROWS = (
    ("Total calls", "total_calls"),
    ("Successful", "success_calls"),
    ("Failed", "failure_calls"),
    ("Cache hits", "cache_hits"),
    ("Quota errors", "quota_errors"),
    ("Retries", "retries"),
    ("Success rate", "success_rate"),
    ("Cache hit rate", "cache_hit_rate"),
    ("Error rate", "error_rate"),
    ("Last success", "last_success"),
    ("Last error", "last_error"),
)


def _score_style(score: int) -> str:
    if score >= 75:
        return "bold green"
    if score >= 50:
        return "bold yellow"
    return "bold red"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()

    def display_analysis(self, job: JobPosting, result: AnalysisResult, **kwargs: Any) -> None:
        """Renders one analysis as a panel with score, lists and narrative.

        Args:
            job: The analyzed posting (used for the title).
            result: The analysis to render.
            **kwargs: ``from_cache`` marks results served from the cache.
        """
        title = job.title or "Job posting"
        if job.company:
            title = f"{title} @ {job.company}"
        if kwargs.get("from_cache"):
            title = f"{title} [dim](cached)[/dim]"

        body = Text()
        body.append("Match: ", style="bold")
        body.append(f"{result.match_score}%\n", style=_score_style(result.match_score))
        if result.degraded:
            body.append("(response only partially parsed)\n", style="dim yellow")

        body.append("\nStrengths\n", style="bold green")
        for item in result.strengths or ("-",):
            body.append(f"  • {item}\n")
        body.append("\nAreas to improve\n", style="bold yellow")
        for item in result.improvements or ("-",):
            body.append(f"  • {item}\n")
        if result.narrative:
            body.append("\n")
            body.append(result.narrative)

        self.console.print(Panel(body, title=f"[bold cyan]{title}[/bold cyan]", border_style="cyan", box=ROUNDED, padding=(0, 1)))

    def display_health(self, report: HealthReport) -> None:
        style = HEALTH_STYLES.get(report.status, "bold")
        body = Text()
        body.append("Status: ", style="bold")
        body.append(f"{report.status.value.upper()}\n", style=style)
        body.append(f"Success rate: {report.success_rate}\n")
        if report.last_success:
            body.append(f"Last success: {report.last_success:%Y-%m-%d %H:%M:%S}\n", style="dim")
        if report.last_error:
            body.append(f"Last error: {report.last_error:%Y-%m-%d %H:%M:%S}\n", style="dim")
        for recommendation in report.recommendations:
            body.append(f"  • {recommendation}\n")
        self.console.print(Panel(body, title="[bold]Provider health[/bold]", border_style=style.split()[-1], box=ROUNDED))

    def display_stats(self, stats: Dict[str, Any]) -> None:
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        for label, key in STAT_ROWS:
            value = stats.get(key)
            table.add_row(label, "-" if value is None else str(value))
        self.console.print(table)

        recent_errors = stats.get("recent_errors") or []
        if recent_errors:
            errors_table = Table(show_header=True, box=SIMPLE, title="Recent errors")
            errors_table.add_column("Time", style="dim")
            errors_table.add_column("Kind")
            errors_table.add_column("Status", justify="right")
            errors_table.add_column("Message", style="white")
            for entry in recent_errors[:10]:
                timestamp = entry.get("timestamp")
                errors_table.add_row(
                    f"{timestamp:%H:%M:%S}" if timestamp else "???",
                    str(entry.get("kind") or "-"),
                    str(entry.get("status") or "-"),
                    str(entry.get("message", "")),
                )
            self.console.print(errors_table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

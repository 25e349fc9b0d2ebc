"""Main entry point for the jobfit application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, List, Optional

import typer

# --- Core Layer ---
from jobfit.core.command_handler import CommandHandler
from jobfit.core.services.analysis_service import AnalysisService
from jobfit.core.services.job_match_service import JobMatchService

# --- Infrastructure Layer ---
# Config
from jobfit.infrastructure.config.settings import (
    get_config,
    get_default_model,
    get_default_provider,
    get_float,
    get_groq_api_key,
    get_int,
    get_openai_api_key,
    load_configuration,
)
# UI
from jobfit.infrastructure.cli.display import ConsoleDisplay
# AI Clients
from jobfit.infrastructure.ai.openai.gpt_client import GptClient
from jobfit.infrastructure.ai.groq.groq_client import GroqClient
# Agents
from jobfit.infrastructure.agents.response_parser import AnalysisResponseParser
# Cache
from jobfit.infrastructure.cache.caching_service import ResponseCache
# Resilience
from jobfit.infrastructure.resilience.api_retry import BackoffExecutor, RetryPolicy
from jobfit.infrastructure.resilience.error_classifier import is_retryable_error
# Monitoring
from jobfit.infrastructure.monitoring.call_monitor import CallMonitor
from jobfit.infrastructure.monitoring.logger_setup import setup_logging
# Persistence
from jobfit.infrastructure.persistence.memory_repository import InMemoryMatchRepository

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "groq")

# --- Dependency Injection Container (Manual) ---

def _create_ai_model(provider: str):
    """Instantiates the client for ``provider`` from configuration."""
    common = dict(
        model=get_default_model(provider),
        temperature=get_float('ai.temperature'),
        max_tokens=get_int('ai.max_tokens'),
        timeout=get_float('ai.request_timeout_seconds'),
    )
    if provider == 'groq':
        return GroqClient(api_key=get_groq_api_key(), **common)
    return GptClient(api_key=get_openai_api_key(), **common)


def create_dependencies(provider: Optional[str] = None) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. Exits the process when no provider
    client can be created.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        setup_logging()
        logger.info("Configuration and logging initialized.")

        # 2. Shared infrastructure: one cache and one monitor per process
        dependencies['ui'] = ConsoleDisplay()
        max_entries = get_config('cache.max_entries')
        dependencies['cache_service'] = ResponseCache(
            default_ttl=get_float('cache.default_ttl_seconds'),
            sweep_interval=get_float('cache.sweep_interval_seconds'),
            max_entries=int(max_entries) if max_entries is not None else None,
        )
        dependencies['monitor'] = CallMonitor(max_error_log_size=get_int('monitor.max_error_log_size'))
        dependencies['executor'] = BackoffExecutor()
        dependencies['retry_policy'] = RetryPolicy(
            max_attempts=get_int('retry.max_attempts'),
            base_delay_s=get_float('retry.base_delay_seconds'),
            max_delay_s=get_float('retry.max_delay_seconds'),
            retry_predicate=is_retryable_error,
        )

        # 3. AI model client for the selected provider
        selected_provider = (provider or get_default_provider()).lower()
        if selected_provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown provider '{selected_provider}'. Choose one of: {', '.join(SUPPORTED_PROVIDERS)}."
            )
        dependencies['ai_model'] = _create_ai_model(selected_provider)
        logger.info(f"AI provider selected: {selected_provider} ({dependencies['ai_model'].__class__.__name__})")

        # 4. Core services
        dependencies['analysis_service'] = AnalysisService(
            ai_model=dependencies['ai_model'],
            cache_service=dependencies['cache_service'],
            monitor=dependencies['monitor'],
            executor=dependencies['executor'],
            retry_policy=dependencies['retry_policy'],
            parser=AnalysisResponseParser(),
        )
        dependencies['repository'] = InMemoryMatchRepository()
        dependencies['job_match_service'] = JobMatchService(
            analysis_service=dependencies['analysis_service'],
            repository=dependencies['repository'],
        )

        # 5. Command Handler
        dependencies['command_handler'] = CommandHandler(
            job_match_service=dependencies['job_match_service'],
            monitor=dependencies['monitor'],
            ui=dependencies['ui'],
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if 'ui' in dependencies:
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        sys.exit(1)


# Built on first use, so importing this module has no side effects
_dependencies: Optional[Dict[str, Any]] = None


def get_dependencies(provider: Optional[str] = None) -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies(provider)
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="jobfit",
    help="jobfit: cached, retried and monitored job-match analysis with OpenAI or Groq.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Manages running async functions from sync Typer commands."""
    try:
        return asyncio.run(coro)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        get_dependencies()['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)

# --- CLI Commands ---

ProviderOption = Annotated[
    Optional[str],
    typer.Option("--provider", "-p", help="AI provider to use ('openai' or 'groq'). Uses default if not set.")
]

@app.callback()
def main_callback():
    """Cached, retried and monitored job-match analysis with OpenAI or Groq."""
    # Keeps `analyze` a named subcommand even though it is the only one

@app.command()
def analyze(
    profile: Annotated[Path, typer.Option("--profile",
                                         exists=True, file_okay=True, dir_okay=False,
                                         readable=True, resolve_path=True,
                                         help="JSON file with the candidate profile.")],
    job: Annotated[List[Path], typer.Option("--job", "-j",
                                            exists=True, file_okay=True, dir_okay=False,
                                            readable=True, resolve_path=True,
                                            help="JSON file with a job posting. Repeat for several jobs.")],
    provider: ProviderOption = None,
    health: Annotated[bool, typer.Option("--health", help="Show the provider health assessment after the run.")] = False,
    stats_json: Annotated[Optional[Path], typer.Option("--stats-json", dir_okay=False, resolve_path=True,
                                                       help="Also write the run's call statistics to this JSON file.")] = None,
):
    """Analyze how well a candidate profile matches one or more job postings.

    Call statistics (and, with --health, the health assessment) are printed
    once every job has been analyzed.
    """
    dependencies = get_dependencies(provider)
    handler: CommandHandler = dependencies['command_handler']
    cache: ResponseCache = dependencies['cache_service']

    async def _run() -> int:
        async with cache:
            return await handler.handle_analyze(profile, list(job))

    failures = run_async(_run())
    handler.handle_report(show_health=health, stats_path=stats_json)
    if failures:
        raise typer.Exit(code=1)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

import pytest
import httpx
from typer.testing import CliRunner

from jobfit.domain.models.analysis import CandidateProfile, JobPosting
from jobfit.infrastructure.config import settings

OPENAI_URL = "https://api.openai.com/v1/chat/completions"

WELL_FORMED_COMPLETION = """MATCHING_PERCENTAGE: 82

STRENGTHS:
- Five years of Python backend work
- Production experience with PostgreSQL

AREAS_TO_IMPROVE:
- No Kubernetes exposure
- Limited team leadership

DETAILED_ANALYSIS:
The candidate is a strong match for the backend role."""


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def profile() -> CandidateProfile:
    return CandidateProfile(
        name="Dana",
        current_title="Backend Engineer",
        experience_years=5,
        skills=["Python", "PostgreSQL", "Docker"],
        education=["BSc Computer Science"],
    )


@pytest.fixture
def job() -> JobPosting:
    return JobPosting(
        title="Senior Python Engineer",
        description="Build and run our matching APIs.",
        requirements="Python, SQL, Kubernetes",
        company="Acme",
    )


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleeps():
    """An async sleep replacement that records the requested delays."""
    delays = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    fake_sleep.delays = delays
    return fake_sleep


def make_status_error(error_cls, status: int, message: str = "error", body=None):
    """Builds a real openai/groq status error around an httpx response."""
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(status, request=request)
    return error_cls(message, response=response, body=body)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Dummy API key and a clean configuration for every test."""
    monkeypatch.setenv("OPENAI_API_KEY", "DUMMY_TEST_KEY_FOR_INIT")
    settings.clear_test_config()
    yield
    settings.clear_test_config()


@pytest.fixture
def status_error():
    return make_status_error


@pytest.fixture
def completion_text() -> str:
    return WELL_FORMED_COMPLETION

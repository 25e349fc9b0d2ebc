"""jobfit: resilient job-match analysis on top of an LLM completion API."""

__version__ = "0.3.0"

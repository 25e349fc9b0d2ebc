"""Agent responsible for turning a provider completion into an AnalysisResult.

The completion is expected in the labeled format requested by the prompt:

    MATCHING_PERCENTAGE: 82
    STRENGTHS:
    - ...
    AREAS_TO_IMPROVE:
    - ...
    DETAILED_ANALYSIS:
    ...

Parsing is best effort and never raises. Missing sections fall back to
defaults and mark the result as degraded.
"""

import logging
import re
from typing import List, Optional

from jobfit.domain.models.ai import StructuredAIResponse
from jobfit.domain.models.analysis import (
    DEFAULT_MATCH_SCORE,
    MAX_LIST_ITEMS,
    MAX_NARRATIVE_LENGTH,
    AnalysisResult,
)

logger = logging.getLogger(__name__)

SCORE_LABEL = "MATCHING_PERCENTAGE"
STRENGTHS_LABEL = "STRENGTHS"
IMPROVEMENTS_LABEL = "AREAS_TO_IMPROVE"
NARRATIVE_LABEL = "DETAILED_ANALYSIS"


def _heading(label: str) -> str:
    """A section label at the start of a line, optionally in markdown emphasis."""
    return rf"^[ \t#*]*{label}[ \t*]*:\**"


_SECTION_FLAGS = re.IGNORECASE | re.MULTILINE | re.DOTALL
_SCORE_RE = re.compile(rf"{_heading(SCORE_LABEL)}[^\d\n]*(\d+)", re.IGNORECASE | re.MULTILINE)
_STRENGTHS_RE = re.compile(
    rf"{_heading(STRENGTHS_LABEL)}(.*?)(?={_heading(IMPROVEMENTS_LABEL)}|{_heading(NARRATIVE_LABEL)}|\Z)",
    _SECTION_FLAGS,
)
_IMPROVEMENTS_RE = re.compile(
    rf"{_heading(IMPROVEMENTS_LABEL)}(.*?)(?={_heading(NARRATIVE_LABEL)}|\Z)",
    _SECTION_FLAGS,
)
_NARRATIVE_RE = re.compile(rf"{_heading(NARRATIVE_LABEL)}(.*)\Z", _SECTION_FLAGS)
# "- item", "* item", "• item", "1. item", "2) item"
_LIST_ITEM_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+(.*)$")


def extract_list_items(text: Optional[str]) -> List[str]:
    """Lines starting with a bullet or ordinal marker, marker stripped."""
    if not text:
        return []
    items = []
    for line in text.splitlines():
        match = _LIST_ITEM_RE.match(line.strip())
        if match:
            item = match.group(1).strip()
            if item:
                items.append(item)
    return items


class AnalysisResponseParser:
    """Parses labeled job-match completions."""

    def process_response(self, ai_response: StructuredAIResponse) -> AnalysisResult:
        """Parses a structured provider response, logging its metadata."""
        if ai_response.model_name:
            logger.debug(
                f"Parsing response from {ai_response.model_name} "
                f"(latency={ai_response.latency_ms}, usage={ai_response.token_usage})"
            )
        return self.parse(ai_response.content)

    def parse(self, text: Optional[str]) -> AnalysisResult:
        """Extracts score, strengths, improvements and narrative. Never raises."""
        raw = text if isinstance(text, str) else ""
        try:
            return self._parse(raw)
        except Exception as e:
            logger.error(f"Error parsing AI response, returning degraded result: {e}", exc_info=True)
            return self.degraded_result(raw)

    def degraded_result(self, raw: str) -> AnalysisResult:
        return AnalysisResult(
            match_score=DEFAULT_MATCH_SCORE,
            narrative=raw.strip()[:MAX_NARRATIVE_LENGTH],
            degraded=True,
        )

    def _parse(self, raw: str) -> AnalysisResult:
        score_match = _SCORE_RE.search(raw)
        strengths_match = _STRENGTHS_RE.search(raw)
        improvements_match = _IMPROVEMENTS_RE.search(raw)
        narrative_match = _NARRATIVE_RE.search(raw)

        missing = [
            label for label, match in (
                (SCORE_LABEL, score_match),
                (STRENGTHS_LABEL, strengths_match),
                (IMPROVEMENTS_LABEL, improvements_match),
                (NARRATIVE_LABEL, narrative_match),
            ) if match is None
        ]
        if missing:
            logger.warning(f"AI response is missing sections {missing}; using defaults for them.")

        score = int(score_match.group(1)) if score_match else DEFAULT_MATCH_SCORE
        strengths = extract_list_items(strengths_match.group(1)) if strengths_match else []
        improvements = extract_list_items(improvements_match.group(1)) if improvements_match else []
        narrative = narrative_match.group(1).strip() if narrative_match else raw.strip()

        # AnalysisResult clamps the score and truncates lists and narrative
        return AnalysisResult(
            match_score=score,
            strengths=tuple(strengths[:MAX_LIST_ITEMS]),
            improvements=tuple(improvements[:MAX_LIST_ITEMS]),
            narrative=narrative[:MAX_NARRATIVE_LENGTH],
            degraded=bool(missing),
        )

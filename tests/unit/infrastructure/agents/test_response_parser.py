import pytest

from jobfit.domain.models.ai import StructuredAIResponse
from jobfit.infrastructure.agents.response_parser import AnalysisResponseParser, extract_list_items


@pytest.fixture
def parser() -> AnalysisResponseParser:
    return AnalysisResponseParser()


def test_parses_well_formed_completion(parser, completion_text):
    result = parser.parse(completion_text)

    assert result.match_score == 82
    assert result.strengths == (
        "Five years of Python backend work",
        "Production experience with PostgreSQL",
    )
    assert result.improvements == ("No Kubernetes exposure", "Limited team leadership")
    assert result.narrative == "The candidate is a strong match for the backend role."
    assert not result.degraded


def test_process_response_uses_content(parser, completion_text):
    response = StructuredAIResponse(content=completion_text, model_name="gpt-4o-mini", latency_ms=12.5)
    assert parser.process_response(response).match_score == 82


def test_score_with_decoration_and_clamping(parser):
    assert parser.parse("MATCHING_PERCENTAGE: [75]%").match_score == 75
    assert parser.parse("matching_percentage: about 64 percent").match_score == 64
    assert parser.parse("MATCHING_PERCENTAGE: 140").match_score == 100


def test_lists_are_truncated_to_five_items(parser):
    bullets = "\n".join(f"- strength {i}" for i in range(8))
    text = f"MATCHING_PERCENTAGE: 70\nSTRENGTHS:\n{bullets}\nAREAS_TO_IMPROVE:\n1. one\n2) two\nDETAILED_ANALYSIS:\nok"

    result = parser.parse(text)

    assert len(result.strengths) == 5
    assert result.strengths[0] == "strength 0"
    assert result.improvements == ("one", "two")


def test_narrative_is_truncated(parser):
    text = "MATCHING_PERCENTAGE: 70\nSTRENGTHS:\n- a\nAREAS_TO_IMPROVE:\n- b\nDETAILED_ANALYSIS:\n" + "x" * 5000
    assert len(parser.parse(text).narrative) == 2000


def test_missing_sections_fall_back_to_defaults(parser):
    result = parser.parse("The model ignored the format entirely.")

    assert result.degraded
    assert result.match_score == 50
    assert result.strengths == ()
    assert result.improvements == ()
    assert result.narrative == "The model ignored the format entirely."


def test_partial_completion_keeps_what_was_found(parser):
    result = parser.parse("MATCHING_PERCENTAGE: 33\nSTRENGTHS:\n- SQL")

    assert result.degraded
    assert result.match_score == 33
    assert result.strengths == ("SQL",)


@pytest.mark.parametrize("text", [None, ""])
def test_empty_completion_never_raises(parser, text):
    result = parser.parse(text)
    assert result.degraded
    assert result.match_score == 50


def test_extract_list_items_ignores_prose():
    text = "Intro line\n- first\n  * second\n• third\nnot a bullet\n3. fourth\n-"
    assert extract_list_items(text) == ["first", "second", "third", "fourth"]


def test_missing_improvements_section(parser):
    text = "MATCHING_PERCENTAGE: 61\nSTRENGTHS:\n- SQL\nDETAILED_ANALYSIS:\nDecent overlap."

    result = parser.parse(text)

    assert 0 <= result.match_score <= 100
    assert result.improvements == ()
    assert result.narrative == "Decent overlap."


def test_labels_inside_prose_are_not_sections(parser):
    text = (
        "MATCHING_PERCENTAGE: 58\n"
        "AREAS_TO_IMPROVE:\n- Kubernetes\n"
        "DETAILED_ANALYSIS:\n"
        "Key strengths: the candidate lists several.\n"
        "- bullet in prose\n"
    )

    result = parser.parse(text)

    assert result.strengths == ()
    assert result.improvements == ("Kubernetes",)
    assert result.degraded
    assert "bullet in prose" in result.narrative


def test_markdown_decorated_labels(parser):
    text = (
        "**MATCHING_PERCENTAGE:** 77\n"
        "## STRENGTHS:\n- APIs\n"
        "**AREAS_TO_IMPROVE:**\n- Go\n"
        "**DETAILED_ANALYSIS:** Solid fit."
    )

    result = parser.parse(text)

    assert result.match_score == 77
    assert result.strengths == ("APIs",)
    assert result.improvements == ("Go",)
    assert result.narrative == "Solid fit."
    assert not result.degraded

"""
Tests for FeedbackParser.
"""

import pytest

from learncontext.core.feedback.parser import (
    DEFAULT_IMPROVEMENTS,
    DEFAULT_OVERALL_FEEDBACK,
    DEFAULT_STRENGTHS,
    DEFAULT_TIPS,
    FeedbackParser,
)


@pytest.fixture
def parser():
    return FeedbackParser()


def test_unstructured_text_falls_back_to_defaults(parser):
    feedback = parser.parse("no structure at all")

    assert feedback.score == 7
    assert feedback.max_score == 10
    assert feedback.overall_feedback == DEFAULT_OVERALL_FEEDBACK
    assert feedback.strengths == DEFAULT_STRENGTHS
    assert feedback.improvements == DEFAULT_IMPROVEMENTS
    assert feedback.personalized_tips == DEFAULT_TIPS


@pytest.mark.parametrize("raw", ["", None])
def test_empty_input_never_raises(parser, raw):
    feedback = parser.parse(raw)

    assert feedback.score == 7
    assert feedback.overall_feedback


def test_score_and_strengths(parser):
    feedback = parser.parse("**Score:** 8/10\n**Strengths:**\n- Clear reasoning")

    assert feedback.score == 8
    assert feedback.max_score == 10
    assert feedback.strengths == ["Clear reasoning"]


def test_full_reply(parser, sample_grading_reply):
    feedback = parser.parse(sample_grading_reply)

    assert (feedback.score, feedback.max_score) == (8, 10)
    assert feedback.overall_feedback == (
        "Solid answer that covers the main idea. The derivation could be tighter."
    )
    # Hyphens inside an item are kept
    assert feedback.strengths == ["Clear reasoning", "Correct use of step-by-step notation"]
    assert feedback.improvements == ["Define entropy before using it", "Add a worked example"]
    assert feedback.personalized_tips == ["Revisit integration by parts with two short drills"]
    assert feedback.score_percent == 80


def test_plain_score_label(parser):
    assert parser.extract_score("Score: 6 / 10") == (6, 10)
    assert parser.extract_score("**Score**: 3/5") == (3, 5)


def test_zero_max_score_uses_default(parser):
    assert parser.extract_score("Score: 5/0") == (7, 10)


def test_score_above_max_is_passed_through(parser):
    feedback = parser.parse("Score: 12/10")

    assert (feedback.score, feedback.max_score) == (12, 10)


def test_fallback_heading_names(parser):
    text = (
        "Score: 4/10\n"
        "Improvements:\n"
        "- Show your units\n"
        "Tips:\n"
        "1. Practice dimensional analysis\n"
    )

    feedback = parser.parse(text)

    assert feedback.improvements == ["Show your units"]
    assert feedback.personalized_tips == ["Practice dimensional analysis"]
    assert feedback.strengths == DEFAULT_STRENGTHS


def test_markdown_headings(parser):
    text = (
        "## Strengths\n"
        "* Good structure\n"
        "* Accurate terms\n"
        "\n"
        "## Areas for Improvement\n"
        "• Cite an example\n"
        "---\n"
        "## Personalized Tips\n"
        "- Review chapter 3\n"
    )

    feedback = parser.parse(text)

    assert feedback.strengths == ["Good structure", "Accurate terms"]
    assert feedback.improvements == ["Cite an example"]
    assert feedback.personalized_tips == ["Review chapter 3"]


def test_section_stops_at_unknown_bold_label(parser):
    text = "**Strengths:**\n- Concise\n**Grader Notes:**\n- not a strength\n"

    assert parser.extract_bullets(text, "Strengths") == ["Concise"]


def test_non_bullet_lines_are_ignored(parser):
    text = "**Strengths:**\nSome intro sentence.\n- Real item\n"

    assert parser.extract_bullets(text, "Strengths") == ["Real item"]

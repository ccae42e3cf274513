"""
Recover structured grading feedback from free-text model output.

The grading prompt asks for labelled sections (Score, Overall Feedback,
Strengths, Areas for Improvement, Personalized Tips) but nothing guarantees
the model complies, so every field has a default and parsing never fails.
"""

import re
from functools import lru_cache
from typing import List, Optional, Pattern, Sequence, Tuple

from learncontext.core.feedback.models import GradingFeedback
from learncontext.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SCORE = 7
DEFAULT_MAX_SCORE = 10
DEFAULT_OVERALL_FEEDBACK = "Good effort on this answer."
DEFAULT_STRENGTHS = ["Shows understanding of the topic"]
DEFAULT_IMPROVEMENTS = ["Consider adding more detail"]
DEFAULT_TIPS = ["Keep practicing!"]

OVERALL_HEADING = "Overall Feedback"
STRENGTHS_HEADINGS = ("Strengths",)
IMPROVEMENTS_HEADINGS = ("Areas for Improvement", "Improvements")
TIPS_HEADINGS = ("Personalized Tips", "Tips")

KNOWN_HEADINGS = (
    "Score",
    OVERALL_HEADING,
    *STRENGTHS_HEADINGS,
    *IMPROVEMENTS_HEADINGS,
    *TIPS_HEADINGS,
)

_SCORE_RE = re.compile(
    r"\*{0,2}Score\*{0,2}[ \t]*:[ \t]*\*{0,2}[ \t]*(\d+)[ \t]*/[ \t]*(\d+)",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^[ \t]*(?:[-•][ \t]*|\*[ \t]+|\d+[.)][ \t]+)(.*)$")
_RULE_RE = re.compile(r"^[ \t]*[-*_]{3,}[ \t]*$")


def _heading_pattern(names: Sequence[str]) -> str:
    """Markers for the given headings.

    Matches `**Name:**`, `**Name**:`, `## Name` and a bare `Name:` at line
    start (optionally after a bullet), or a bold `**Name:**` anywhere.
    """
    alt = "|".join(re.escape(name) for name in names)
    return (
        rf"^[ \t]*(?:[-*•][ \t]+)?"
        rf"(?:\*\*(?:{alt})[ \t]*:[ \t]*\*\*"
        rf"|\*\*(?:{alt})\*\*[ \t]*:"
        rf"|#{{1,6}}[ \t]*(?:{alt})\b[ \t]*:?"
        rf"|(?:{alt})[ \t]*:)"
        rf"|\*\*(?:{alt})[ \t]*:[ \t]*\*\*"
    )


# Any known heading, or an unknown bold label / markdown heading opening a line
_NEXT_HEADING_RE = re.compile(
    _heading_pattern(KNOWN_HEADINGS)
    + r"|^[ \t]*\*\*[^*\n]+?:[ \t]*\*\*"
    + r"|^[ \t]*\*\*[^*\n]+?\*\*[ \t]*:"
    + r"|^[ \t]*#{1,6}[ \t]+\S",
    re.IGNORECASE | re.MULTILINE,
)


@lru_cache(maxsize=32)
def _heading_regex(heading: str) -> Pattern[str]:
    return re.compile(_heading_pattern((heading,)), re.IGNORECASE | re.MULTILINE)


class FeedbackParser:
    """Heading-anchored extraction of GradingFeedback."""

    def parse(self, raw_text: Optional[str]) -> GradingFeedback:
        """
        Parse model output into GradingFeedback.

        Never raises: anything missing or malformed falls back to defaults.
        """
        text = raw_text or ""

        score, max_score = self.extract_score(text)
        overall = self.extract_section(text, OVERALL_HEADING)
        strengths = self.extract_bullets_any(text, STRENGTHS_HEADINGS)
        improvements = self.extract_bullets_any(text, IMPROVEMENTS_HEADINGS)
        tips = self.extract_bullets_any(text, TIPS_HEADINGS)

        defaulted = [
            name for name, value in (
                ("overall_feedback", overall),
                ("strengths", strengths),
                ("improvements", improvements),
                ("personalized_tips", tips),
            ) if not value
        ]
        if defaulted:
            logger.debug(f"Feedback fields defaulted: {defaulted}")

        return GradingFeedback(
            score=score,
            max_score=max_score,
            overall_feedback=overall or DEFAULT_OVERALL_FEEDBACK,
            strengths=strengths or list(DEFAULT_STRENGTHS),
            improvements=improvements or list(DEFAULT_IMPROVEMENTS),
            personalized_tips=tips or list(DEFAULT_TIPS),
        )

    def extract_score(self, text: str) -> Tuple[int, int]:
        """First `Score: X/Y` in the text, or the default 7/10."""
        match = _SCORE_RE.search(text)
        if not match:
            return DEFAULT_SCORE, DEFAULT_MAX_SCORE

        score, max_score = int(match.group(1)), int(match.group(2))
        if max_score <= 0:
            logger.debug(f"Ignoring score with non-positive maximum: {match.group(0)!r}")
            return DEFAULT_SCORE, DEFAULT_MAX_SCORE
        return score, max_score

    def extract_section(self, text: str, heading: str) -> str:
        """Text between `heading` and the next heading marker, trimmed."""
        match = _heading_regex(heading).search(text)
        if not match:
            return ""

        start = match.end()
        next_heading = _NEXT_HEADING_RE.search(text, start)
        end = next_heading.start() if next_heading else len(text)
        return text[start:end].strip()

    def extract_bullets(self, text: str, heading: str) -> List[str]:
        """Bulleted lines under `heading`, markers stripped."""
        section = self.extract_section(text, heading)
        items = []
        for line in section.splitlines():
            if _RULE_RE.match(line):
                continue
            bullet = _BULLET_RE.match(line)
            if bullet:
                item = bullet.group(1).strip()
                if item:
                    items.append(item)
        return items

    def extract_bullets_any(self, text: str, headings: Sequence[str]) -> List[str]:
        """Try each heading name in order; first non-empty list wins."""
        for heading in headings:
            items = self.extract_bullets(text, heading)
            if items:
                return items
        return []

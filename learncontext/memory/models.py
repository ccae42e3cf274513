"""
Pydantic models for learner memory.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ExplanationStyle(str, Enum):
    CONCISE = "concise"
    STEP_BY_STEP = "step-by-step"
    EXAMPLE_DRIVEN = "example-driven"


class TonePreference(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    ENCOURAGING = "encouraging"


class TimeAvailability(str, Enum):
    LIMITED = "limited"
    MODERATE = "moderate"
    FLEXIBLE = "flexible"


# List caps
MAX_WEAK_TOPICS = 10
MAX_STRONG_TOPICS = 10
MAX_LEARNING_GOALS = 5
MAX_RECENT_TOPICS = 10
MAX_COMMON_MISTAKES = 10

# Fields a partial update may never touch
IDENTITY_FIELDS = frozenset({"id", "user_id", "created_at"})


class UserMemory(BaseModel):
    """Persistent learning profile for one learner."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Core learning profile
    skill_level: SkillLevel = SkillLevel.BEGINNER
    weak_topics: List[str] = Field(default_factory=list)
    strong_topics: List[str] = Field(default_factory=list)
    learning_goals: List[str] = Field(default_factory=list)

    # Preferences
    explanation_style: ExplanationStyle = ExplanationStyle.STEP_BY_STEP
    tone_preference: TonePreference = TonePreference.ENCOURAGING
    time_availability: TimeAvailability = TimeAvailability.MODERATE

    # Interaction history summaries
    recent_topics: List[str] = Field(default_factory=list)
    common_mistakes: List[str] = Field(default_factory=list)

    # Meta
    total_sessions: int = Field(default=0, ge=0)
    last_session_date: datetime = Field(default_factory=utcnow)

    @classmethod
    def default_for(cls, user_id: str) -> "UserMemory":
        """Factory-default memory with a fresh id and timestamps."""
        now = utcnow()
        return cls(user_id=user_id, created_at=now, updated_at=now, last_session_date=now)

    def summary(self) -> str:
        """Human-readable one-paragraph digest for display."""
        parts = [f"Skill Level: {self.skill_level.value}"]

        if self.weak_topics:
            parts.append(f"Areas needing work: {', '.join(self.weak_topics)}")
        if self.strong_topics:
            parts.append(f"Strong in: {', '.join(self.strong_topics)}")
        if self.learning_goals:
            parts.append(f"Goals: {', '.join(self.learning_goals)}")

        parts.append(f"Prefers {self.explanation_style.value} explanations")
        parts.append(f"Tone: {self.tone_preference.value}")

        return ". ".join(parts)

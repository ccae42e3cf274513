"""
Pydantic models for grading.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from learncontext.memory.models import utcnow


class GradingFeedback(BaseModel):
    """Structured feedback for one graded answer.

    score <= max_score is not enforced; model output is passed through.
    """
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0)
    max_score: int = Field(gt=0)
    overall_feedback: str = Field(min_length=1)
    strengths: List[str] = Field(min_length=1)
    improvements: List[str] = Field(min_length=1)
    personalized_tips: List[str] = Field(min_length=1)

    @property
    def score_percent(self) -> float:
        return self.score / self.max_score * 100


class GradingSubmission(BaseModel):
    """A learner's answer and the feedback it received."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    question: str
    student_answer: str
    rubric: Optional[str] = None
    feedback: Optional[GradingFeedback] = None
    created_at: datetime = Field(default_factory=utcnow)

"""
Locally synthesized responses used when no model credential is configured.
"""

from typing import Optional, Tuple

from learncontext.core.feedback.models import GradingFeedback
from learncontext.memory.models import (
    ExplanationStyle,
    SkillLevel,
    TonePreference,
    UserMemory,
)

MATH_KEYWORDS = ("math", "equation", "calcul")
HISTORY_KEYWORDS = ("history", "war", "revolution")
SCIENCE_KEYWORDS = ("science", "physics", "chemistry")

DEMO_TUTOR_NOTE = (
    "*Note: This is a demo response. Connect your OpenAI API key in Settings "
    "for personalized AI tutoring.*"
)
DEMO_GRADING_NOTE = "*Demo mode: Add your OpenAI API key for real AI grading*"


def _math_response(skill: SkillLevel, style: ExplanationStyle) -> str:
    if style == ExplanationStyle.STEP_BY_STEP:
        closing = (
            "Remember, take your time with each step. There's no rush!"
            if skill == SkillLevel.BEGINNER
            else "Try to identify patterns as you work through similar problems."
        )
        return (
            "Let me break this down for you:\n\n"
            "**Step 1:** First, identify what type of problem this is\n"
            "**Step 2:** Write out the given information\n"
            "**Step 3:** Apply the relevant formula or method\n"
            "**Step 4:** Solve step by step, showing your work\n"
            "**Step 5:** Check your answer\n\n"
            f"{closing}"
        )
    if style == ExplanationStyle.EXAMPLE_DRIVEN:
        closing = (
            "You can extend this to more complex scenarios like matrices or vector spaces."
            if skill == SkillLevel.ADVANCED
            else "Does this analogy help clarify the concept?"
        )
        return (
            "Here's how this works with a concrete example:\n\n"
            "**Example:** Imagine you have 3 baskets with 5 apples each...\n\n"
            "This is just like the mathematical concept you're asking about. "
            "The pattern here is multiplication: 3 x 5 = 15 apples total.\n\n"
            f"{closing}"
        )
    return (
        "The key to understanding this mathematical concept is practice and pattern "
        "recognition. Would you like me to work through an example together?"
    )


def _history_response(skill: SkillLevel, style: ExplanationStyle) -> str:
    if style == ExplanationStyle.STEP_BY_STEP:
        closing = (
            "Understanding history is like piecing together a story. Each event connects to the next."
            if skill == SkillLevel.BEGINNER
            else "Consider how primary sources might give us different perspectives on these events."
        )
        return (
            "Let's analyze this historical event systematically:\n\n"
            "**1. Context:** What was happening before this event?\n"
            "**2. Causes:** What led to this happening?\n"
            "**3. Key Players:** Who were the important figures involved?\n"
            "**4. Events:** What actually happened?\n"
            "**5. Consequences:** What changed as a result?\n\n"
            f"{closing}"
        )
    return (
        "History is all about understanding cause and effect, and how events connect "
        "across time. Let me help you see these connections more clearly."
    )


def _science_response(skill: SkillLevel, style: ExplanationStyle) -> str:
    if style == ExplanationStyle.EXAMPLE_DRIVEN:
        closing = (
            "The underlying physics involves wave interference and the electromagnetic spectrum."
            if skill == SkillLevel.ADVANCED
            else "Would you like me to explain the simple version first?"
        )
        return (
            "Let me explain this with a real-world example:\n\n"
            "**Everyday Example:** Think about when you see a rainbow after rain...\n\n"
            "This demonstrates the scientific principle at work. Light behaves in predictable "
            "ways, and understanding these patterns helps us understand our world.\n\n"
            f"{closing}"
        )
    return (
        "Science is about observation, hypothesis, and testing. Let's explore this concept "
        "together and see how it connects to what you already know."
    )


_SKILL_OPENERS = {
    SkillLevel.BEGINNER: "I'll start with the fundamentals and we can build from there.",
    SkillLevel.INTERMEDIATE: "I'll give you a balanced explanation with room to explore deeper.",
    SkillLevel.ADVANCED: "Given your level, let's dive into the nuances of this topic.",
}


def _generic_response(skill: SkillLevel, style: ExplanationStyle) -> str:
    framing = (
        "Let's break this down into manageable parts:"
        if style == ExplanationStyle.STEP_BY_STEP
        else "Here's the key concept:"
    )
    return (
        "That's an interesting topic! Let me help you understand it better.\n\n"
        f"{framing}\n\n"
        f"{_SKILL_OPENERS[skill]}\n\n"
        "Would you like me to explain any specific aspect in more detail?\n\n"
        f"---\n{DEMO_TUTOR_NOTE}"
    )


def demo_tutor_response(user_message: str, memory: Optional[UserMemory]) -> Tuple[str, int]:
    """Keyword-matched canned explanation. Returns (text, approximate tokens)."""
    skill = memory.skill_level if memory else SkillLevel.INTERMEDIATE
    style = memory.explanation_style if memory else ExplanationStyle.STEP_BY_STEP

    response = ""
    if memory and memory.tone_preference == TonePreference.ENCOURAGING:
        response += "Great question! I'm happy to help you understand this better. "

    lowered = user_message.lower()
    if any(keyword in lowered for keyword in MATH_KEYWORDS):
        response += _math_response(skill, style)
    elif any(keyword in lowered for keyword in HISTORY_KEYWORDS):
        response += _history_response(skill, style)
    elif any(keyword in lowered for keyword in SCIENCE_KEYWORDS):
        response += _science_response(skill, style)
    else:
        response += _generic_response(skill, style)

    if memory and memory.weak_topics:
        response += (
            f"\n\n*I notice you've been working on {memory.weak_topics[0]}. "
            "Would you like me to connect this to that topic?*"
        )

    return response, len(response) // 4


def demo_grading_feedback(answer: str, memory: Optional[UserMemory]) -> GradingFeedback:
    """Length-heuristic grade out of 10."""
    answer_length = len(answer)
    score = min(8, answer_length // 50 + 3)

    encouraging = memory is not None and memory.tone_preference == TonePreference.ENCOURAGING
    weak_topic = memory.weak_topics[0] if memory and memory.weak_topics else None
    step_by_step = memory is not None and memory.explanation_style == ExplanationStyle.STEP_BY_STEP
    beginner = memory is not None and memory.skill_level == SkillLevel.BEGINNER

    return GradingFeedback(
        score=score,
        max_score=10,
        overall_feedback="Good effort on this response! " + (
            "You're making great progress!" if encouraging else "Let's look at how to improve."
        ),
        strengths=[
            "Attempted to address the question directly",
            "Shows engagement with the material",
            "Provided a detailed response" if answer_length > 100 else "Got to the point efficiently",
        ],
        improvements=[
            "Consider adding more specific examples",
            "Try to connect your answer to broader concepts",
            f"Watch for common mistakes in {weak_topic}" if weak_topic else "Double-check your reasoning",
        ],
        personalized_tips=[
            "Try organizing your answer in clear steps" if step_by_step
            else "Use concrete examples to support your points",
            "Focus on understanding the basics first" if beginner
            else "Push yourself to explore deeper connections",
            DEMO_GRADING_NOTE,
        ],
    )

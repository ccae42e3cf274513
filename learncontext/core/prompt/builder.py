"""
Prompt builder: base instruction + learner profile brief + trimmed history + current turn.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from learncontext.core.prompt.templates import (
    ANSWER_SEPARATOR,
    BASE_PROMPTS,
    PROFILE_DIVIDER,
    SKILL_DESCRIPTIONS,
    STYLE_GUIDANCE,
    TIME_GUIDANCE,
    TONE_GUIDANCE,
    PromptMode,
)
from learncontext.memory.models import UserMemory
from learncontext.session.models import ChatMessage, MessageRole
from learncontext.shared.config import settings
from learncontext.shared.logging import get_logger
from learncontext.shared.tokens import estimate_tokens

logger = get_logger(__name__)

HistoryItem = Union[ChatMessage, Dict[str, Any]]


@dataclass
class BuiltPrompt:
    """Rendered system prompt plus the ordered messages to dispatch."""
    system_prompt: str
    messages: List[Dict[str, str]] = field(default_factory=list)


def _role_and_content(message: HistoryItem) -> tuple[str, str]:
    if isinstance(message, ChatMessage):
        return message.role.value, message.content
    role = message.get("role", MessageRole.USER.value)
    if isinstance(role, MessageRole):
        role = role.value
    return role, message.get("content", "")


def _time_clause(memory: UserMemory) -> str:
    return f"Time Availability: {TIME_GUIDANCE[memory.time_availability]}"


class PromptBuilder:
    """Build chat-completion message lists from learner memory."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}
        self.history_limit = self.config.get("history_limit", settings.prompt.history_limit)
        self.summarization_threshold = self.config.get(
            "summarization_threshold", settings.prompt.summarization_threshold
        )
        self.compress_large_profiles = self.config.get(
            "compress_large_profiles", settings.prompt.compress_large_profiles
        )

    def build(
        self,
        mode: Union[PromptMode, str],
        user_message: str,
        memory: Optional[UserMemory] = None,
        history: Optional[Sequence[HistoryItem]] = None,
        additional_context: Optional[str] = None
    ) -> BuiltPrompt:
        """
        Build the full prompt for one request.

        Args:
            mode: "tutor" or "grading"; selects the base instruction
            user_message: The learner's current input
            memory: Learner memory, or None before a profile exists
            history: Prior conversation, oldest first
            additional_context: Question/rubric text placed before the answer

        Returns:
            BuiltPrompt with the system prompt and [system, *history, user]
        """
        mode = PromptMode(mode)
        system_prompt = BASE_PROMPTS[mode]

        if memory is not None:
            system_prompt = f"{system_prompt}{PROFILE_DIVIDER}{self._profile_section(memory)}"

        messages = [{"role": MessageRole.SYSTEM.value, "content": system_prompt}]
        messages.extend(self._trim_history(history or []))

        final_user_message = user_message
        if additional_context:
            final_user_message = f"{additional_context}{ANSWER_SEPARATOR}Student's Answer:\n{user_message}"
        messages.append({"role": MessageRole.USER.value, "content": final_user_message})

        return BuiltPrompt(system_prompt=system_prompt, messages=messages)

    def _profile_section(self, memory: UserMemory) -> str:
        """Full brief; with compression on, an over-budget brief becomes a digest plus time availability."""
        brief = self.render_profile_brief(memory)
        if not self.compress_large_profiles:
            return brief

        estimated = estimate_tokens(brief)
        if estimated <= self.summarization_threshold:
            return brief

        logger.info(
            f"Profile brief for {memory.user_id} is ~{estimated} tokens, "
            f"condensing (threshold {self.summarization_threshold})"
        )
        return (
            f"## Student Learning Profile (condensed)\n\n{self.summarize_memory(memory)}\n\n"
            f"{_time_clause(memory)}\n"
        )

    def _trim_history(self, history: Sequence[HistoryItem]) -> List[Dict[str, str]]:
        """Keep the most recent non-system messages, oldest first."""
        turns = []
        for message in history:
            role, content = _role_and_content(message)
            if role == MessageRole.SYSTEM.value:
                continue
            turns.append({"role": role, "content": content})

        if self.history_limit <= 0:
            return []
        return turns[-self.history_limit:]

    def render_profile_brief(self, memory: UserMemory) -> str:
        """
        Render the learner profile as prompt text.

        Clauses for empty lists are omitted entirely; time availability is
        always present; session history only once a session has been counted.
        """
        parts = ["## Student Learning Profile\n"]
        parts.append(f"Skill Level: This student is {SKILL_DESCRIPTIONS[memory.skill_level]}.\n")
        parts.append(f"Preferred Style: {STYLE_GUIDANCE[memory.explanation_style]}\n")
        parts.append(f"Tone: {TONE_GUIDANCE[memory.tone_preference]}\n")

        if memory.weak_topics:
            parts.append(
                f"Known Challenges: {', '.join(memory.weak_topics)}. "
                "The student has struggled with these; approach them with extra care and scaffolding.\n"
            )

        if memory.strong_topics:
            parts.append(
                f"Strengths: {', '.join(memory.strong_topics)}. "
                "The student is confident here; reference these as foundations for new concepts.\n"
            )

        if memory.learning_goals:
            parts.append(
                f"Current Goals: {', '.join(memory.learning_goals)}. "
                "Connect lessons to these goals when possible.\n"
            )

        if memory.common_mistakes:
            parts.append(
                f"Patterns to Address: {', '.join(memory.common_mistakes)}. "
                "The student has made these types of mistakes before; watch for them and provide proactive guidance.\n"
            )

        parts.append(f"{_time_clause(memory)}\n")

        if memory.total_sessions > 0:
            session_clause = (
                f"Session History: This is approximately session #{memory.total_sessions + 1} "
                "with this student."
            )
            if memory.recent_topics:
                session_clause += f" Recent topics covered: {', '.join(memory.recent_topics[:3])}."
            parts.append(session_clause + "\n")

        return "\n".join(parts)

    def summarize_memory(self, memory: UserMemory) -> str:
        """Terse single-line digest of the profile."""
        parts = [
            f"{memory.skill_level.value} level student",
            f"prefers {memory.explanation_style.value} explanations",
            f"{memory.tone_preference.value} tone",
        ]

        if memory.weak_topics:
            parts.append(f"struggles with: {', '.join(memory.weak_topics[:3])}")

        if memory.learning_goals:
            parts.append(f"goals: {', '.join(memory.learning_goals[:2])}")

        return "; ".join(parts)

    def needs_summarization(self, memory: UserMemory) -> bool:
        """True when the full brief's estimated size exceeds the threshold."""
        return estimate_tokens(self.render_profile_brief(memory)) > self.summarization_threshold


def build_prompt(
    mode: Union[PromptMode, str],
    user_message: str,
    memory: Optional[UserMemory] = None,
    history: Optional[Sequence[HistoryItem]] = None,
    additional_context: Optional[str] = None
) -> BuiltPrompt:
    """Build a prompt using default settings."""
    return PromptBuilder().build(mode, user_message, memory, history, additional_context)

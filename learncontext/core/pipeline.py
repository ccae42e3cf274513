"""
Main LearnContext pipeline: personalized tutoring and grading.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from learncontext.core.demo import demo_grading_feedback, demo_tutor_response
from learncontext.core.feedback.models import GradingFeedback, GradingSubmission
from learncontext.core.feedback.parser import FeedbackParser
from learncontext.core.prompt.builder import HistoryItem, PromptBuilder
from learncontext.core.prompt.templates import PromptMode
from learncontext.memory.kv import SqliteKeyValueStore
from learncontext.memory.models import UserMemory
from learncontext.memory.store import MemoryStore
from learncontext.session.manager import SessionManager
from learncontext.session.models import ChatMessage, MessageMetadata, MessageRole
from learncontext.shared.config import LearnContextSettings, settings as default_settings
from learncontext.shared.exceptions import TransportError
from learncontext.shared.llm import LLMClient
from learncontext.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)

# Score percentages that move the question topic between weak and strong
WEAK_SCORE_PERCENT = 60
STRONG_SCORE_PERCENT = 80
TOPIC_WORDS = 3


@dataclass
class AIResponse:
    """Tutor reply, or the error that prevented one."""
    content: str
    error: Optional[str] = None
    tokens_used: Optional[int] = None
    memory_used: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GradingResult:
    """Grading outcome, or the error that prevented one."""
    feedback: Optional[GradingFeedback] = None
    error: Optional[str] = None
    submission: Optional[GradingSubmission] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _topic_from(text: str) -> str:
    return " ".join(text.split()[:TOPIC_WORDS])


class LearnContextPipeline:
    """Wires memory, prompt building, the model transport and feedback parsing."""

    def __init__(
        self,
        memory_store: MemoryStore,
        session_manager: SessionManager,
        llm: Optional[LLMClient] = None,
        demo_mode: bool = False,
        prompt_builder: Optional[PromptBuilder] = None,
        feedback_parser: Optional[FeedbackParser] = None,
        tutor_temperature: Optional[float] = None,
        grading_temperature: Optional[float] = None
    ):
        if llm is None and not demo_mode:
            raise ValueError("An LLM client is required unless demo_mode is enabled")

        self.memory_store = memory_store
        self.session_manager = session_manager
        self.llm = llm
        self.demo_mode = demo_mode
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.feedback_parser = feedback_parser or FeedbackParser()
        self.tutor_temperature = (
            tutor_temperature if tutor_temperature is not None else default_settings.llm.tutor_temperature
        )
        self.grading_temperature = (
            grading_temperature if grading_temperature is not None else default_settings.llm.grading_temperature
        )

    @classmethod
    def from_settings(cls, config: Optional[LearnContextSettings] = None) -> "LearnContextPipeline":
        """Build a pipeline; the model client is created only outside demo mode."""
        config = config or default_settings
        kv = SqliteKeyValueStore(config.storage.db_path)
        demo_mode = config.is_demo_mode()

        llm = None
        if not demo_mode:
            llm = LLMClient(
                provider=config.llm.provider,
                model=config.llm.default_model,
                api_key=config.llm.api_key(),
                max_tokens=config.llm.max_tokens,
            )
        logger.info(f"LearnContext pipeline ready (demo_mode={demo_mode})")

        return cls(
            memory_store=MemoryStore(kv, config.storage.memory_key),
            session_manager=SessionManager(kv, config.storage.session_key_prefix),
            llm=llm,
            demo_mode=demo_mode,
            prompt_builder=PromptBuilder({
                "history_limit": config.prompt.history_limit,
                "summarization_threshold": config.prompt.summarization_threshold,
                "compress_large_profiles": config.prompt.compress_large_profiles,
            }),
            tutor_temperature=config.llm.tutor_temperature,
            grading_temperature=config.llm.grading_temperature,
        )

    def profile_summary(self, user_id: str) -> str:
        """Readable digest of the learner's memory, shown alongside the tutor."""
        return self.memory_store.get(user_id).summary()

    async def send_tutor_message(
        self,
        user_message: str,
        memory: Optional[UserMemory],
        history: Optional[Sequence[HistoryItem]] = None
    ) -> AIResponse:
        """
        Get a personalized tutor reply.

        Transport failures are returned as AIResponse.error, never raised.
        """
        memory_used = memory is not None

        if self.demo_mode:
            content, tokens_used = demo_tutor_response(user_message, memory)
            return AIResponse(content=content, tokens_used=tokens_used, memory_used=memory_used)

        prompt = self.prompt_builder.build(PromptMode.TUTOR, user_message, memory, history)

        try:
            completion = await self.llm.send(prompt.messages, temperature=self.tutor_temperature)
        except TransportError as e:
            logger.error(f"Tutor request failed: {str(e)}")
            return AIResponse(content="", error=str(e), memory_used=memory_used)

        return AIResponse(
            content=completion.text,
            tokens_used=completion.tokens_used,
            memory_used=memory_used,
        )

    async def get_grading_feedback(
        self,
        question: str,
        student_answer: str,
        rubric: Optional[str],
        memory: Optional[UserMemory]
    ) -> GradingResult:
        """
        Grade an answer against a question and optional rubric.

        Malformed model output still yields feedback (parser defaults);
        transport failures are returned as GradingResult.error.
        """
        if self.demo_mode:
            return GradingResult(feedback=demo_grading_feedback(student_answer, memory))

        additional_context = f"**Question:**\n{question}"
        if rubric:
            additional_context += f"\n\n**Grading Rubric:**\n{rubric}"

        prompt = self.prompt_builder.build(
            PromptMode.GRADING,
            student_answer,
            memory,
            additional_context=additional_context,
        )

        try:
            completion = await self.llm.send(prompt.messages, temperature=self.grading_temperature)
        except TransportError as e:
            logger.error(f"Grading request failed: {str(e)}")
            return GradingResult(error=str(e))

        return GradingResult(feedback=self.feedback_parser.parse(completion.text))

    async def tutor_turn(self, user_id: str, session_id: str, text: str) -> AIResponse:
        """
        Run one tutor exchange inside a session.

        The learner's message is stored before the model is called, so it
        survives a transport failure. The first learner message of a session
        counts a new session; the opening words are recorded as a recent topic.
        """
        text = text.strip()
        if not text:
            return AIResponse(content="", error="Message is empty")

        session = self.session_manager.get_or_create(user_id, session_id)
        history = list(session.messages)
        is_first_turn = not any(m.role == MessageRole.USER for m in history)

        # Profile as it stood when the learner hit send
        memory = self.memory_store.get(user_id)

        self.session_manager.add_message(
            user_id, session.id, ChatMessage(role=MessageRole.USER, content=text)
        )
        if is_first_turn:
            self.memory_store.increment_session(user_id)
        if len(text.split()) >= 2:
            self.memory_store.add_recent_topic(user_id, _topic_from(text))

        response = await self.send_tutor_message(text, memory, history)

        if response.ok:
            self.session_manager.add_message(
                user_id,
                session.id,
                ChatMessage(
                    role=MessageRole.ASSISTANT,
                    content=response.content,
                    metadata=MessageMetadata(
                        memory_used=response.memory_used,
                        tokens_used=response.tokens_used,
                    ),
                ),
            )
        else:
            log_with_context(
                logger, logging.WARNING, "Tutor turn failed, learner message kept",
                user_id=user_id, action="tutor_turn", session_id=session.id
            )

        return response

    async def grade_submission(
        self,
        user_id: str,
        question: str,
        student_answer: str,
        rubric: Optional[str] = None
    ) -> GradingResult:
        """
        Grade a submission and fold the score back into the learner's memory.

        Below 60% the question topic becomes a weak topic; at 80% or above it
        becomes a strong topic.
        """
        question = question.strip()
        student_answer = student_answer.strip()
        if not question or not student_answer:
            return GradingResult(error="Both a question and an answer are required")

        rubric = rubric.strip() if rubric else None
        memory = self.memory_store.get(user_id)

        result = await self.get_grading_feedback(question, student_answer, rubric or None, memory)
        if result.feedback is None:
            return result

        submission = GradingSubmission(
            user_id=user_id,
            question=question,
            student_answer=student_answer,
            rubric=rubric or None,
            feedback=result.feedback,
        )

        topic = _topic_from(question)
        score_percent = result.feedback.score_percent
        if score_percent < WEAK_SCORE_PERCENT:
            self.memory_store.add_weak_topic(user_id, topic)
        elif score_percent >= STRONG_SCORE_PERCENT:
            self.memory_store.add_strong_topic(user_id, topic)

        log_with_context(
            logger, logging.INFO,
            f"Graded submission {result.feedback.score}/{result.feedback.max_score}",
            user_id=user_id, action="grade_submission"
        )

        return GradingResult(feedback=result.feedback, submission=submission)

"""
Pytest fixtures for LearnContext tests.
"""

import pytest
from unittest.mock import AsyncMock

from learncontext.memory.kv import InMemoryKeyValueStore, SqliteKeyValueStore
from learncontext.memory.models import (
    ExplanationStyle,
    SkillLevel,
    UserMemory,
)
from learncontext.memory.store import MemoryStore
from learncontext.session.manager import SessionManager
from learncontext.shared.llm import Completion


@pytest.fixture
def kv():
    """In-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def sqlite_kv(tmp_path):
    """SQLite key-value store in a temp directory."""
    return SqliteKeyValueStore(tmp_path / "learncontext.sqlite")


@pytest.fixture
def memory_store(kv):
    return MemoryStore(kv)


@pytest.fixture
def session_manager(kv):
    return SessionManager(kv)


@pytest.fixture
def mock_llm():
    """Mock LLM client that returns canned text."""
    mock = AsyncMock()

    def set_response(text: str, tokens_used: int = 42):
        """Set the reply text for the mock."""
        mock.send.return_value = Completion(text=text, tokens_used=tokens_used)

    mock.send.return_value = Completion(text="Here is an explanation.", tokens_used=42)
    mock.set_response = set_response

    return mock


@pytest.fixture
def empty_memory():
    """Factory-default memory: every list empty, no sessions."""
    return UserMemory.default_for("learner-1")


@pytest.fixture
def advanced_memory():
    """Advanced, concise learner with one weak topic."""
    return UserMemory.default_for("learner-2").model_copy(update={
        "skill_level": SkillLevel.ADVANCED,
        "explanation_style": ExplanationStyle.CONCISE,
        "weak_topics": ["integration by parts"],
    })


@pytest.fixture
def sample_grading_reply():
    """Well-formed grading reply in the requested format."""
    return (
        "- **Score:** 8/10\n"
        "- **Overall Feedback:** Solid answer that covers the main idea. "
        "The derivation could be tighter.\n"
        "- **Strengths:**\n"
        "  - Clear reasoning\n"
        "  - Correct use of step-by-step notation\n"
        "- **Areas for Improvement:**\n"
        "  - Define entropy before using it\n"
        "  - Add a worked example\n"
        "- **Personalized Tips:**\n"
        "  - Revisit integration by parts with two short drills\n"
    )

"""
Session manager with per-learner isolation, persisted through the key-value store.
"""

from typing import List, Optional

from pydantic import ValidationError

from learncontext.memory.kv import KeyValueStore, SqliteKeyValueStore
from learncontext.memory.models import utcnow
from learncontext.session.models import ChatMessage, ChatSession, MessageRole
from learncontext.shared.config import settings
from learncontext.shared.exceptions import SessionError
from learncontext.shared.logging import get_logger

logger = get_logger(__name__)

TITLE_MAX_CHARS = 60


class SessionManager:
    """Manages isolated, append-only chat sessions per learner."""

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        key_prefix: Optional[str] = None
    ):
        self.kv = kv if kv is not None else SqliteKeyValueStore()
        self.key_prefix = key_prefix or settings.storage.session_key_prefix

    def generate_session_key(self, user_id: str, session_id: str) -> str:
        """Generate session key: <prefix>:<user_id>:<session_id>."""
        return f"{self.key_prefix}:{user_id}:{session_id}"

    def _load(self, user_id: str, session_id: str) -> Optional[ChatSession]:
        raw = self.kv.load(self.generate_session_key(user_id, session_id))
        if not raw:
            return None
        try:
            return ChatSession.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Unparseable session {session_id} for {user_id}, starting fresh")
            return None

    def _save(self, session: ChatSession) -> ChatSession:
        self.kv.save(
            self.generate_session_key(session.user_id, session.id),
            session.model_dump_json()
        )
        return session

    def get_or_create(self, user_id: str, session_id: Optional[str] = None) -> ChatSession:
        """Get an existing session or create a new, empty one."""
        if session_id:
            session = self._load(user_id, session_id)
            if session is not None:
                return session
            session = ChatSession(id=session_id, user_id=user_id)
        else:
            session = ChatSession(user_id=user_id)

        logger.debug(f"Created session {session.id} for {user_id}")
        return self._save(session)

    def add_message(self, user_id: str, session_id: str, message: ChatMessage) -> ChatSession:
        """Append a message to the session."""
        session = self._load(user_id, session_id)
        if session is None:
            raise SessionError(f"Session {session_id} not found for {user_id}")

        updates = {
            "messages": [*session.messages, message],
            "updated_at": utcnow(),
        }
        if not session.messages and message.role == MessageRole.USER:
            updates["title"] = message.content[:TITLE_MAX_CHARS]

        return self._save(session.model_copy(update=updates))

    def get_messages(
        self,
        user_id: str,
        session_id: str,
        limit: Optional[int] = None
    ) -> List[ChatMessage]:
        """Get messages from a session, optionally only the most recent `limit`."""
        session = self._load(user_id, session_id)
        if session is None:
            return []
        if limit:
            return session.messages[-limit:]
        return list(session.messages)

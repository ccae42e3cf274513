"""
MemoryStore: owns each learner's UserMemory record on top of a key-value store.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from learncontext.memory.kv import KeyValueStore, SqliteKeyValueStore
from learncontext.memory.models import (
    IDENTITY_FIELDS,
    MAX_COMMON_MISTAKES,
    MAX_LEARNING_GOALS,
    MAX_RECENT_TOPICS,
    MAX_STRONG_TOPICS,
    MAX_WEAK_TOPICS,
    UserMemory,
    utcnow,
)
from learncontext.shared.config import settings
from learncontext.shared.logging import get_logger, log_with_context

logger = get_logger(__name__)


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _append_bounded(items: List[str], value: str, cap: int) -> List[str]:
    """Dedup preserving first occurrence, then keep the newest `cap` entries."""
    deduped = list(dict.fromkeys([*items, value]))
    return deduped[-cap:]


def _dedup(items: List[str]) -> List[str]:
    return list(dict.fromkeys(item for item in map(_clean, items) if item))


def _enforce_invariants(memory: UserMemory, previous: UserMemory) -> UserMemory:
    """Re-apply list caps, dedup, weak/strong exclusivity and the session counter floor."""
    strong_topics = _dedup(memory.strong_topics)[-MAX_STRONG_TOPICS:]
    weak_topics = [t for t in _dedup(memory.weak_topics) if t not in strong_topics][-MAX_WEAK_TOPICS:]

    return memory.model_copy(update={
        "weak_topics": weak_topics,
        "strong_topics": strong_topics,
        # Goals reject inserts past the cap, so the oldest survive
        "learning_goals": _dedup(memory.learning_goals)[:MAX_LEARNING_GOALS],
        # Most-recent-first
        "recent_topics": _dedup(memory.recent_topics)[:MAX_RECENT_TOPICS],
        "common_mistakes": _dedup(memory.common_mistakes)[-MAX_COMMON_MISTAKES:],
        "total_sessions": max(memory.total_sessions, previous.total_sessions),
    })


class MemoryStore:
    """Learner memory with bounded-list mutators.

    All learners share one JSON object stored under a single key, mapping
    user id to the serialized record. Last write wins.
    """

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        storage_key: Optional[str] = None
    ):
        self.kv = kv if kv is not None else SqliteKeyValueStore()
        self.storage_key = storage_key or settings.storage.memory_key

    def _load_all(self) -> Dict[str, Any]:
        raw = self.kv.load(self.storage_key)
        if not raw:
            return {}
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Unparseable memory blob under {self.storage_key}, treating as empty")
            return {}
        return records if isinstance(records, dict) else {}

    def _save(self, memory: UserMemory) -> UserMemory:
        records = self._load_all()
        records[memory.user_id] = memory.model_dump(mode="json")
        self.kv.save(self.storage_key, json.dumps(records))
        return memory

    def get(self, user_id: str) -> UserMemory:
        """Return the learner's memory, creating a default record on first access."""
        record = self._load_all().get(user_id)
        if record is not None:
            try:
                return UserMemory.model_validate(record)
            except ValidationError as e:
                log_with_context(
                    logger, logging.WARNING,
                    f"Stored memory failed validation ({e.error_count()} errors), recreating",
                    user_id=user_id, action="get_memory"
                )

        memory = UserMemory.default_for(user_id)
        log_with_context(logger, logging.INFO, "Created learner memory", user_id=user_id, action="create_memory")
        return self._save(memory)

    def update(self, user_id: str, partial: Dict[str, Any]) -> UserMemory:
        """
        Merge `partial` into the learner's memory and persist it.

        Identity fields and unknown keys are dropped; a partial that fails
        validation leaves the record unchanged. List caps, dedup, weak/strong
        exclusivity and the non-decreasing session counter hold afterwards.
        """
        current = self.get(user_id)

        changes = {
            key: value for key, value in partial.items()
            if key not in IDENTITY_FIELDS and key in UserMemory.model_fields
        }
        dropped = set(partial) - set(changes)
        if dropped:
            log_with_context(
                logger, logging.INFO, f"Ignoring fields in memory update: {sorted(dropped)}",
                user_id=user_id, action="update_memory"
            )

        merged = current.model_dump()
        merged.update(changes)
        merged["updated_at"] = utcnow()

        try:
            updated = UserMemory.model_validate(merged)
        except ValidationError as e:
            log_with_context(
                logger, logging.WARNING, f"Ignoring invalid memory update ({e.error_count()} errors)",
                user_id=user_id, action="update_memory"
            )
            return current

        if updated.total_sessions < current.total_sessions:
            log_with_context(
                logger, logging.INFO, "Ignoring attempt to lower total_sessions",
                user_id=user_id, action="update_memory"
            )
        updated = _enforce_invariants(updated, current)

        logger.debug(f"Updated memory for {user_id}: {sorted(changes)}")
        return self._save(updated)

    def reset(self, user_id: str) -> UserMemory:
        """Replace the learner's memory with factory defaults."""
        memory = UserMemory.default_for(user_id)
        log_with_context(logger, logging.INFO, "Reset learner memory", user_id=user_id, action="reset_memory")
        return self._save(memory)

    # Bounded-list mutators

    def add_weak_topic(self, user_id: str, topic: str) -> UserMemory:
        """Record a weak topic; a topic moving to weak leaves strong in the same write."""
        topic = _clean(topic)
        memory = self.get(user_id)
        if not topic:
            return memory

        weak_topics = _append_bounded(memory.weak_topics, topic, MAX_WEAK_TOPICS)
        strong_topics = [t for t in memory.strong_topics if t != topic]
        if weak_topics == memory.weak_topics and strong_topics == memory.strong_topics:
            return memory
        return self.update(user_id, {"weak_topics": weak_topics, "strong_topics": strong_topics})

    def remove_weak_topic(self, user_id: str, topic: str) -> UserMemory:
        topic = _clean(topic)
        memory = self.get(user_id)
        weak_topics = [t for t in memory.weak_topics if t != topic]
        if weak_topics == memory.weak_topics:
            return memory
        return self.update(user_id, {"weak_topics": weak_topics})

    def add_strong_topic(self, user_id: str, topic: str) -> UserMemory:
        """Promote a topic to strong, removing it from weak in the same write."""
        topic = _clean(topic)
        memory = self.get(user_id)
        if not topic:
            return memory

        strong_topics = _append_bounded(memory.strong_topics, topic, MAX_STRONG_TOPICS)
        weak_topics = [t for t in memory.weak_topics if t != topic]
        if strong_topics == memory.strong_topics and weak_topics == memory.weak_topics:
            return memory
        return self.update(user_id, {"strong_topics": strong_topics, "weak_topics": weak_topics})

    def add_learning_goal(self, user_id: str, goal: str) -> UserMemory:
        """Add a goal unless it is already present or the list is full."""
        goal = _clean(goal)
        memory = self.get(user_id)
        if not goal or goal in memory.learning_goals:
            return memory
        if len(memory.learning_goals) >= MAX_LEARNING_GOALS:
            log_with_context(
                logger, logging.INFO, "Learning goal cap reached, ignoring new goal",
                user_id=user_id, action="add_learning_goal"
            )
            return memory
        return self.update(user_id, {"learning_goals": [*memory.learning_goals, goal]})

    def remove_learning_goal(self, user_id: str, goal: str) -> UserMemory:
        goal = _clean(goal)
        memory = self.get(user_id)
        learning_goals = [g for g in memory.learning_goals if g != goal]
        if learning_goals == memory.learning_goals:
            return memory
        return self.update(user_id, {"learning_goals": learning_goals})

    def add_recent_topic(self, user_id: str, topic: str) -> UserMemory:
        """Move `topic` to the front of the recent list."""
        topic = _clean(topic)
        memory = self.get(user_id)
        if not topic:
            return memory

        recent_topics = [topic, *(t for t in memory.recent_topics if t != topic)][:MAX_RECENT_TOPICS]
        if recent_topics == memory.recent_topics:
            return memory
        return self.update(user_id, {"recent_topics": recent_topics})

    def add_common_mistake(self, user_id: str, mistake: str) -> UserMemory:
        mistake = _clean(mistake)
        memory = self.get(user_id)
        if not mistake:
            return memory

        common_mistakes = _append_bounded(memory.common_mistakes, mistake, MAX_COMMON_MISTAKES)
        if common_mistakes == memory.common_mistakes:
            return memory
        return self.update(user_id, {"common_mistakes": common_mistakes})

    def increment_session(self, user_id: str) -> UserMemory:
        memory = self.get(user_id)
        return self.update(user_id, {
            "total_sessions": memory.total_sessions + 1,
            "last_session_date": utcnow(),
        })

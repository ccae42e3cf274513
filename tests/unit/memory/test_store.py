"""
Tests for MemoryStore: defaults, merging, bounded lists, reset, persistence.
"""

import json

from learncontext.memory.kv import InMemoryKeyValueStore
from learncontext.memory.models import (
    ExplanationStyle,
    SkillLevel,
    TimeAvailability,
    TonePreference,
)
from learncontext.memory.store import MemoryStore


USER = "learner-1"


def test_get_creates_default_memory(memory_store):
    """First access creates a factory-default record."""
    memory = memory_store.get(USER)

    assert memory.user_id == USER
    assert memory.skill_level == SkillLevel.BEGINNER
    assert memory.explanation_style == ExplanationStyle.STEP_BY_STEP
    assert memory.tone_preference == TonePreference.ENCOURAGING
    assert memory.time_availability == TimeAvailability.MODERATE
    assert memory.weak_topics == []
    assert memory.total_sessions == 0

    # Second access returns the same record
    assert memory_store.get(USER).id == memory.id


def test_learners_are_isolated(memory_store):
    memory_store.add_weak_topic("a", "recursion")

    assert memory_store.get("b").weak_topics == []
    assert memory_store.get("a").weak_topics == ["recursion"]


def test_update_merges_and_stamps(memory_store):
    before = memory_store.get(USER)

    updated = memory_store.update(USER, {"skill_level": "advanced", "learning_goals": ["pass calculus"]})

    assert updated.skill_level == SkillLevel.ADVANCED
    assert updated.learning_goals == ["pass calculus"]
    # Untouched fields are preserved
    assert updated.explanation_style == before.explanation_style
    assert updated.updated_at >= before.updated_at
    assert memory_store.get(USER).skill_level == SkillLevel.ADVANCED


def test_update_ignores_identity_fields(memory_store):
    before = memory_store.get(USER)

    updated = memory_store.update(USER, {"user_id": "someone-else", "id": "forged", "tone_preference": "casual"})

    assert updated.user_id == USER
    assert updated.id == before.id
    assert updated.tone_preference == TonePreference.CASUAL


def test_invalid_update_is_ignored(memory_store):
    before = memory_store.get(USER)

    result = memory_store.update(USER, {"skill_level": "wizard"})

    assert result.skill_level == before.skill_level
    assert memory_store.get(USER).skill_level == SkillLevel.BEGINNER


def test_weak_topic_cap_and_dedup(memory_store):
    """Weak topics never exceed 10 and contain no duplicates."""
    for i in range(15):
        memory_store.add_weak_topic(USER, f"topic-{i}")
        memory_store.add_weak_topic(USER, f"topic-{i}")

    weak = memory_store.get(USER).weak_topics
    assert len(weak) == 10
    assert len(set(weak)) == len(weak)
    # Oldest evicted first
    assert weak[0] == "topic-5"
    assert weak[-1] == "topic-14"


def test_readding_existing_weak_topic_keeps_position(memory_store):
    memory_store.add_weak_topic(USER, "a")
    memory_store.add_weak_topic(USER, "b")
    memory_store.add_weak_topic(USER, "a")

    assert memory_store.get(USER).weak_topics == ["a", "b"]


def test_empty_topic_is_ignored(memory_store):
    before = memory_store.get(USER)

    after = memory_store.add_weak_topic(USER, "   ")

    assert after.weak_topics == []
    assert after.updated_at == before.updated_at


def test_remove_weak_topic(memory_store):
    memory_store.add_weak_topic(USER, "limits")
    memory_store.add_weak_topic(USER, "series")

    memory = memory_store.remove_weak_topic(USER, "limits")

    assert memory.weak_topics == ["series"]
    # Removing something absent is a no-op
    assert memory_store.remove_weak_topic(USER, "nope").weak_topics == ["series"]


def test_strong_topic_promotion_removes_weak(memory_store):
    """After add_strong_topic(t), t is strong and not weak."""
    memory_store.add_weak_topic(USER, "derivatives")
    memory_store.add_weak_topic(USER, "limits")

    memory = memory_store.add_strong_topic(USER, "derivatives")

    assert "derivatives" in memory.strong_topics
    assert "derivatives" not in memory.weak_topics
    assert memory.weak_topics == ["limits"]


def test_strong_topic_promotion_without_prior_weak(memory_store):
    memory = memory_store.add_strong_topic(USER, "vectors")

    assert memory.strong_topics == ["vectors"]
    assert "vectors" not in memory.weak_topics


def test_promotion_is_a_single_write(kv):
    """Strong/weak promotion lands in one save."""
    store = MemoryStore(kv)
    store.add_weak_topic(USER, "derivatives")

    saves = []
    original_save = kv.save

    def recording_save(key, text):
        saves.append(json.loads(text)[USER])
        original_save(key, text)

    kv.save = recording_save
    store.add_strong_topic(USER, "derivatives")

    assert len(saves) == 1
    assert saves[0]["strong_topics"] == ["derivatives"]
    assert saves[0]["weak_topics"] == []


def test_weak_topic_demotes_strong(memory_store):
    memory_store.add_strong_topic(USER, "matrices")

    memory = memory_store.add_weak_topic(USER, "matrices")

    assert memory.weak_topics == ["matrices"]
    assert "matrices" not in memory.strong_topics


def test_strong_topic_cap(memory_store):
    for i in range(12):
        memory_store.add_strong_topic(USER, f"s{i}")

    strong = memory_store.get(USER).strong_topics
    assert len(strong) == 10
    assert strong[0] == "s2"


def test_learning_goal_cap_rejects_sixth(memory_store):
    """Six distinct goals leave five, without the sixth."""
    for i in range(6):
        memory_store.add_learning_goal(USER, f"goal-{i}")

    goals = memory_store.get(USER).learning_goals
    assert len(goals) == 5
    assert "goal-5" not in goals
    assert goals == [f"goal-{i}" for i in range(5)]


def test_remove_learning_goal_frees_a_slot(memory_store):
    for i in range(5):
        memory_store.add_learning_goal(USER, f"goal-{i}")

    memory_store.remove_learning_goal(USER, "goal-0")
    memory = memory_store.add_learning_goal(USER, "goal-new")

    assert memory.learning_goals == ["goal-1", "goal-2", "goal-3", "goal-4", "goal-new"]


def test_recent_topics_move_to_front(memory_store):
    """Re-adding a topic moves it to the front without duplicating it."""
    memory_store.add_recent_topic(USER, "b")
    memory_store.add_recent_topic(USER, "a")
    memory = memory_store.add_recent_topic(USER, "b")

    assert memory.recent_topics[:2] == ["b", "a"]
    assert memory.recent_topics.count("b") == 1


def test_recent_topics_cap_drops_oldest(memory_store):
    for i in range(12):
        memory_store.add_recent_topic(USER, f"r{i}")

    recent = memory_store.get(USER).recent_topics
    assert len(recent) == 10
    assert recent[0] == "r11"
    assert "r0" not in recent and "r1" not in recent


def test_common_mistake_cap(memory_store):
    for i in range(11):
        memory_store.add_common_mistake(USER, f"m{i}")

    mistakes = memory_store.get(USER).common_mistakes
    assert len(mistakes) == 10
    assert mistakes[0] == "m1"


def test_increment_session(memory_store):
    before = memory_store.get(USER)

    memory_store.increment_session(USER)
    memory = memory_store.increment_session(USER)

    assert memory.total_sessions == 2
    assert memory.last_session_date >= before.last_session_date


def test_reset_restores_defaults(memory_store):
    """Reset empties every list, restores enum defaults and issues a new id."""
    memory_store.update(USER, {"skill_level": "advanced", "tone_preference": "formal"})
    memory_store.add_weak_topic(USER, "w")
    memory_store.add_strong_topic(USER, "s")
    memory_store.add_learning_goal(USER, "g")
    memory_store.add_recent_topic(USER, "r")
    memory_store.add_common_mistake(USER, "m")
    memory_store.increment_session(USER)
    old_id = memory_store.get(USER).id

    memory = memory_store.reset(USER)

    assert memory.id != old_id
    assert memory.weak_topics == []
    assert memory.strong_topics == []
    assert memory.learning_goals == []
    assert memory.recent_topics == []
    assert memory.common_mistakes == []
    assert memory.skill_level == SkillLevel.BEGINNER
    assert memory.explanation_style == ExplanationStyle.STEP_BY_STEP
    assert memory.tone_preference == TonePreference.ENCOURAGING
    assert memory.time_availability == TimeAvailability.MODERATE
    assert memory.total_sessions == 0
    assert memory_store.get(USER).id == memory.id


def test_memory_persists_across_store_instances(sqlite_kv):
    MemoryStore(sqlite_kv).add_learning_goal(USER, "learn thermodynamics")

    reloaded = MemoryStore(sqlite_kv).get(USER)

    assert reloaded.learning_goals == ["learn thermodynamics"]


def test_unparseable_blob_is_treated_as_absent():
    kv = InMemoryKeyValueStore({"learncontext_memory": "{not json"})
    store = MemoryStore(kv, storage_key="learncontext_memory")

    memory = store.get(USER)

    assert memory.user_id == USER
    assert memory.weak_topics == []


def test_summary_lists_known_fields(memory_store):
    memory_store.add_weak_topic(USER, "limits")
    memory_store.add_learning_goal(USER, "ace the final")

    summary = memory_store.get(USER).summary()

    assert summary.startswith("Skill Level: beginner")
    assert "Areas needing work: limits" in summary
    assert "Goals: ace the final" in summary
    assert "Strong in" not in summary
    assert "Prefers step-by-step explanations" in summary


def test_update_keeps_list_invariants(memory_store):
    """Raw list partials are deduped, capped, and kept out of both weak and strong."""
    memory_store.add_strong_topic(USER, "limits")

    memory = memory_store.update(USER, {
        "weak_topics": ["limits"] + [f"t{i}" for i in range(14)] + ["t0"],
        "learning_goals": [f"g{i}" for i in range(8)],
        "recent_topics": ["r0", "r1", "r0"] + [f"x{i}" for i in range(12)],
        "common_mistakes": ["m", "m", "  ", "n"],
    })

    assert len(memory.weak_topics) == 10
    assert len(set(memory.weak_topics)) == 10
    assert "limits" not in memory.weak_topics
    assert memory.weak_topics[-1] == "t13"
    assert memory.strong_topics == ["limits"]
    assert memory.learning_goals == [f"g{i}" for i in range(5)]
    assert memory.recent_topics[:2] == ["r0", "r1"]
    assert len(memory.recent_topics) == 10
    assert memory.common_mistakes == ["m", "n"]
    assert memory_store.get(USER).weak_topics == memory.weak_topics


def test_update_cannot_lower_session_count(memory_store):
    memory_store.increment_session(USER)
    memory_store.increment_session(USER)

    memory = memory_store.update(USER, {"total_sessions": 0, "tone_preference": "formal"})

    assert memory.total_sessions == 2
    assert memory.tone_preference == TonePreference.FORMAL
    assert memory_store.update(USER, {"total_sessions": 5}).total_sessions == 5


def test_removers_strip_whitespace(memory_store):
    memory_store.add_weak_topic(USER, " vectors ")
    memory_store.add_learning_goal(USER, " pass the exam ")

    memory_store.remove_weak_topic(USER, " vectors ")
    memory = memory_store.remove_learning_goal(USER, "pass the exam  ")

    assert memory.weak_topics == []
    assert memory.learning_goals == []

"""
Tests for key-value stores.
"""

from learncontext.memory.kv import InMemoryKeyValueStore, SqliteKeyValueStore


def test_wal_mode_enabled(tmp_path):
    """Test that WAL mode is enabled."""
    store = SqliteKeyValueStore(tmp_path / "kv.db")

    with store._get_connection() as conn:
        result = conn.execute("PRAGMA journal_mode").fetchone()
        assert result[0].upper() == "WAL"


def test_load_missing_key_returns_none(sqlite_kv):
    assert sqlite_kv.load("absent") is None


def test_save_overwrites(sqlite_kv):
    sqlite_kv.save("k", "first")
    sqlite_kv.save("k", "second")

    assert sqlite_kv.load("k") == "second"


def test_values_survive_reopen(tmp_path):
    db_path = tmp_path / "kv.db"
    SqliteKeyValueStore(db_path).save("k", "v")

    assert SqliteKeyValueStore(db_path).load("k") == "v"


def test_in_memory_store():
    store = InMemoryKeyValueStore({"seed": "1"})
    store.save("k", "v")

    assert store.load("seed") == "1"
    assert store.load("k") == "v"
    assert store.load("missing") is None

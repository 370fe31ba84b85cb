"""
Tests for the SQLite classroom store.
"""

import pytest

from aulafeed.classroom import ClassroomStore
from aulafeed.classroom.store import from_json, new_id, parse_timestamp, to_json


class TestStore:
    """Test schema creation and transactions."""

    def test_creates_tables(self, store):
        rows = store.fetch_all("SELECT name FROM sqlite_master WHERE type = 'table'")
        names = {row["name"] for row in rows}
        assert {"courses", "lessons", "classes", "groups", "submissions", "programs",
                "forum_posts", "class_progress", "seen_classes", "likes"} <= names

    def test_reopening_keeps_data(self, store, tmp_path):
        store.execute("INSERT INTO users (id, name, role) VALUES ('u1', 'Ana', 'teacher')")
        reopened = ClassroomStore(tmp_path / "aula.db")
        assert reopened.fetch_one("SELECT name FROM users WHERE id = 'u1'")["name"] == "Ana"

    def test_transaction_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction() as conn:
                conn.execute("INSERT INTO users (id, name, role) VALUES ('u1', 'Ana', 'x')")
                raise RuntimeError("boom")
        assert store.fetch_one("SELECT * FROM users WHERE id = 'u1'") is None

    def test_execute_returns_rowcount(self, store):
        store.execute("INSERT INTO users (id, name, role) VALUES ('u1', 'Ana', 'x')")
        store.execute("INSERT INTO users (id, name, role) VALUES ('u2', 'Bea', 'x')")
        assert store.execute("UPDATE users SET role = 'student'") == 2


class TestHelpers:
    """Test row helpers."""

    def test_json_round_trip(self):
        assert from_json(to_json({"a": [1, "ñ"]})) == {"a": [1, "ñ"]}

    def test_json_empty(self):
        assert to_json(None) is None
        assert from_json(None, []) == []
        assert from_json("", {}) == {}

    def test_timestamp(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("2026-01-02T03:04:05").year == 2026

    def test_new_id_unique(self):
        ids = {new_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(len(value) == 32 for value in ids)

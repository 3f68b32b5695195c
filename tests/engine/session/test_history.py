"""
Unit tests for session history.
"""

import json
from datetime import datetime
from pathlib import Path

import pytest

from interview_toolkit.core.models.questions import Difficulty
from interview_toolkit.engine.session import SessionHistory, SessionSummary


def make_summary(sid: str, served=("a",), categories=None, minutes=5) -> SessionSummary:
    """Helper to create session summaries."""
    return SessionSummary(
        session_id=sid,
        started_at=datetime(2024, 5, 1, 10, 0),
        ended_at=datetime(2024, 5, 1, 10, 30),
        served=tuple(served),
        time_spent=minutes,
        category_counts=categories or {"Hooks": len(served)},
        final_difficulty=Difficulty.INTERMEDIATE,
    )


class TestSessionHistory:
    """Tests for SessionHistory."""

    def test_record_when_over_limit_then_oldest_evicted(self):
        # Arrange
        history = SessionHistory(limit=3)

        # Act
        for i in range(5):
            history.record(make_summary(f"s{i}"))

        # Assert
        assert [s.session_id for s in history.sessions] == ["s4", "s3", "s2"]

    def test_record_when_same_id_then_replaced(self):
        history = SessionHistory()
        history.record(make_summary("s1", served=("a",)))
        history.record(make_summary("s1", served=("a", "b")))
        assert len(history) == 1
        assert history.sessions[0].served == ("a", "b")

    def test_stats_when_sessions_recorded_then_aggregated(self):
        history = SessionHistory()
        history.record(make_summary("s1", served=("a", "b"), categories={"Hooks": 2}, minutes=8))
        history.record(make_summary("s2", served=("c",), categories={"Hooks": 1, "State": 0}, minutes=4))

        stats = history.stats()

        assert stats.total_sessions == 2
        assert stats.total_questions_served == 3
        assert stats.total_time_spent == 12
        assert stats.sessions_by_category == {"Hooks": 2, "State": 1}
        assert stats.questions_by_category == {"Hooks": 3, "State": 0}
        assert stats.average_questions == 1.5

    def test_stats_when_empty_then_zero(self):
        stats = SessionHistory().stats()
        assert stats.total_sessions == 0
        assert stats.average_questions == 0.0

    def test_init_when_negative_limit_then_raises(self):
        with pytest.raises(ValueError):
            SessionHistory(limit=-1)


class TestHistoryPersistence:
    """Tests for the JSON history file."""

    def test_save_then_load_when_path_set_then_sessions_survive(self, tmp_path: Path):
        # Arrange
        path = tmp_path / "history.json"
        history = SessionHistory(limit=50, path=path)
        history.record(make_summary("s1"))
        history.record(make_summary("s2"))

        # Act
        loaded = SessionHistory.load(path)

        # Assert
        assert [s.session_id for s in loaded.sessions] == ["s2", "s1"]
        assert loaded.sessions[1] == make_summary("s1")

    def test_persist_when_two_writers_then_file_merges_both(self, tmp_path: Path):
        path = tmp_path / "history.json"
        SessionHistory(path=path).record(make_summary("s1"))
        SessionHistory(path=path).record(make_summary("s2"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [item["session_id"] for item in data["sessions"]] == ["s2", "s1"]

    def test_persist_when_limit_reached_then_file_trimmed(self, tmp_path: Path):
        path = tmp_path / "history.json"
        history = SessionHistory(limit=2, path=path)
        for i in range(4):
            history.record(make_summary(f"s{i}"))
        assert len(SessionHistory.load(path, limit=10)) == 2

    def test_load_when_file_missing_then_empty(self, tmp_path: Path):
        assert len(SessionHistory.load(tmp_path / "none.json")) == 0

    def test_load_when_records_malformed_then_raises(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps({"sessions": [{"no_id": True}]}), encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid session history"):
            SessionHistory.load(path)

    def test_load_when_top_level_not_object_then_raises(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid session history"):
            SessionHistory.load(path)

    def test_record_when_file_not_object_then_raises_and_file_kept(self, tmp_path: Path):
        # Arrange
        path = tmp_path / "history.json"
        path.write_text("[1, 2]", encoding="utf-8")
        history = SessionHistory(path=path)

        # Act / Assert
        with pytest.raises(ValueError, match="Invalid session history"):
            history.record(make_summary("s1"))
        assert json.loads(path.read_text(encoding="utf-8")) == [1, 2]

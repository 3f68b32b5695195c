"""
Unit tests for the session tracker.

Covers the session state machine, exclusions and time accounting.
"""

import threading

import pytest

from interview_toolkit.engine.session import (
    SessionState,
    SessionStateError,
    SessionStatus,
    SessionTracker,
    UnknownSessionError,
)


@pytest.fixture
def tracker() -> SessionTracker:
    return SessionTracker()


class TestLifecycle:
    """Tests for start/end transitions."""

    def test_start_when_called_then_active_and_empty(self, tracker):
        session = tracker.start_session("s1", time_limit=30)
        assert session.status is SessionStatus.ACTIVE
        assert session.served == []
        assert session.excluded == set()
        assert session.started_at is not None
        assert session.remaining_time == 30
        assert tracker.get("s1") is session

    def test_start_when_no_id_then_generated(self, tracker):
        session = tracker.start_session()
        assert session.session_id.startswith("session-")

    def test_start_when_id_live_then_raises(self, tracker):
        tracker.start_session("s1")
        with pytest.raises(SessionStateError):
            tracker.start_session("s1")

    def test_start_when_time_limit_not_positive_then_raises(self, tracker):
        with pytest.raises(ValueError):
            tracker.start_session(time_limit=0)

    def test_end_when_active_then_summary_and_unregistered(self, tracker, scenario_questions):
        # Arrange
        session = tracker.start_session("s1")
        tracker.record_served(session, scenario_questions[:2])

        # Act
        summary = tracker.end_session(session)

        # Assert
        assert session.status is SessionStatus.ENDED
        assert summary.served == ("a", "b")
        assert summary.time_spent == 8
        assert summary.category_counts == {"X": 2}
        with pytest.raises(UnknownSessionError):
            tracker.get("s1")

    def test_record_when_ended_then_raises(self, tracker, scenario_questions):
        session = tracker.start_session()
        tracker.end_session(session)
        with pytest.raises(SessionStateError):
            tracker.record_served(session, scenario_questions[:1])
        with pytest.raises(SessionStateError):
            tracker.record_skipped(session, "a")
        with pytest.raises(SessionStateError):
            tracker.end_session(session)

    def test_record_when_not_started_then_raises(self, tracker, scenario_questions):
        # Arrange
        session = SessionState("x")

        # Act / Assert
        assert session.status is SessionStatus.NOT_STARTED
        with pytest.raises(SessionStateError):
            tracker.record_served(session, scenario_questions[:1])
        with pytest.raises(SessionStateError):
            tracker.record_skipped(session, "a")
        assert session.excluded == set()

    def test_get_when_unknown_then_raises(self, tracker):
        with pytest.raises(UnknownSessionError) as exc_info:
            tracker.get("ghost")
        assert exc_info.value.session_id == "ghost"


class TestServedAndSkipped:
    """Tests for exclusion bookkeeping."""

    def test_record_served_when_questions_then_excluded_and_time_accrued(self, tracker, scenario_questions):
        session = tracker.start_session(time_limit=10)
        tracker.record_served(session, scenario_questions[:1])
        assert session.served == ["a"]
        assert session.excluded == {"a"}
        assert session.time_spent == 3
        assert session.remaining_time == 7

    def test_record_served_when_already_served_then_raises(self, tracker, scenario_questions):
        session = tracker.start_session()
        tracker.record_served(session, scenario_questions[:1])
        with pytest.raises(SessionStateError, match="already excluded"):
            tracker.record_served(session, scenario_questions[:1])
        assert session.served == ["a"]

    def test_record_served_when_same_question_twice_in_call_then_raises(self, tracker, scenario_questions):
        # Arrange
        session = tracker.start_session()
        question = scenario_questions[0]

        # Act / Assert
        with pytest.raises(SessionStateError, match="already excluded"):
            tracker.record_served(session, [question, question])
        assert session.served == []
        assert session.excluded == set()
        assert session.time_spent == 0

    def test_record_skipped_when_called_then_excluded_not_served(self, tracker):
        session = tracker.start_session()
        tracker.record_skipped(session, "b")
        tracker.record_skipped(session, "b")
        assert session.skipped == ["b"]
        assert session.served == []
        assert session.excluded == {"b"}

    def test_exclusions_when_two_sessions_then_independent(self, tracker, scenario_questions):
        first = tracker.start_session("s1")
        second = tracker.start_session("s2")
        tracker.record_served(first, scenario_questions[:1])
        assert second.excluded == set()

    def test_record_served_when_concurrent_then_no_lost_updates(self, tracker, scenario_questions):
        session = tracker.start_session()
        errors = []

        def serve(question):
            try:
                tracker.record_served(session, [question])
            except SessionStateError as e:
                errors.append(e)

        threads = [threading.Thread(target=serve, args=(q,)) for q in scenario_questions]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert sorted(session.served) == ["a", "b", "c"]
        assert session.time_spent == 12

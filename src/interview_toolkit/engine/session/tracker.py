"""
Module: engine.session.tracker

Purpose:
    Owns live practice sessions: what each one has served and skipped,
    the exclusion set derived from them, time spent, and difficulty
    progression. Exclusions are per session and never leak across
    sessions.

Key Classes:
    - SessionTracker: Session registry and state transitions

Concurrency:
    The registry is guarded by one lock. Each SessionState carries its
    own re-entrant lock; every mutation of a session happens under it,
    so the engine can hold it across read-exclusions -> plan ->
    record_served and two concurrent selections for the same session
    never return overlapping ids.

Dependencies:
    - engine.session.models: SessionState, SessionStatus, SessionSummary
    - engine.session.policy: Progression policy

Used By:
    - engine.controller.QueryEngine
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Dict, Optional, Sequence, Tuple

from interview_toolkit.core.models.questions import Difficulty, Question

from .models import SessionState, SessionStatus, SessionSummary
from .policy import DifficultyPolicy, StepProgressionPolicy

logger = logging.getLogger(__name__)


class SessionStateError(Exception):
    """Operation not allowed in the session's current state."""
    pass


class UnknownSessionError(SessionStateError):
    """No live session with the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Unknown session: {session_id!r}")
        self.session_id = session_id


class SessionTracker:
    """
    Registry of live sessions.

    Ended sessions are removed from the registry; their summary is
    returned by ``end_session`` for the caller to archive.

    Example:
        >>> tracker = SessionTracker()
        >>> session = tracker.start_session("s1")
        >>> tracker.record_served(session, [question])
        >>> session.excluded
        {'hooks-1'}
    """

    def __init__(
        self,
        policy: Optional[DifficultyPolicy] = None,
        *,
        start_difficulty: Difficulty = Difficulty.BEGINNER,
    ) -> None:
        self.policy: DifficultyPolicy = policy or StepProgressionPolicy()
        self.start_difficulty = start_difficulty
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def start_session(
        self,
        session_id: Optional[str] = None,
        *,
        time_limit: Optional[int] = None,
        start_difficulty: Optional[Difficulty] = None,
    ) -> SessionState:
        """
        Create and activate a session.

        Args:
            session_id: Id to use; generated when omitted
            time_limit: Total minutes available to the session
            start_difficulty: Initial progression tier

        Returns:
            The ACTIVE session state

        Raises:
            SessionStateError: If a live session already uses the id
            ValueError: If time_limit is not positive
        """
        if time_limit is not None and time_limit < 1:
            raise ValueError(f"time_limit must be positive: {time_limit}")
        sid = session_id or f"session-{uuid.uuid4().hex[:12]}"
        state = SessionState(
            session_id=sid,
            difficulty_cursor=start_difficulty or self.start_difficulty,
            time_limit=time_limit,
        )

        with self._lock:
            if sid in self._sessions:
                raise SessionStateError(f"Session {sid!r} already exists")
            self._sessions[sid] = state
        self._activate(state)

        logger.info(f"Started session {sid} (time_limit={time_limit})")
        return state

    def _activate(self, state: SessionState) -> None:
        with state.lock:
            if state.status is not SessionStatus.NOT_STARTED:
                raise SessionStateError(f"Session {state.session_id!r} is {state.status}")
            state.status = SessionStatus.ACTIVE
            state.started_at = datetime.now()

    def end_session(self, session: SessionState) -> SessionSummary:
        """
        End a session and drop it from the registry.

        Returns:
            Summary of the ended session

        Raises:
            SessionStateError: If the session is not active
        """
        with session.lock:
            self._require_active(session)
            session.status = SessionStatus.ENDED
            session.ended_at = datetime.now()
            summary = SessionSummary.from_state(session)

        with self._lock:
            self._sessions.pop(session.session_id, None)

        logger.info(
            f"Ended session {session.session_id}: {len(session.served)} served, "
            f"{len(session.skipped)} skipped, {session.time_spent}m"
        )
        return summary

    def get(self, session_id: str) -> SessionState:
        """
        Look up a live session.

        Raises:
            UnknownSessionError: If no live session has that id
        """
        with self._lock:
            state = self._sessions.get(session_id)
        if state is None:
            raise UnknownSessionError(session_id)
        return state

    @property
    def session_ids(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._sessions)

    # ─────────────────────────────────────────────────────────────────────────
    # State transitions
    # ─────────────────────────────────────────────────────────────────────────

    def record_served(self, session: SessionState, questions: Sequence[Question]) -> None:
        """
        Record questions as served: excluded from now on, time accrued,
        progression updated.

        Raises:
            SessionStateError: If the session is not active or a question
                was already served or skipped in it
        """
        with session.lock:
            self._require_active(session)
            seen = set(session.excluded)
            repeated = []
            for q in questions:
                if q.id in seen:
                    repeated.append(q.id)
                seen.add(q.id)
            if repeated:
                raise SessionStateError(
                    f"Session {session.session_id!r} already excluded: {', '.join(repeated)}"
                )
            for question in questions:
                session.served.append(question.id)
                session.excluded.add(question.id)
                session.time_spent += question.time_estimate
                session.category_counts[question.category] = (
                    session.category_counts.get(question.category, 0) + 1
                )
            self.policy.on_served(session, questions)

        logger.debug(
            f"Session {session.session_id}: served {len(questions)} "
            f"(total {len(session.served)}, {session.time_spent}m)"
        )

    def record_skipped(self, session: SessionState, question_id: str) -> None:
        """
        Exclude a question without serving it. Skipping an already
        excluded id is a no-op.

        Raises:
            SessionStateError: If the session is not active
        """
        with session.lock:
            self._require_active(session)
            if question_id in session.excluded:
                return
            session.skipped.append(question_id)
            session.excluded.add(question_id)
        logger.debug(f"Session {session.session_id}: skipped {question_id}")

    def next_difficulty(self, session: SessionState) -> Difficulty:
        """Tier the progression policy targets next."""
        with session.lock:
            return self.policy.next_difficulty(session)

    @staticmethod
    def _require_active(session: SessionState) -> None:
        if session.status is not SessionStatus.ACTIVE:
            raise SessionStateError(f"Session {session.session_id!r} is {session.status}")

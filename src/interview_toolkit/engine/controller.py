"""
Module: engine.controller

Purpose:
    Query engine facade. Composes facet filtering, selection planning
    and session bookkeeping behind one object:
    Filter -> Check deadline -> Plan -> Record served

Key Classes:
    - QueryEngine: Public entry point
    - EngineStats: Corpus and history totals
    - DeadlineExceededError: Deadline passed before planning

Concurrency:
    The index is copy-on-write. Writers (add/remove) hold the engine's
    write lock, build a new FacetIndex and publish it; readers take the
    current reference once and use that snapshot for the whole call.
    A selection holds its session's lock from reading the exclusions
    until the served ids are recorded.

Dependencies:
    - engine.index: FacetIndex
    - engine.selection: plan_selection
    - engine.session: SessionTracker, SessionHistory
    - engine.loading: ingest_records
    - core.utils.serialization: Record parsing and JSONL export

Used By:
    - Applications embedding the question bank
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from interview_toolkit.core.models import Difficulty, Question
from interview_toolkit.core.models.facets import FacetKind
from interview_toolkit.core.models.selection import (
    QueryRequest,
    SelectionResult,
    SelectionStatus,
)
from interview_toolkit.core.schemas.validator import find_near_duplicates
from interview_toolkit.core.utils.serialization import deserialize_question, save_questions_jsonl

from .config import EngineConfig
from .index import FacetIndex
from .loading import IngestReport, ingest_records, load_records
from .selection import EmptyCandidateSetError, plan_selection
from .session import (
    HistoryStats,
    SessionHistory,
    SessionState,
    SessionStateError,
    SessionSummary,
    SessionTracker,
    StepProgressionPolicy,
)

logger = logging.getLogger(__name__)


class DeadlineExceededError(Exception):
    """The caller's deadline had passed before planning started."""
    pass


@dataclass(frozen=True)
class EngineStats:
    """
    Corpus and practice totals.

    Attributes:
        total_questions: Indexed questions
        by_difficulty: Question count per difficulty
        by_type: Question count per type
        by_category: Question count per category
        active_sessions: Live sessions
        history: Aggregates over archived sessions
    """

    total_questions: int
    by_difficulty: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)
    active_sessions: int = 0
    history: HistoryStats = field(default_factory=HistoryStats)


class QueryEngine:
    """
    Question bank query engine.

    Example:
        >>> engine, report = QueryEngine.from_records(records)
        >>> session = engine.start_session()
        >>> result = engine.select_questions(
        ...     session.session_id,
        ...     QueryRequest(categories=("Hooks",), count=5, seed=42),
        ... )
        >>> result.ids
        ('hooks-3', 'hooks-1', 'hooks-7', 'hooks-2', 'hooks-5')
    """

    def __init__(
        self,
        index: Optional[FacetIndex] = None,
        config: Optional[EngineConfig] = None,
        *,
        tracker: Optional[SessionTracker] = None,
        history: Optional[SessionHistory] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._index = index if index is not None else FacetIndex()
        self._write_lock = threading.Lock()
        self.tracker = tracker or SessionTracker(
            StepProgressionPolicy(self.config.progression_step),
            start_difficulty=self.config.start_difficulty,
        )
        if history is None:
            if self.config.history_path is not None:
                history = SessionHistory.load(self.config.history_path, self.config.history_limit)
            else:
                history = SessionHistory(self.config.history_limit)
        self.history = history

    @classmethod
    def from_records(
        cls,
        records: Iterable[Any],
        config: Optional[EngineConfig] = None,
    ) -> Tuple[QueryEngine, IngestReport]:
        """
        Validate raw records and build an engine over the accepted ones.

        Returns:
            (engine, ingest report listing rejected records and warnings)
        """
        report = ingest_records(records, config=config)
        engine = cls(FacetIndex.build(report.corpus), config)
        return engine, report

    @classmethod
    def from_path(
        cls,
        path: Path,
        config: Optional[EngineConfig] = None,
    ) -> Tuple[QueryEngine, IngestReport]:
        """
        Build an engine from a .json/.jsonl file or a directory of them.

        Raises:
            LoaderError: If the records cannot be read
        """
        return cls.from_records(load_records(path), config)

    @property
    def index(self) -> FacetIndex:
        """Current index snapshot."""
        return self._index

    # ─────────────────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────────────────

    def start_session(
        self,
        session_id: Optional[str] = None,
        *,
        time_limit: Optional[int] = None,
        start_difficulty: Optional[Difficulty] = None,
    ) -> SessionState:
        return self.tracker.start_session(
            session_id, time_limit=time_limit, start_difficulty=start_difficulty
        )

    def end_session(self, session_id: str) -> SessionSummary:
        """End a session and archive its summary in the history."""
        summary = self.tracker.end_session(self.tracker.get(session_id))
        self.history.record(summary)
        return summary

    def skip_question(self, session_id: str, question_id: str) -> None:
        """
        Exclude a question from the rest of the session without serving it.

        Raises:
            UnknownSessionError: If the session is not live
            KeyError: If the question is not indexed
        """
        session = self.tracker.get(session_id)
        self._index.require(question_id)
        self.tracker.record_skipped(session, question_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Selection
    # ─────────────────────────────────────────────────────────────────────────

    def select_questions(
        self,
        session_id: str,
        request: QueryRequest,
        *,
        deadline: Optional[float] = None,
    ) -> SelectionResult:
        """
        Select questions for a session and record them as served.

        Args:
            session_id: Live session id
            request: Facet filters and selection fields
            deadline: Optional ``time.monotonic()`` instant; checked once
                before planning, never mid-plan

        Returns:
            SelectionResult. PARTIAL when the filtered pool, less the
            session's exclusions, is smaller than the count.

        Raises:
            UnknownSessionError: If the session is not live
            SessionStateError: If the session ended meanwhile
            EmptyCandidateSetError: If no question matches the filters
            DeadlineExceededError: If the deadline has already passed
        """
        session = self.tracker.get(session_id)
        index = self._index

        constraints = request.constraints()
        candidates = index.intersect(constraints)
        unmet = index.unmet(constraints)
        if not candidates:
            described = ", ".join(str(c) for c in constraints) or "none"
            raise EmptyCandidateSetError(
                f"No questions match filters ({described})",
                unmet_constraints=unmet,
            )

        with session.lock:
            if not session.is_active:
                raise SessionStateError(f"Session {session_id!r} is {session.status}")
            if deadline is not None and time.monotonic() >= deadline:
                raise DeadlineExceededError(f"Deadline passed before planning for {session_id}")

            selection = request.to_selection_request(
                excluded=frozenset(session.excluded),
                difficulty_mix=self._resolve_mix(session, request),
                time_budget=self._resolve_budget(session, request),
                seed=request.seed if request.seed is not None else self.config.default_seed,
            )
            plan = plan_selection(candidates, selection, index)
            self.tracker.record_served(session, [index.require(qid) for qid in plan.ids])

        result = SelectionResult(
            ids=plan.ids,
            status=plan.status,
            unmet_constraints=unmet,
            budget_limited=plan.budget_limited,
            total_time=plan.total_time,
            requested_count=request.count,
        )
        if result.status is SelectionStatus.PARTIAL:
            logger.warning(
                f"Session {session_id}: only {plan.available} of {request.count} requested "
                f"questions available"
            )
        logger.debug(f"Session {session_id}: {result!r}")
        return result

    def _resolve_mix(
        self, session: SessionState, request: QueryRequest
    ) -> Optional[Mapping[Difficulty, float]]:
        if request.difficulty_mix is None and request.follow_progression:
            return {self.tracker.next_difficulty(session): 1.0}
        return request.difficulty_mix

    @staticmethod
    def _resolve_budget(session: SessionState, request: QueryRequest) -> Optional[int]:
        remaining = session.remaining_time
        if remaining is None:
            return request.time_budget
        if request.time_budget is None:
            return remaining
        return min(request.time_budget, remaining)

    # ─────────────────────────────────────────────────────────────────────────
    # Corpus updates
    # ─────────────────────────────────────────────────────────────────────────

    def add_question(self, record: Mapping[str, Any]) -> Question:
        """
        Validate a raw record and publish an index that includes it.

        Raises:
            ValidationError: If the record is invalid or its id is taken
        """
        with self._write_lock:
            current = self._index
            question = deserialize_question(
                record, existing_ids=current.ids, strict=self.config.strict_validation
            )
            if self.config.warn_near_duplicates:
                for warning in find_near_duplicates([*current, question]):
                    if warning.question_id == question.id:
                        logger.warning(warning.message)
            self._index = current.add(question)
        logger.info(f"Added question {question.id}")
        return question

    def remove_question(self, question_id: str) -> Question:
        """
        Publish an index without ``question_id``. Sessions that already
        served it keep it in their exclusions.

        Raises:
            KeyError: If the id is not indexed
        """
        with self._write_lock:
            current = self._index
            question = current.require(question_id)
            self._index = current.remove(question_id)
        logger.info(f"Removed question {question_id}")
        return question

    def export_questions(self, path: Path) -> int:
        """
        Write the current corpus to a JSONL file, ordered by id.

        The file loads back through ``from_path``.

        Returns:
            Number of questions written
        """
        questions = sorted(self._index, key=lambda q: q.id)
        save_questions_jsonl(questions, Path(path))
        logger.info(f"Exported {len(questions)} questions to {path}")
        return len(questions)

    # ─────────────────────────────────────────────────────────────────────────
    # Inspection
    # ─────────────────────────────────────────────────────────────────────────

    def get_question(self, question_id: str) -> Optional[Question]:
        return self._index.get(question_id)

    def list_facet_values(self, kind: FacetKind) -> FrozenSet[str]:
        return self._index.list_facet_values(kind)

    def count_by_facet(self, kind: FacetKind) -> Dict[str, int]:
        return self._index.count_by_facet(kind)

    def stats(self) -> EngineStats:
        """Totals by difficulty, type and category plus history aggregates."""
        index = self._index
        by_difficulty = index.count_by_facet(FacetKind.DIFFICULTY)
        return EngineStats(
            total_questions=len(index),
            by_difficulty={d.value: by_difficulty.get(d.value, 0) for d in Difficulty.ordered()},
            by_type=index.count_by_facet(FacetKind.TYPE),
            by_category=index.count_by_facet(FacetKind.CATEGORY),
            active_sessions=len(self.tracker.session_ids),
            history=self.history.stats(),
        )

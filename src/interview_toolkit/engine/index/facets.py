"""
Module: engine.index.facets

Purpose:
    In-memory inverted index over question facets. Maps each facet kind
    to (value -> frozenset of question ids) so filters resolve with set
    operations instead of corpus scans.

Key Classes:
    - FacetIndex: Immutable index value; add/remove return a new index

Resolution rule:
    Values inside one constraint are OR'd, constraints of different
    kinds are AND'd, and constraints repeating a kind are merged into
    one OR group first:

        category=X AND difficulty=senior AND (tag=t1 OR tag=t2)

    Groups are intersected smallest-first and evaluation stops as soon
    as the running intersection is empty.

Dependencies:
    - interview_toolkit.core.models: Question, Corpus, FacetKind, FacetConstraint

Used By:
    - engine.controller.QueryEngine
    - engine.selection.planner (question lookup)
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from interview_toolkit.core.models import Question
from interview_toolkit.core.models.facets import (
    FacetConstraint,
    FacetKind,
    facet_key,
    iter_facets,
)
from interview_toolkit.core.schemas.validator import DuplicateIdError

logger = logging.getLogger(__name__)

FacetTable = Dict[FacetKind, Dict[str, FrozenSet[str]]]


class FacetIndex:
    """
    Immutable multi-facet inverted index.

    Instances are never mutated after construction: ``add`` and
    ``remove`` copy only the buckets they touch and return a new index,
    so a reference held by a reader is always a consistent snapshot.

    Example:
        >>> index = FacetIndex.build(corpus)
        >>> index.lookup(FacetKind.CATEGORY, "Hooks")
        frozenset({'hooks-1', 'hooks-2'})
        >>> index.intersect([
        ...     FacetConstraint.of(FacetKind.CATEGORY, "Hooks"),
        ...     FacetConstraint.of(FacetKind.TAG, "state", "effects"),
        ... ])
        frozenset({'hooks-1', 'hooks-2'})
    """

    __slots__ = ("_questions", "_facets")

    def __init__(
        self,
        questions: Optional[Dict[str, Question]] = None,
        facets: Optional[FacetTable] = None,
    ) -> None:
        """Wrap prebuilt tables. Use ``build`` to index questions."""
        self._questions: Dict[str, Question] = questions or {}
        self._facets: FacetTable = facets or {}

    # ─────────────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def build(cls, questions: Iterable[Question]) -> FacetIndex:
        """
        Index a corpus (or any iterable of questions).

        Args:
            questions: Validated questions

        Returns:
            New FacetIndex

        Raises:
            DuplicateIdError: If two questions share an id
        """
        by_id: Dict[str, Question] = {}
        buckets: Dict[FacetKind, Dict[str, Set[str]]] = {}
        for question in questions:
            if question.id in by_id:
                raise DuplicateIdError(
                    f"Duplicate question id: {question.id!r}",
                    field="id",
                    record_id=question.id,
                )
            by_id[question.id] = question
            for kind, value in iter_facets(question):
                buckets.setdefault(kind, {}).setdefault(value, set()).add(question.id)

        facets: FacetTable = {
            kind: {value: frozenset(ids) for value, ids in values.items()}
            for kind, values in buckets.items()
        }
        index = cls(by_id, facets)
        logger.info(
            f"Indexed {len(by_id)} questions across "
            f"{sum(len(v) for v in facets.values())} facet values"
        )
        return index

    def add(self, question: Question) -> FacetIndex:
        """
        Return a new index that also contains ``question``.

        Raises:
            DuplicateIdError: If the id is already indexed
        """
        if question.id in self._questions:
            raise DuplicateIdError(
                f"Duplicate question id: {question.id!r}",
                field="id",
                record_id=question.id,
            )
        questions = dict(self._questions)
        questions[question.id] = question

        writer = _TableCopy(self._facets)
        for kind, value in iter_facets(question):
            buckets = writer.touch(kind)
            buckets[value] = buckets.get(value, frozenset()) | {question.id}

        logger.debug(f"Added {question.id!r} to index ({len(questions)} questions)")
        return FacetIndex(questions, writer.table)

    def remove(self, question_id: str) -> FacetIndex:
        """
        Return a new index without ``question_id``.

        Buckets left empty are dropped, so ``build(qs).add(q).remove(q.id)``
        is facet-equal to ``build(qs)``.

        Raises:
            KeyError: If the id is not indexed
        """
        question = self._questions.get(question_id)
        if question is None:
            raise KeyError(f"Unknown question id: {question_id!r}")
        questions = dict(self._questions)
        del questions[question_id]

        writer = _TableCopy(self._facets)
        for kind, value in iter_facets(question):
            buckets = writer.touch(kind)
            remaining = buckets[value] - {question_id}
            if remaining:
                buckets[value] = remaining
            else:
                del buckets[value]
        facets = writer.table
        for kind in [k for k, buckets in facets.items() if not buckets]:
            del facets[kind]

        logger.debug(f"Removed {question_id!r} from index ({len(questions)} questions)")
        return FacetIndex(questions, facets)

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def lookup(self, kind: FacetKind, value: object) -> FrozenSet[str]:
        """
        Ids having ``value`` for facet ``kind``.

        Returns:
            Frozenset of ids; empty for unknown values
        """
        return self._facets.get(FacetKind(kind), {}).get(facet_key(value), frozenset())

    def intersect(self, constraints: Iterable[FacetConstraint]) -> FrozenSet[str]:
        """
        Resolve constraints to the candidate id set.

        Args:
            constraints: Facet constraints (see module docstring for the
                OR-within / AND-across rule)

        Returns:
            Ids satisfying every constraint; every id when no constraints
        """
        groups = self._group_members(constraints)
        if not groups:
            return frozenset(self._questions)

        groups.sort(key=lambda group: len(group[1]))
        result = set(groups[0][1])
        for _, members in groups[1:]:
            if not result:
                break
            result &= members

        logger.debug(
            f"Resolved {', '.join(f'{k.value}({len(m)})' for k, m in groups)} "
            f"-> {len(result)} candidates"
        )
        return frozenset(result)

    def unmet(self, constraints: Iterable[FacetConstraint]) -> Tuple[FacetConstraint, ...]:
        """
        Constraints that match no question on their own.

        Useful to explain an empty or short result without re-deriving it.
        """
        return tuple(c for c in constraints if not self._members(c))

    def _members(self, constraint: FacetConstraint) -> FrozenSet[str]:
        """Union of the buckets for one constraint's values."""
        buckets = self._facets.get(constraint.kind, {})
        members: Set[str] = set()
        for value in constraint.values:
            members |= buckets.get(value, frozenset())
        return frozenset(members)

    def _group_members(
        self, constraints: Iterable[FacetConstraint]
    ) -> List[Tuple[FacetKind, FrozenSet[str]]]:
        """Merge constraints per kind and resolve each group's members."""
        merged: Dict[FacetKind, Set[str]] = {}
        for constraint in constraints:
            merged.setdefault(constraint.kind, set()).update(constraint.values)
        return [
            (kind, self._members(FacetConstraint(kind, frozenset(values))))
            for kind, values in merged.items()
        ]

    # ─────────────────────────────────────────────────────────────────────────
    # Inspection
    # ─────────────────────────────────────────────────────────────────────────

    def list_facet_values(self, kind: FacetKind) -> FrozenSet[str]:
        """All values present for a facet."""
        return frozenset(self._facets.get(FacetKind(kind), {}))

    def count_by_facet(self, kind: FacetKind) -> Dict[str, int]:
        """
        Question count per facet value.

        Returns:
            Mapping value -> count, sorted by value
        """
        buckets = self._facets.get(FacetKind(kind), {})
        return {value: len(buckets[value]) for value in sorted(buckets)}

    def facet_table(self) -> Dict[FacetKind, Dict[str, FrozenSet[str]]]:
        """Copy of the full facet table, for comparison and diagnostics."""
        return {kind: dict(values) for kind, values in self._facets.items()}

    def get(self, question_id: str) -> Optional[Question]:
        return self._questions.get(question_id)

    def require(self, question_id: str) -> Question:
        """
        Get a question that must exist.

        Raises:
            KeyError: If the id is not indexed
        """
        try:
            return self._questions[question_id]
        except KeyError:
            raise KeyError(f"Unknown question id: {question_id!r}") from None

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._questions)

    @property
    def questions(self) -> Tuple[Question, ...]:
        """Indexed questions in insertion order."""
        return tuple(self._questions.values())

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._questions

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions.values())

    def __len__(self) -> int:
        return len(self._questions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FacetIndex):
            return NotImplemented
        return self._questions == other._questions and self._facets == other._facets

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"FacetIndex(questions={len(self._questions)}, "
            f"facets={{{', '.join(f'{k.value}: {len(v)}' for k, v in self._facets.items())}}})"
        )


class _TableCopy:
    """Shallow copy of a facet table that copies each kind on first write."""

    __slots__ = ("table", "_copied")

    def __init__(self, source: FacetTable) -> None:
        self.table: FacetTable = dict(source)
        self._copied: Set[FacetKind] = set()

    def touch(self, kind: FacetKind) -> Dict[str, FrozenSet[str]]:
        if kind not in self._copied:
            self.table[kind] = dict(self.table.get(kind, {}))
            self._copied.add(kind)
        return self.table[kind]

"""
Module: corpus

Purpose:
    Provides Corpus - the explicit, immutable collection of validated
    questions that FacetIndex.build consumes. Replaces a shared global
    question list with a value that can be passed around and snapshotted.

Key Functions:
    - Corpus.from_questions(questions): Build with id-uniqueness check
    - Corpus.get(id): Id lookup
    - Corpus.ids: Frozen id set (the read-only view validators use)

Used By:
    - engine.loading.loader.ingest_records
    - engine.index.facets.FacetIndex.build
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

from .questions import Question


@dataclass(frozen=True)
class Corpus:
    """
    Ordered, immutable collection of questions.

    Attributes:
        questions: Questions in ingest order

    Invariants:
        - Question ids are unique
    """

    questions: Tuple[Question, ...] = ()
    _by_id: Dict[str, Question] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id: Dict[str, Question] = {}
        for question in self.questions:
            if question.id in by_id:
                raise ValueError(f"Duplicate question id in corpus: {question.id!r}")
            by_id[question.id] = question
        object.__setattr__(self, "_by_id", by_id)

    @classmethod
    def from_questions(cls, questions: Iterable[Question]) -> Corpus:
        return cls(tuple(questions))

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._by_id)

    def get(self, question_id: str) -> Optional[Question]:
        return self._by_id.get(question_id)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._by_id

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __len__(self) -> int:
        return len(self.questions)

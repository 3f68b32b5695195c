"""
Module: facets

Purpose:
    Facet vocabulary shared by the index, the query requests and the
    inspection API. A facet is a named dimension; its values are
    arbitrary strings taken from the corpus, never a closed set.

Key Classes:
    - FacetKind: The indexed dimensions
    - FacetConstraint: One filter (kind + accepted values, OR'd)

Key Functions:
    - facet_key(value): Normalize a value to its indexed string
    - facet_values(question, kind): Values a question contributes to a facet

Used By:
    - engine.index.facets.FacetIndex
    - core.models.selection.QueryRequest
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

from .questions import Question


class FacetKind(str, Enum):
    """Indexed question dimension."""
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    DIFFICULTY = "difficulty"
    TYPE = "type"
    TAG = "tag"
    ANSWER_FORMAT = "answer_format"

    def __str__(self) -> str:
        return self.value


def facet_key(value: object) -> str:
    """Normalize a facet value; enum members index under their string value."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class FacetConstraint:
    """
    A single facet filter.

    Values inside one constraint are OR'd: ``FacetConstraint(TAG,
    {"hooks", "state"})`` matches questions tagged hooks OR state.
    Constraints of different kinds are AND'd by the index.

    Attributes:
        kind: Facet dimension
        values: Accepted values (at least one)

    Example:
        >>> FacetConstraint.of(FacetKind.TAG, "hooks", "state").values
        frozenset({'hooks', 'state'})
    """

    kind: FacetKind
    values: frozenset[str]

    def __post_init__(self) -> None:
        if not self.values:
            raise ValueError(f"constraint on {self.kind} needs at least one value")

    @classmethod
    def of(cls, kind: FacetKind, *values: object) -> FacetConstraint:
        """Build a constraint, coercing enum values to their strings."""
        return cls(FacetKind(kind), frozenset(facet_key(v) for v in values))

    def __str__(self) -> str:
        return f"{self.kind.value}={'|'.join(sorted(self.values))}"


def facet_values(question: Question, kind: FacetKind) -> Tuple[str, ...]:
    """
    Values a question contributes to one facet.

    Args:
        question: Question to read
        kind: Facet dimension

    Returns:
        Tuple of values; empty when the question has no value for the
        facet (no tags, no subcategory, undeclared answer format)
    """
    if kind is FacetKind.CATEGORY:
        return (question.category,)
    if kind is FacetKind.SUBCATEGORY:
        return (question.subcategory,) if question.subcategory else ()
    if kind is FacetKind.DIFFICULTY:
        return (question.difficulty.value,)
    if kind is FacetKind.TYPE:
        return (question.type,)
    if kind is FacetKind.TAG:
        return tuple(sorted(question.tags))
    if kind is FacetKind.ANSWER_FORMAT:
        return (question.answer_format.value,) if question.answer_format else ()
    raise ValueError(f"Unknown facet kind: {kind!r}")


def iter_facets(question: Question) -> Iterable[Tuple[FacetKind, str]]:
    """Yield every (kind, value) pair a question is indexed under."""
    for kind in FacetKind:
        for value in facet_values(question, kind):
            yield kind, value

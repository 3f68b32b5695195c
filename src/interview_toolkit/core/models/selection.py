"""
Module: selection

Purpose:
    Request and result dataclasses for question selection. The planner
    consumes SelectionRequest; the query engine accepts QueryRequest
    (facet filters + selection fields) and returns SelectionResult.

Key Classes:
    - SelectionStatus: COMPLETE / PARTIAL
    - SelectionRequest: count, time budget, exclusions, difficulty mix, seed
    - QueryRequest: facet filters composed with selection fields
    - SelectionResult: ordered ids plus diagnostics

Dependencies:
    - dataclasses (std)
    - .facets: FacetKind, FacetConstraint
    - .questions: Difficulty

Used By:
    - engine.selection.planner
    - engine.controller.QueryEngine
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from .facets import FacetConstraint, FacetKind
from .questions import Difficulty


class SelectionStatus(str, Enum):
    """Outcome of a selection."""
    COMPLETE = "complete"  # Requested count met (or no count requested)
    PARTIAL = "partial"    # Candidate pool ran out before count was met

    def __str__(self) -> str:
        return self.value


def _normalize_mix(mix: Mapping[object, float]) -> Dict[Difficulty, float]:
    """Coerce keys to Difficulty and scale weights to sum to 1."""
    weights: Dict[Difficulty, float] = {}
    for key, weight in mix.items():
        tier = key if isinstance(key, Difficulty) else Difficulty(key)
        if weight < 0:
            raise ValueError(f"difficulty_mix weight for {tier} must be non-negative: {weight}")
        weights[tier] = weights.get(tier, 0.0) + float(weight)
    total = sum(weights.values())
    if total <= 0:
        raise ValueError("difficulty_mix weights must sum to a positive value")
    return {tier: w / total for tier, w in weights.items() if w > 0}


@dataclass(frozen=True)
class SelectionRequest:
    """
    Planner input (immutable).

    Attributes:
        count: Target number of questions; None = every candidate that
            fits the remaining constraints
        time_budget: Maximum total minutes, if any
        excluded: Ids never to return
        difficulty_mix: Relative weight per tier, e.g.
            ``{Difficulty.BEGINNER: 0.2, Difficulty.SENIOR: 0.8}``;
            string keys are accepted
        seed: Seed for reproducible sampling; None = lexical id order

    Invariants:
        - count is None or count >= 1
        - time_budget is None or time_budget >= 0 (0 fits nothing)
        - difficulty_mix weights are non-negative with a positive sum

    Example:
        >>> req = SelectionRequest(count=10, difficulty_mix={"beginner": 1, "senior": 1})
        >>> req.mix_weights[Difficulty.SENIOR]
        0.5
    """

    count: Optional[int] = None
    time_budget: Optional[int] = None
    excluded: FrozenSet[str] = frozenset()
    difficulty_mix: Optional[Mapping[Difficulty, float]] = None
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate request on construction."""
        if self.count is not None and self.count < 1:
            raise ValueError(f"count must be positive: {self.count}")
        if self.time_budget is not None and self.time_budget < 0:
            raise ValueError(f"time_budget must be non-negative: {self.time_budget}")
        if self.difficulty_mix is not None:
            _normalize_mix(self.difficulty_mix)

    @property
    def mix_weights(self) -> Dict[Difficulty, float]:
        """
        Normalized difficulty weights.

        Returns:
            Mapping tier -> share (shares sum to 1, zero weights dropped),
            or an empty dict when no mix was requested
        """
        if self.difficulty_mix is None:
            return {}
        return _normalize_mix(self.difficulty_mix)


@dataclass(frozen=True)
class QueryRequest:
    """
    Query engine input: facet filters plus selection fields.

    Each filter field is OR'd internally (any listed value matches) and
    AND'd with the other filter fields. Empty filters are ignored.

    Attributes:
        categories: Accepted category labels
        subcategories: Accepted subcategory labels
        difficulties: Accepted tiers (filter, unlike difficulty_mix)
        types: Accepted question types
        tags: Accepted tags (match any)
        answer_formats: Accepted answer formats
        count, time_budget, difficulty_mix, seed: see SelectionRequest
        follow_progression: When True and no difficulty_mix is given,
            sample only from the session's current progression tier

    Example:
        >>> QueryRequest(categories=("Hooks",), tags=("state", "effects"), count=5)
    """

    categories: Tuple[str, ...] = ()
    subcategories: Tuple[str, ...] = ()
    difficulties: Tuple[Difficulty, ...] = ()
    types: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    answer_formats: Tuple[str, ...] = ()

    count: Optional[int] = None
    time_budget: Optional[int] = None
    difficulty_mix: Optional[Mapping[Difficulty, float]] = None
    seed: Optional[int] = None
    follow_progression: bool = False

    def constraints(self) -> Tuple[FacetConstraint, ...]:
        """
        Facet constraints for the non-empty filter fields.

        Returns:
            Tuple of FacetConstraint in a fixed field order
        """
        fields = (
            (FacetKind.CATEGORY, self.categories),
            (FacetKind.SUBCATEGORY, self.subcategories),
            (FacetKind.DIFFICULTY, self.difficulties),
            (FacetKind.TYPE, self.types),
            (FacetKind.TAG, self.tags),
            (FacetKind.ANSWER_FORMAT, self.answer_formats),
        )
        return tuple(
            FacetConstraint.of(kind, *values)
            for kind, values in fields
            if values
        )

    def to_selection_request(
        self,
        *,
        excluded: FrozenSet[str] = frozenset(),
        difficulty_mix: Optional[Mapping[Difficulty, float]] = None,
        time_budget: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> SelectionRequest:
        """
        Build the planner request, letting the caller override the mix,
        time budget and seed resolved from session state and config.
        """
        return SelectionRequest(
            count=self.count,
            time_budget=time_budget if time_budget is not None else self.time_budget,
            excluded=frozenset(excluded),
            difficulty_mix=difficulty_mix if difficulty_mix is not None else self.difficulty_mix,
            seed=seed if seed is not None else self.seed,
        )


@dataclass(frozen=True)
class SelectionResult:
    """
    Result of QueryEngine.select_questions.

    Attributes:
        ids: Selected question ids, in serving order
        status: COMPLETE, or PARTIAL when the pool ran out
        unmet_constraints: Filters that matched no question at all
        budget_limited: True when the time budget dropped sampled questions
        total_time: Sum of time estimates over ids
        requested_count: The count that was asked for

    Invariants:
        - No duplicate ids
    """

    ids: Tuple[str, ...]
    status: SelectionStatus = SelectionStatus.COMPLETE
    unmet_constraints: Tuple[FacetConstraint, ...] = ()
    budget_limited: bool = False
    total_time: int = 0
    requested_count: Optional[int] = None

    def __post_init__(self) -> None:
        if len(self.ids) != len(set(self.ids)):
            raise ValueError("Duplicate questions in selection result")

    @property
    def is_complete(self) -> bool:
        return self.status is SelectionStatus.COMPLETE

    @property
    def is_partial(self) -> bool:
        return self.status is SelectionStatus.PARTIAL

    def __len__(self) -> int:
        return len(self.ids)

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"SelectionResult(questions={len(self.ids)}/{self.requested_count}, "
            f"status={self.status.value}, minutes={self.total_time})"
        )

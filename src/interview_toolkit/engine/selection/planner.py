"""
Module: engine.selection.planner

Purpose:
    Turns a candidate id set and a SelectionRequest into an ordered,
    reproducible list of question ids.

Key Functions:
    - plan_selection(): Main entry point

Key Classes:
    - Planner: Orchestrates one planning run
    - PlanResult: Planned ids plus status flags

Algorithm:
    1. Reject an empty candidate set
    2. Subtract exclusions
    3. Fix a base order: lexical ids, or a seeded shuffle of them
    4. Sample: apportion the count over the difficulty mix (with
       shortfall redistribution), or take the head of the base order
    5. Greedy fill against the time budget, cheapest first
    6. Flag PARTIAL when the pool was smaller than the count

Dependencies:
    - random (std): Seeded permutation
    - interview_toolkit.core.models: Question, SelectionRequest
    - engine.selection.apportion: Quota maths

Used By:
    - engine.controller.QueryEngine
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional, Protocol, Tuple

from interview_toolkit.core.models import Difficulty, Question
from interview_toolkit.core.models.selection import SelectionRequest, SelectionStatus

from .apportion import allocate_with_capacity

logger = logging.getLogger(__name__)


class SelectionError(Exception):
    """Error during question selection."""
    pass


class EmptyCandidateSetError(SelectionError):
    """
    No question matched the filters, before any exclusion.

    Attributes:
        unmet_constraints: Filters that matched nothing on their own,
            when the caller knows them
    """

    def __init__(self, message: str, unmet_constraints: tuple = ()):
        super().__init__(message)
        self.unmet_constraints = tuple(unmet_constraints)


class QuestionSource(Protocol):
    """Anything that resolves ids to questions (FacetIndex, Corpus)."""

    def get(self, question_id: str) -> Optional[Question]: ...


@dataclass(frozen=True)
class PlanResult:
    """
    Planner output (immutable).

    Attributes:
        ids: Selected ids in serving order
        status: PARTIAL when fewer than ``count`` candidates survived
            exclusion, else COMPLETE
        budget_limited: True when the time budget dropped sampled ids
        available: Candidates left after exclusion
        total_time: Sum of time estimates over ids
    """

    ids: Tuple[str, ...]
    status: SelectionStatus
    budget_limited: bool = False
    available: int = 0
    total_time: int = 0


def plan_selection(
    candidates: AbstractSet[str],
    request: SelectionRequest,
    source: QuestionSource,
) -> PlanResult:
    """
    Plan a selection from a candidate set.

    Main entry point for the planner. Identical arguments (including
    the seed) always produce identical output.

    Args:
        candidates: Ids satisfying the facet filters
        request: Count, budget, exclusions, mix and seed
        source: Resolves ids to questions (difficulty, time estimate)

    Returns:
        PlanResult with ordered ids

    Raises:
        EmptyCandidateSetError: If ``candidates`` is empty. Running short
            after exclusions is not an error; it yields PARTIAL.

    Example:
        >>> result = plan_selection(index.ids, SelectionRequest(count=5, seed=7), index)
        >>> result.status
        <SelectionStatus.COMPLETE: 'complete'>
    """
    planner = Planner(candidates, request, source)
    return planner.run()


@dataclass
class Planner:
    """
    Single planning run.

    Attributes:
        candidates: Ids satisfying the facet filters
        request: Selection request
        source: Question lookup
    """

    candidates: AbstractSet[str]
    request: SelectionRequest
    source: QuestionSource

    _questions: Dict[str, Question] = field(init=False, default_factory=dict)

    def run(self) -> PlanResult:
        """
        Execute the planning algorithm.

        Returns:
            PlanResult
        """
        if not self.candidates:
            raise EmptyCandidateSetError("No candidate questions to select from")

        pool = set(self.candidates) - set(self.request.excluded)
        order = self._base_order(pool)
        count = self.request.count

        if self.request.difficulty_mix is not None:
            sampled = self._sample_by_mix(order, count)
        elif count is None:
            sampled = order
        else:
            sampled = order[:count]

        status = SelectionStatus.COMPLETE
        if count is not None and len(order) < count:
            status = SelectionStatus.PARTIAL
            logger.debug(f"Only {len(order)} candidates left for count={count}")

        budget_limited = False
        if self.request.time_budget is not None:
            kept = self._fill_budget(sampled, self.request.time_budget)
            budget_limited = len(kept) < len(sampled)
            sampled = kept

        return PlanResult(
            ids=tuple(sampled),
            status=status,
            budget_limited=budget_limited,
            available=len(order),
            total_time=sum(self._question(qid).time_estimate for qid in sampled),
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Ordering
    # ─────────────────────────────────────────────────────────────────────────

    def _base_order(self, pool: AbstractSet[str]) -> List[str]:
        """Lexical id order, or a seeded permutation of it."""
        order = sorted(pool)
        if self.request.seed is not None:
            random.Random(self.request.seed).shuffle(order)
        return order

    def _question(self, question_id: str) -> Question:
        question = self._questions.get(question_id)
        if question is None:
            question = self.source.get(question_id)
            if question is None:
                raise SelectionError(f"Candidate {question_id!r} is not in the question source")
            self._questions[question_id] = question
        return question

    # ─────────────────────────────────────────────────────────────────────────
    # Sampling
    # ─────────────────────────────────────────────────────────────────────────

    def _sample_by_mix(self, order: List[str], count: Optional[int]) -> List[str]:
        """
        Sample following the difficulty mix.

        Tier quotas come from largest-remainder apportionment; exhausted
        tiers hand their shortfall to the others. If every weighted tier
        runs dry before ``count``, the rest comes from unweighted tiers in
        base order. Without a count every weighted-tier candidate is taken.
        """
        weights = self.request.mix_weights
        partitions: Dict[Difficulty, List[str]] = {tier: [] for tier in Difficulty.ordered()}
        for qid in order:
            partitions[self._question(qid).difficulty].append(qid)

        capacity = {tier: len(partitions[tier]) for tier in weights}
        target = sum(capacity.values()) if count is None else count
        allocation = allocate_with_capacity(target, weights, capacity, Difficulty.ordered())
        logger.debug(
            "Difficulty quotas: "
            + ", ".join(f"{tier.value}={n}/{capacity[tier]}" for tier, n in allocation.items())
        )

        chosen = set()
        for tier, quota in allocation.items():
            chosen.update(partitions[tier][:quota])

        shortfall = target - len(chosen)
        if shortfall > 0:
            extras = [qid for qid in order if qid not in chosen][:shortfall]
            if extras:
                logger.debug(f"Mix tiers exhausted; filled {len(extras)} from other tiers")
            chosen.update(extras)

        return [qid for qid in order if qid in chosen]

    # ─────────────────────────────────────────────────────────────────────────
    # Time budget
    # ─────────────────────────────────────────────────────────────────────────

    def _fill_budget(self, sampled: List[str], budget: int) -> List[str]:
        """
        Greedy fill, shortest questions first.

        Stops at the first question that would overflow the budget; since
        the walk is in ascending time order nothing later could fit
        either. Kept ids retain their sampled order.
        """
        position = {qid: i for i, qid in enumerate(sampled)}
        by_time = sorted(sampled, key=lambda qid: (self._question(qid).time_estimate, position[qid]))

        spent = 0
        kept = set()
        for qid in by_time:
            minutes = self._question(qid).time_estimate
            if spent + minutes > budget:
                break
            spent += minutes
            kept.add(qid)

        if len(kept) < len(sampled):
            logger.debug(f"Time budget {budget}m kept {len(kept)}/{len(sampled)} questions ({spent}m)")
        return [qid for qid in sampled if qid in kept]

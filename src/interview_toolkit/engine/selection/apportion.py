"""
Module: engine.selection.apportion

Purpose:
    Integer apportionment helpers for difficulty mixes. Turns a target
    count and relative weights into per-tier quotas that sum exactly to
    the target, then respects per-tier capacity by redistributing any
    shortfall over the tiers that still have room.

Key Functions:
    - largest_remainder(): Hamilton apportionment of a total over weights
    - allocate_with_capacity(): Repeated apportionment under capacities

Used By:
    - engine.selection.planner.Planner
"""

from __future__ import annotations

import math
from typing import Dict, Hashable, Mapping, Sequence, TypeVar

K = TypeVar("K", bound=Hashable)


def largest_remainder(total: int, weights: Mapping[K, float], order: Sequence[K]) -> Dict[K, int]:
    """
    Split ``total`` proportionally to ``weights`` (largest-remainder method).

    Each key first gets the floor of its exact share; the units left over
    go to the keys with the largest fractional parts. Equal fractions are
    resolved by position in ``order``.

    Args:
        total: Non-negative integer to split
        weights: Non-negative weights with a positive sum
        order: Tie-break order; must contain every key of ``weights``

    Returns:
        Mapping key -> share, summing exactly to ``total``

    Example:
        >>> largest_remainder(10, {"a": 1, "b": 1, "c": 1}, ["a", "b", "c"])
        {'a': 4, 'b': 3, 'c': 3}
    """
    weight_sum = sum(weights.values())
    if total <= 0 or weight_sum <= 0:
        return {key: 0 for key in weights}

    # Rounded so exact shares like 0.29 * 100 don't floor to 28
    exact = {key: round(total * w / weight_sum, 9) for key, w in weights.items()}
    shares = {key: math.floor(value) for key, value in exact.items()}
    leftover = total - sum(shares.values())

    rank = {key: i for i, key in enumerate(order)}
    by_remainder = sorted(weights, key=lambda key: (-(exact[key] - shares[key]), rank[key]))
    for key in by_remainder[:leftover]:
        shares[key] += 1
    return shares


def allocate_with_capacity(
    total: int,
    weights: Mapping[K, float],
    capacity: Mapping[K, int],
    order: Sequence[K],
) -> Dict[K, int]:
    """
    Apportion ``total`` over weighted keys without exceeding capacities.

    Quotas come from ``largest_remainder``. A key whose quota exceeds its
    capacity takes everything it has; the shortfall is apportioned again
    over the keys with room left, proportionally to their weights, until
    either the total is placed or every key is full.

    Args:
        total: Units to place
        weights: Relative weight per key
        capacity: Maximum units per key
        order: Tie-break order for every key

    Returns:
        Mapping key -> allocation. Sums to min(total, sum of capacities
        over weighted keys).

    Example:
        >>> allocate_with_capacity(6, {"a": 1, "b": 1}, {"a": 1, "b": 9}, ["a", "b"])
        {'a': 1, 'b': 5}
    """
    allocation = {key: 0 for key in weights}
    remaining = total
    active = [key for key in order if key in weights and weights[key] > 0 and capacity.get(key, 0) > 0]

    while remaining > 0 and active:
        quotas = largest_remainder(remaining, {key: weights[key] for key in active}, order)
        overflow = 0
        for key in active:
            room = capacity[key] - allocation[key]
            taken = min(quotas[key], room)
            allocation[key] += taken
            overflow += quotas[key] - taken
        active = [key for key in active if allocation[key] < capacity[key]]
        remaining = overflow

    return allocation

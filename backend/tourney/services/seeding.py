"""
Seeding helpers for knockout brackets.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def balanced_seed_order(ranked: Sequence[T]) -> List[T]:
    """
    Pair best against worst: [1st, Kth, 2nd, (K-1)th, ...].

    Fed to the bracket builder, consecutive entries meet in the first round,
    so [1, 2, 3, 4] becomes [1, 4, 2, 3] -> 1v4, 2v3.
    """
    order: List[T] = []
    left, right = 0, len(ranked) - 1
    while left <= right:
        order.append(ranked[left])
        if left != right:
            order.append(ranked[right])
        left += 1
        right -= 1
    return order


def shuffled(participants: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Random draw order for an unseeded knockout."""
    result = list(participants)
    (rng or random.Random()).shuffle(result)
    return result

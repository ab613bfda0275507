from collections.abc import Callable, Sequence
from typing import TypeVar

from backend.app.db.models import Table

T = TypeVar("T")


def generate_combinations(
    items: Sequence[T],
    min_size: int = 2,
    *,
    party_size: int | None = None,
    min_capacity_of: Callable[[T], int] | None = None,
) -> list[tuple[T, ...]]:
    """
    All subsets of ``items`` of size ``min_size`` up to ``len(items)``, smallest first.

    Exponential by nature; sectors hold tens of tables at most. When ``party_size``
    and ``min_capacity_of`` are given, branches whose running minimum capacity
    already exceeds the party are abandoned, since no superset can seat it.
    """
    if min_size <= 0 or min_size > len(items):
        return []

    prune = party_size is not None and min_capacity_of is not None
    combos: list[tuple[T, ...]] = []

    def combine(start: int, target: int, current: list[T], running_min: int) -> None:
        if len(current) == target:
            combos.append(tuple(current))
            return
        for index in range(start, len(items)):
            item = items[index]
            next_min = running_min + (min_capacity_of(item) if prune else 0)
            if prune and next_min > party_size:
                continue
            current.append(item)
            combine(index + 1, target, current, next_min)
            current.pop()

    for size in range(min_size, len(items) + 1):
        combine(0, size, [], 0)
    return combos


def combo_capacity(tables: Sequence[Table]) -> tuple[int, int]:
    """Seat range of tables pushed together: (sum of minimums, sum of maximums)."""
    return sum(t.min_size for t in tables), sum(t.max_size for t in tables)

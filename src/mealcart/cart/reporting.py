"""Week-keyed helpers for spending reports."""
import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Tuple

from mealcart.domain.types import CartLine
from .weeks import week_start


def lines_in_period(lines: Iterable[CartLine], start: date, end: date) -> List[CartLine]:
    """Lines whose week opens between ``start`` and ``end``, both inclusive."""
    return [line for line in lines if start <= week_start(line.week_id) <= end]


def spend_by_week(lines: Iterable[CartLine]) -> List[Tuple[str, float]]:
    """Whole-line price totals per week, oldest week first."""
    prices: Dict[str, List[float]] = defaultdict(list)
    for line in lines:
        prices[line.week_id].append(line.price or 0.0)
    return [(week, math.fsum(prices[week])) for week in sorted(prices)]

"""Pure views over a loaded collection of cart lines."""
import math
from typing import Iterable, List

from mealcart.domain.types import CartLine


def items_for_week(lines: Iterable[CartLine], week_id: str) -> List[CartLine]:
    return [line for line in lines if line.week_id == week_id]


def total_cost(lines: Iterable[CartLine], week_id: str) -> float:
    """
    Sum the prices of a week's lines.

    ``price`` is what the user paid for the whole line, so it is never
    multiplied by ``amount``. Unpriced lines count as zero.
    """
    return math.fsum(line.price or 0.0 for line in items_for_week(lines, week_id))


def all_weeks(lines: Iterable[CartLine]) -> List[str]:
    """Distinct week ids present, oldest first."""
    return sorted({line.week_id for line in lines})


def outstanding_count(lines: Iterable[CartLine]) -> int:
    """Number of lines across all weeks not yet marked as purchased."""
    return sum(1 for line in lines if not line.checked)

"""Decides whether an ingredient request belongs on an existing cart line."""
from typing import Protocol


class _Keyed(Protocol):
    name: str
    unit: str
    week_id: str


class _Line(_Keyed, Protocol):
    checked: bool


def normalize(text: str) -> str:
    """Case-fold free text for matching. No other normalization is applied."""
    return text.casefold()


def match_key(item: _Keyed) -> tuple:
    """Key under which two open entries are considered the same line."""
    return (normalize(item.name), normalize(item.unit), item.week_id)


def matches(candidate: _Keyed, existing: _Line) -> bool:
    """
    Return True if ``candidate`` should merge into ``existing``.

    Names and units compare case-insensitively and week ids exactly. Checked
    (purchased) lines are closed and never match. ``existing`` may be a stored
    line or a pending entry from the same batch.
    """
    if existing.checked:
        return False
    return match_key(candidate) == match_key(existing)

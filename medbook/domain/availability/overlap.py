"""
Overlap Validator

Pure functions deciding whether proposed slots collide with a provider's
existing windows. Intervals are half-open: back-to-back slots that only share
a boundary instant do not overlap.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence


@dataclass(frozen=True)
class SlotSpec:
    """A proposed slot before it is persisted"""

    start: datetime
    end: datetime


class _Interval(Protocol):
    start: datetime
    end: datetime


class _Window(Protocol):
    id: Optional[int]
    date: date
    slots: Sequence[_Interval]


def intervals_overlap(a: _Interval, b: _Interval) -> bool:
    """``[a.start, a.end)`` and ``[b.start, b.end)`` intersect"""
    return a.start < b.end and a.end > b.start


def find_overlaps(
    candidate_date: date,
    proposed: Iterable[_Interval],
    windows: Iterable[_Window],
    exclude_window_id: Optional[int] = None,
) -> list[tuple[_Interval, _Interval]]:
    """
    Return every (proposed, existing) pair that collides.

    Only windows whose ``date`` equals ``candidate_date`` are considered; the
    slot timestamps themselves are not used for day matching.
    """
    proposed = list(proposed)
    conflicts = []
    for window in windows:
        if exclude_window_id is not None and window.id == exclude_window_id:
            continue
        if window.date != candidate_date:
            continue
        for existing in window.slots:
            for slot in proposed:
                if intervals_overlap(slot, existing):
                    conflicts.append((slot, existing))
    return conflicts


def has_overlap(
    candidate_date: date,
    proposed: Iterable[_Interval],
    windows: Iterable[_Window],
    exclude_window_id: Optional[int] = None,
) -> bool:
    return bool(find_overlaps(candidate_date, proposed, windows, exclude_window_id))


def find_internal_overlaps(proposed: Sequence[_Interval]) -> list[tuple[_Interval, _Interval]]:
    """Pairs of proposed slots that collide with each other"""
    ordered = sorted(proposed, key=lambda s: (s.start, s.end))
    conflicts = []
    for i, current in enumerate(ordered):
        for following in ordered[i + 1 :]:
            # Sorted by start: nothing further can overlap once a start passes current.end
            if following.start >= current.end:
                break
            conflicts.append((current, following))
    return conflicts

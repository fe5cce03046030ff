"""Rotation selection - pure computation, no I/O."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

# Sorts before any real event date
NEVER_SERVED = date.min


@dataclass(frozen=True)
class RotationCandidate:
    participant_id: int
    rotation_order: int


def select_next(
    candidates: Sequence[RotationCandidate],
    last_served: Mapping[int, date],
) -> Optional[int]:
    """
    Pick who should serve next.

    The participant whose most recent service is oldest wins; people who
    never served count as oldest of all. Ties go to the lower
    rotation_order. The result depends only on the current list and the
    history, so edits to the list between assignments heal themselves.

    Args:
        candidates: Active rotation list (any order)
        last_served: participant_id -> date of their latest service in this role

    Returns:
        participant_id, or None for an empty rotation list
    """
    if not candidates:
        return None
    best = min(
        candidates,
        key=lambda c: (last_served.get(c.participant_id, NEVER_SERVED), c.rotation_order),
    )
    return best.participant_id


def project(
    candidates: Sequence[RotationCandidate],
    last_served: Mapping[int, date],
    event_dates: Sequence[date],
) -> List[Optional[int]]:
    """
    Simulate select_next over a run of future events without recording anything.

    Args:
        candidates: Active rotation list
        last_served: Current history summary
        event_dates: Dates of the events to fill, in the order they will be filled

    Returns:
        The participant chosen for each date (None everywhere for an empty list)
    """
    served: Dict[int, date] = dict(last_served)
    picks: List[Optional[int]] = []
    for event_date in event_dates:
        pick = select_next(candidates, served)
        picks.append(pick)
        if pick is not None:
            previous = served.get(pick, NEVER_SERVED)
            served[pick] = max(previous, event_date)
    return picks

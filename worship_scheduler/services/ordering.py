"""Dense 1..N positions for the items of a content set.

Every function here expects the caller to already hold the parent lock
(ContentSetRepository.lock) inside an open transaction. Positions are
rewritten in two phases, negatives first, so the unique
(content_set_id, position) constraint never sees a transient duplicate.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from worship_scheduler.domain.models import ContentItem
from worship_scheduler.domain.repositories import ContentSetRepository
from worship_scheduler.errors import InvalidOrderError, NotFoundError

logger = logging.getLogger(__name__)


def _renumber(session: Session, ordered: Sequence[ContentItem], start: int = 1) -> None:
    """Assign start, start+1, ... to the given items in order."""
    if not ordered:
        return
    for offset, item in enumerate(ordered):
        item.position = -(start + offset)
    session.flush()
    for offset, item in enumerate(ordered):
        item.position = start + offset
    session.flush()


def insert_at(session: Session, content_set_id: int, item: ContentItem, after_position: int | None = None) -> int:
    """
    Place a new item after the given position, shifting successors up by one.

    Args:
        session: Session holding the parent lock
        content_set_id: Parent content set
        item: Unsaved ContentItem to place
        after_position: 0 for the front, current max (or None) to append

    Returns:
        The position assigned to the new item

    Raises:
        InvalidOrderError: If after_position is outside 0..N
    """
    siblings = ContentSetRepository.items(session, content_set_id)
    current_max = len(siblings)
    if after_position is None:
        after_position = current_max
    if after_position < 0 or after_position > current_max:
        raise InvalidOrderError(
            f"Cannot insert after position {after_position}; set {content_set_id} has {current_max} items"
        )

    item.content_set_id = content_set_id
    new_position = after_position + 1

    if after_position == current_max:
        item.position = new_position
        session.add(item)
        session.flush()
        return new_position

    # Shift the tail up, then drop the new item into the freed position.
    # 0 is never a live or temporary position.
    tail = siblings[after_position:]
    item.position = 0
    session.add(item)
    session.flush()
    _renumber(session, [item] + tail, start=new_position)
    return new_position


def remove_and_compact(session: Session, content_set_id: int, position: int) -> ContentItem:
    """
    Delete the item at a position and close the gap behind it.

    Removing the only item leaves an empty set, which is not an error.

    Returns:
        The deleted item (detached from the session)

    Raises:
        NotFoundError: If no item sits at that position
    """
    siblings = ContentSetRepository.items(session, content_set_id)
    target = next((i for i in siblings if i.position == position), None)
    if target is None:
        raise NotFoundError(f"No item at position {position} in content set {content_set_id}")

    tail = [i for i in siblings if i.position > position]
    session.delete(target)
    session.flush()
    _renumber(session, tail, start=position)
    return target


def reorder(session: Session, content_set_id: int, ordered_ids: Sequence[int]) -> List[ContentItem]:
    """
    Apply a full permutation of the set's item IDs as positions 1..N.

    Raises:
        InvalidOrderError: If the IDs are not exactly the current membership
    """
    siblings = ContentSetRepository.items(session, content_set_id)
    by_id = {item.id: item for item in siblings}
    ordered_ids = list(ordered_ids)

    if len(ordered_ids) != len(set(ordered_ids)):
        raise InvalidOrderError("Item IDs must not repeat")
    if set(ordered_ids) != set(by_id):
        missing = sorted(set(by_id) - set(ordered_ids))
        foreign = sorted(set(ordered_ids) - set(by_id))
        raise InvalidOrderError(
            f"Item IDs do not match content set {content_set_id} (missing={missing}, unknown={foreign})"
        )

    ordered = [by_id[item_id] for item_id in ordered_ids]
    _renumber(session, ordered, start=1)
    return ordered


def positions_are_dense(items: Sequence[ContentItem]) -> bool:
    """True when positions are exactly {1..N} with no duplicates."""
    return sorted(i.position for i in items) == list(range(1, len(items) + 1))

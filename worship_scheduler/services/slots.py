"""Contribution slot rules: derived status, submission and decision checks."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from worship_scheduler.domain.models import (
    DISPOSITION_PENDING,
    DISPOSITION_REJECTED,
    Contribution,
    ContributionSlot,
)
from worship_scheduler.errors import (
    AlreadyDecidedError,
    DuplicateContributionError,
    InvalidSlotWindowError,
    SlotExpiredError,
    SlotFullError,
)


SLOT_PENDING = "pending"
SLOT_SUBMITTED = "submitted"
SLOT_MISSED = "missed"


def active_contributions(contributions: Iterable[Contribution]) -> list[Contribution]:
    """Contributions that still count toward the slot (pending or approved)."""
    return [c for c in contributions if c.disposition != DISPOSITION_REJECTED]


def derive_status(min_items: int, due_at: datetime, active_count: int, now: datetime) -> str:
    """
    Slot status as a pure function of the slot's facts and the clock.

    Reaching min_items wins over the deadline, so a slot that met its
    minimum never reads as missed.
    """
    if active_count >= min_items:
        return SLOT_SUBMITTED
    if now > due_at:
        return SLOT_MISSED
    return SLOT_PENDING


def validate_window(min_items: int, max_items: int, due_at: datetime, now: datetime) -> None:
    """
    Raises:
        InvalidSlotWindowError: Unless 1 <= min_items <= max_items and due_at is in the future
    """
    if min_items < 1:
        raise InvalidSlotWindowError(f"min_items must be at least 1, got {min_items}")
    if max_items < min_items:
        raise InvalidSlotWindowError(f"max_items ({max_items}) must be >= min_items ({min_items})")
    if due_at <= now:
        raise InvalidSlotWindowError(f"due_at {due_at.isoformat()} is not in the future")


def check_submission(
    slot: ContributionSlot,
    contributions: Iterable[Contribution],
    catalog_entry_id: int,
    now: datetime,
) -> None:
    """
    Check that the contributor may add one more proposal to the slot.

    Raises:
        SlotExpiredError: If the deadline has passed (this includes missed slots)
        SlotFullError: If max_items non-rejected proposals already exist
        DuplicateContributionError: If the entry is already proposed and not rejected
    """
    active = active_contributions(contributions)
    status = derive_status(slot.min_items, slot.due_at, len(active), now)

    if status == SLOT_MISSED or now > slot.due_at:
        raise SlotExpiredError(f"Slot {slot.id} closed at {slot.due_at.isoformat()}")
    if len(active) >= slot.max_items:
        raise SlotFullError(f"Slot {slot.id} already holds {len(active)} of {slot.max_items} proposals")
    if any(c.catalog_entry_id == catalog_entry_id for c in active):
        raise DuplicateContributionError(
            f"Catalog entry {catalog_entry_id} is already proposed in slot {slot.id}"
        )


def check_undecided(contribution: Contribution) -> None:
    """
    Raises:
        AlreadyDecidedError: If the contribution is approved or rejected
    """
    if contribution.disposition != DISPOSITION_PENDING:
        raise AlreadyDecidedError(
            f"Contribution {contribution.id} is already {contribution.disposition}"
        )

"""Typed records passed into and returned out of the engine.

The engine hands these back instead of live ORM rows so results stay
usable after the transaction that produced them has closed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from .models import (
    ContentItem,
    ContentSet,
    Contribution,
    ContributionSlot,
    RoleFulfillment,
)


@dataclass(frozen=True)
class CatalogVariant:
    """A catalog entry + chosen variant, as supplied by the catalog collaborator."""

    entry_id: int
    variant_id: int
    familiarity_score: Optional[int] = None


@dataclass(frozen=True)
class ItemOverrides:
    performer_id: Optional[int] = None
    media_url_override: Optional[str] = None
    key_override: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ContentItemView:
    id: int
    content_set_id: int
    position: int
    catalog_entry_id: int
    variant_id: int
    unfamiliar: bool
    performer_id: Optional[int]
    media_url_override: Optional[str]
    key_override: Optional[str]
    notes: Optional[str]

    @classmethod
    def from_model(cls, item: ContentItem) -> "ContentItemView":
        return cls(
            id=item.id,
            content_set_id=item.content_set_id,
            position=item.position,
            catalog_entry_id=item.catalog_entry_id,
            variant_id=item.variant_id,
            unfamiliar=bool(item.unfamiliar),
            performer_id=item.performer_id,
            media_url_override=item.media_url_override,
            key_override=item.key_override,
            notes=item.notes,
        )


@dataclass(frozen=True)
class ContentSetView:
    id: int
    event_id: int
    status: str
    leader_id: Optional[int]
    revision: int
    items: List[ContentItemView] = field(default_factory=list)

    @property
    def unfamiliar_count(self) -> int:
        return sum(1 for item in self.items if item.unfamiliar)

    @classmethod
    def from_model(cls, content_set: ContentSet, items: List[ContentItem]) -> "ContentSetView":
        return cls(
            id=content_set.id,
            event_id=content_set.event_id,
            status=content_set.status,
            leader_id=content_set.leader_id,
            revision=content_set.revision or 0,
            items=[ContentItemView.from_model(i) for i in sorted(items, key=lambda i: i.position)],
        )


@dataclass(frozen=True)
class ContributionView:
    id: int
    slot_id: int
    catalog_entry_id: int
    note: Optional[str]
    media_url_override: Optional[str]
    disposition: str
    submitted_at: datetime
    decided_at: Optional[datetime]
    content_item_id: Optional[int]
    contributor_id: Optional[int] = None

    @classmethod
    def from_model(cls, contribution: Contribution, contributor_id: Optional[int] = None) -> "ContributionView":
        return cls(
            id=contribution.id,
            slot_id=contribution.slot_id,
            catalog_entry_id=contribution.catalog_entry_id,
            note=contribution.note,
            media_url_override=contribution.media_url_override,
            disposition=contribution.disposition,
            submitted_at=contribution.submitted_at,
            decided_at=contribution.decided_at,
            content_item_id=contribution.content_item_id,
            contributor_id=contributor_id,
        )


@dataclass(frozen=True)
class SlotView:
    id: int
    content_set_id: int
    contributor_id: int
    min_items: int
    max_items: int
    due_at: datetime
    status: str
    active_count: int
    is_overdue: bool
    contributions: List[ContributionView] = field(default_factory=list)

    @classmethod
    def from_model(
        cls,
        slot: ContributionSlot,
        contributions: List[Contribution],
        status: str,
        active_count: int,
        now: datetime,
    ) -> "SlotView":
        return cls(
            id=slot.id,
            content_set_id=slot.content_set_id,
            contributor_id=slot.contributor_id,
            min_items=slot.min_items,
            max_items=slot.max_items,
            due_at=slot.due_at,
            status=status,
            active_count=active_count,
            is_overdue=now > slot.due_at,
            contributions=[ContributionView.from_model(c, slot.contributor_id) for c in contributions],
        )


@dataclass(frozen=True)
class FulfillmentRecord:
    id: int
    role_category_id: str
    event_id: int
    participant_id: int
    sequence_order: Optional[int]
    recorded_at: datetime

    @classmethod
    def from_model(cls, row: RoleFulfillment) -> "FulfillmentRecord":
        return cls(
            id=row.id,
            role_category_id=row.role_category_id,
            event_id=row.event_id,
            participant_id=row.participant_id,
            sequence_order=row.sequence_order,
            recorded_at=row.recorded_at,
        )


@dataclass(frozen=True)
class ForecastEntry:
    event_id: int
    event_date: date
    participant_id: Optional[int]

"""Repository classes for data access."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from .models import (
    ContentItem,
    ContentSet,
    Contribution,
    ContributionSlot,
    Event,
    Participant,
    ParticipantRole,
    RoleFulfillment,
    RotationEntry,
)


class ParticipantRepository:
    """Repository for participant data access."""

    @staticmethod
    def get_by_id(session: Session, participant_id: int) -> Optional[Participant]:
        """Get participant by ID."""
        return session.get(Participant, participant_id)

    @staticmethod
    def has_role(session: Session, participant_id: int, role_category_id: str) -> bool:
        """Check whether a participant is a member of a role category."""
        stmt = select(ParticipantRole.id).where(
            ParticipantRole.participant_id == participant_id,
            ParticipantRole.role_category_id == role_category_id,
        )
        return session.execute(stmt).first() is not None

    @staticmethod
    def create(session: Session, participant: Participant, roles: List[str] | None = None) -> Participant:
        """Add a participant with its role memberships (caller commits)."""
        for role in roles or []:
            participant.roles.append(ParticipantRole(role_category_id=role))
        session.add(participant)
        session.flush()
        return participant


class EventRepository:
    """Repository for events. Every event owns exactly one content set."""

    @staticmethod
    def get_by_id(session: Session, event_id: int) -> Optional[Event]:
        """Get event by ID."""
        return session.get(Event, event_id)

    @staticmethod
    def create(session: Session, event: Event) -> Event:
        """Add an event together with its empty draft content set (caller commits)."""
        if event.content_set is None:
            event.content_set = ContentSet()
        session.add(event)
        session.flush()
        return event

    @staticmethod
    def get_many(session: Session, event_ids: List[int]) -> List[Event]:
        """Get events by ID, ordered by date then ID."""
        if not event_ids:
            return []
        stmt = select(Event).where(Event.id.in_(event_ids)).order_by(Event.event_date, Event.id)
        return list(session.scalars(stmt))


class ContentSetRepository:
    """Repository for content sets and their items."""

    @staticmethod
    def get_by_id(session: Session, content_set_id: int) -> Optional[ContentSet]:
        """Get content set by ID."""
        return session.get(ContentSet, content_set_id)

    @staticmethod
    def get_by_event(session: Session, event_id: int) -> Optional[ContentSet]:
        """Get the content set attached to an event."""
        return session.scalars(select(ContentSet).where(ContentSet.event_id == event_id)).first()

    @staticmethod
    def lock(session: Session, content_set_id: int) -> Optional[ContentSet]:
        """
        Take the parent lock on a content set and return a fresh copy of it.

        The revision bump is a write, so it holds a row lock on server
        databases and the database write lock on SQLite until the
        surrounding transaction ends. Returns None if the set does not exist.
        """
        bumped = session.execute(
            update(ContentSet)
            .where(ContentSet.id == content_set_id)
            .values(revision=ContentSet.revision + 1)
            .execution_options(synchronize_session=False)
        )
        if bumped.rowcount == 0:
            return None
        stmt = (
            select(ContentSet)
            .where(ContentSet.id == content_set_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.scalars(stmt).one()

    @staticmethod
    def items(session: Session, content_set_id: int) -> List[ContentItem]:
        """Get the items of a set ordered by position (always re-read from the store)."""
        stmt = (
            select(ContentItem)
            .where(ContentItem.content_set_id == content_set_id)
            .order_by(ContentItem.position)
            .execution_options(populate_existing=True)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def get_item(session: Session, item_id: int, fresh: bool = False) -> Optional[ContentItem]:
        """Get content item by ID; fresh=True bypasses the identity map."""
        if fresh:
            return session.get(ContentItem, item_id, populate_existing=True)
        return session.get(ContentItem, item_id)


class SlotRepository:
    """Repository for contribution slots and contributions."""

    @staticmethod
    def get_by_id(session: Session, slot_id: int, fresh: bool = False) -> Optional[ContributionSlot]:
        """Get slot by ID; fresh=True bypasses the identity map."""
        if fresh:
            return session.get(ContributionSlot, slot_id, populate_existing=True)
        return session.get(ContributionSlot, slot_id)

    @staticmethod
    def get_by_content_set(session: Session, content_set_id: int) -> List[ContributionSlot]:
        """Get all slots of a content set."""
        stmt = (
            select(ContributionSlot)
            .where(ContributionSlot.content_set_id == content_set_id)
            .order_by(ContributionSlot.due_at, ContributionSlot.id)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def get_by_contributor(session: Session, participant_id: int) -> List[ContributionSlot]:
        """Get all slots assigned to a participant, soonest due first."""
        stmt = (
            select(ContributionSlot)
            .where(ContributionSlot.contributor_id == participant_id)
            .order_by(ContributionSlot.due_at, ContributionSlot.id)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def get_contribution(session: Session, contribution_id: int, fresh: bool = False) -> Optional[Contribution]:
        """Get contribution by ID; fresh=True bypasses the identity map."""
        if fresh:
            return session.get(Contribution, contribution_id, populate_existing=True)
        return session.get(Contribution, contribution_id)

    @staticmethod
    def contributions(session: Session, slot_id: int) -> List[Contribution]:
        """Get all contributions of a slot re-read from the store."""
        stmt = (
            select(Contribution)
            .where(Contribution.slot_id == slot_id)
            .order_by(Contribution.id)
            .execution_options(populate_existing=True)
        )
        return list(session.scalars(stmt))


class RotationRepository:
    """Repository for rotation lists and fulfillment history."""

    @staticmethod
    def active_entries(session: Session, role_category_id: str) -> List[RotationEntry]:
        """Get the active rotation list for a role category in rotation order."""
        stmt = (
            select(RotationEntry)
            .where(RotationEntry.role_category_id == role_category_id, RotationEntry.is_active.is_(True))
            .order_by(RotationEntry.rotation_order)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def last_served(session: Session, role_category_id: str) -> Dict[int, date]:
        """Map participant_id -> event date of their most recent fulfillment for the role."""
        stmt = (
            select(RoleFulfillment.participant_id, func.max(Event.event_date))
            .join(Event, Event.id == RoleFulfillment.event_id)
            .where(RoleFulfillment.role_category_id == role_category_id)
            .group_by(RoleFulfillment.participant_id)
        )
        return {pid: served for pid, served in session.execute(stmt)}

    @staticmethod
    def history(session: Session, role_category_id: str) -> List[RoleFulfillment]:
        """Get the fulfillment log for a role in recording order."""
        stmt = (
            select(RoleFulfillment)
            .where(RoleFulfillment.role_category_id == role_category_id)
            .order_by(RoleFulfillment.id)
        )
        return list(session.scalars(stmt))

    @staticmethod
    def append_fulfillment(session: Session, fulfillment: RoleFulfillment) -> RoleFulfillment:
        """Append a fulfillment record. Existing rows are never touched."""
        session.add(fulfillment)
        session.flush()
        return fulfillment

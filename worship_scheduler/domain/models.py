"""SQLAlchemy models for service staffing and content assembly."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship

from worship_scheduler.timeutils import utcnow


SET_DRAFT = "draft"
SET_PUBLISHED = "published"

DISPOSITION_PENDING = "pending"
DISPOSITION_APPROVED = "approved"
DISPOSITION_REJECTED = "rejected"


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Participant(Base):
    """A person who can be staffed or asked for content. Owned by the identity system."""

    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)

    # Relationships
    roles = relationship("ParticipantRole", back_populates="participant", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, name='{self.name}')>"


class ParticipantRole(Base):
    """Membership of a participant in a role category (e.g. "lead", "keys")."""

    __tablename__ = "participant_roles"
    __table_args__ = (UniqueConstraint("participant_id", "role_category_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    role_category_id = Column(String(50), nullable=False)

    participant = relationship("Participant", back_populates="roles")


class Event(Base):
    """One scheduled occurrence of a recurring service category."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    category_id = Column(String(50), nullable=False)
    event_date = Column(Date, nullable=False)

    # Relationships
    content_set = relationship(
        "ContentSet",
        back_populates="event",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, category='{self.category_id}', date={self.event_date})>"


class ContentSet(Base):
    """The ordered content list attached to a single event."""

    __tablename__ = "content_sets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=SET_DRAFT)
    leader_id = Column(Integer, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    # Bumped by every locked mutation; doubles as a cache-invalidation token
    revision = Column(Integer, nullable=False, default=0)

    # Relationships
    event = relationship("Event", back_populates="content_set")
    leader = relationship("Participant")
    items = relationship(
        "ContentItem",
        back_populates="content_set",
        order_by="ContentItem.position",
        cascade="all, delete-orphan",
    )
    slots = relationship("ContributionSlot", back_populates="content_set", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<ContentSet(id={self.id}, event={self.event_id}, status='{self.status}')>"


class ContentItem(Base):
    """One catalog variant placed at a 1-based position in a content set."""

    __tablename__ = "content_items"
    __table_args__ = (UniqueConstraint("content_set_id", "position", name="uq_content_item_position"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_set_id = Column(Integer, ForeignKey("content_sets.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)
    catalog_entry_id = Column(Integer, nullable=False)
    variant_id = Column(Integer, nullable=False)
    unfamiliar = Column(Boolean, nullable=False, default=False)

    # Per-item overrides
    performer_id = Column(Integer, ForeignKey("participants.id", ondelete="SET NULL"), nullable=True)
    media_url_override = Column(String(500), nullable=True)
    key_override = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)

    content_set = relationship("ContentSet", back_populates="items")

    def __repr__(self) -> str:
        return f"<ContentItem(id={self.id}, set={self.content_set_id}, pos={self.position}, variant={self.variant_id})>"


class ContributionSlot(Base):
    """A time-boxed request for one participant to propose content for a set.

    Status is never stored; see services.slots.slot_status.
    """

    __tablename__ = "contribution_slots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_set_id = Column(Integer, ForeignKey("content_sets.id", ondelete="CASCADE"), nullable=False)
    contributor_id = Column(Integer, ForeignKey("participants.id"), nullable=False)
    min_items = Column(Integer, nullable=False)
    max_items = Column(Integer, nullable=False)
    due_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    content_set = relationship("ContentSet", back_populates="slots")
    contributor = relationship("Participant")
    contributions = relationship(
        "Contribution",
        back_populates="slot",
        order_by="Contribution.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ContributionSlot(id={self.id}, set={self.content_set_id}, contributor={self.contributor_id})>"


class Contribution(Base):
    """A proposed catalog entry submitted against a slot. Never deleted on decision."""

    __tablename__ = "contributions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_id = Column(Integer, ForeignKey("contribution_slots.id", ondelete="CASCADE"), nullable=False)
    catalog_entry_id = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    media_url_override = Column(String(500), nullable=True)
    disposition = Column(String(20), nullable=False, default=DISPOSITION_PENDING)
    submitted_at = Column(DateTime, nullable=False, default=utcnow)
    decided_at = Column(DateTime, nullable=True)
    content_item_id = Column(Integer, ForeignKey("content_items.id", ondelete="SET NULL"), nullable=True)

    slot = relationship("ContributionSlot", back_populates="contributions")

    def __repr__(self) -> str:
        return f"<Contribution(id={self.id}, slot={self.slot_id}, entry={self.catalog_entry_id}, '{self.disposition}')>"


class RotationEntry(Base):
    """A participant's place in the leadership rotation for a role category."""

    __tablename__ = "rotation_entries"
    __table_args__ = (UniqueConstraint("role_category_id", "rotation_order", name="uq_rotation_order"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_category_id = Column(String(50), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    rotation_order = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    participant = relationship("Participant")

    def __repr__(self) -> str:
        return f"<RotationEntry(role='{self.role_category_id}', participant={self.participant_id}, order={self.rotation_order})>"


class RoleFulfillment(Base):
    """Append-only record that a participant filled a role for an event."""

    __tablename__ = "role_fulfillments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_category_id = Column(String(50), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False)
    sequence_order = Column(Integer, nullable=True)  # rotation_order at assignment time
    recorded_at = Column(DateTime, nullable=False, default=utcnow)

    event = relationship("Event")
    participant = relationship("Participant")

    def __repr__(self) -> str:
        return f"<RoleFulfillment(role='{self.role_category_id}', event={self.event_id}, participant={self.participant_id})>"

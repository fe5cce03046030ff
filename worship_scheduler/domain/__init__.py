"""Domain models and data access layer."""

from .models import (
    Base,
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
from .repositories import (
    ContentSetRepository,
    EventRepository,
    ParticipantRepository,
    RotationRepository,
    SlotRepository,
)

__all__ = [
    "Base",
    "Participant",
    "ParticipantRole",
    "Event",
    "ContentSet",
    "ContentItem",
    "ContributionSlot",
    "Contribution",
    "RotationEntry",
    "RoleFulfillment",
    "ParticipantRepository",
    "EventRepository",
    "ContentSetRepository",
    "SlotRepository",
    "RotationRepository",
]

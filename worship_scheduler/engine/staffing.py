"""Staffing coordinator - leader suggestion and confirmation for events."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from worship_scheduler.domain.models import RoleFulfillment
from worship_scheduler.domain.records import FulfillmentRecord, ForecastEntry
from worship_scheduler.domain.repositories import (
    ContentSetRepository,
    EventRepository,
    ParticipantRepository,
    RotationRepository,
)
from worship_scheduler.errors import NotEligibleError, NotFoundError
from worship_scheduler.services.rotation import RotationCandidate, project, select_next

from .base import EngineComponent
from .content import lock_content_set

logger = logging.getLogger(__name__)


def _candidates(session: Session, role_category_id: str) -> List[RotationCandidate]:
    return [
        RotationCandidate(participant_id=e.participant_id, rotation_order=e.rotation_order)
        for e in RotationRepository.active_entries(session, role_category_id)
    ]


class StaffingCoordinator(EngineComponent):
    """
    Suggests and records who leads each event.

    Suggestions are read-only and derived from the active rotation list plus
    the append-only fulfillment history; confirming an assignment is the only
    write, and it sets the leader and appends history in one transaction.
    """

    name = "staffing"

    def suggest_next(self, role_category_id: str) -> Optional[int]:
        """
        Participant who should serve next in a role.

        Returns:
            participant_id, or None when the rotation list is empty
        """
        with self.reading() as session:
            candidates = _candidates(session, role_category_id)
            last_served = RotationRepository.last_served(session, role_category_id)
            pick = select_next(candidates, last_served)
            logger.debug("Suggested participant %s for role %s", pick, role_category_id)
            return pick

    def confirm_assignment(self, event_id: int, role_category_id: str, participant_id: int) -> FulfillmentRecord:
        """
        Confirm a participant in a role for an event and record it in history.

        Only the configured leader role writes the content set's leader;
        other role categories just append their fulfillment row. A previous
        leader of the same event is replaced; their fulfillment row stays in
        history.

        Raises:
            NotFoundError: If the event, its content set or the participant is missing
            NotEligibleError: If the participant is not a member of the role category
        """
        with self.transaction() as session:
            event = EventRepository.get_by_id(session, event_id)
            if event is None:
                raise NotFoundError(f"Event {event_id} not found")
            content_set = ContentSetRepository.get_by_event(session, event_id)
            if content_set is None:
                raise NotFoundError(f"Event {event_id} has no content set")
            content_set = lock_content_set(session, content_set.id)

            if ParticipantRepository.get_by_id(session, participant_id) is None:
                raise NotFoundError(f"Participant {participant_id} not found")
            if not ParticipantRepository.has_role(session, participant_id, role_category_id):
                raise NotEligibleError(
                    f"Participant {participant_id} is not eligible for role {role_category_id}"
                )

            entry = next(
                (e for e in RotationRepository.active_entries(session, role_category_id)
                 if e.participant_id == participant_id),
                None,
            )
            previous = content_set.leader_id
            leads = role_category_id == self.cfg.leader_role
            if leads:
                content_set.leader_id = participant_id
            fulfillment = RotationRepository.append_fulfillment(
                session,
                RoleFulfillment(
                    role_category_id=role_category_id,
                    event_id=event_id,
                    participant_id=participant_id,
                    sequence_order=entry.rotation_order if entry else None,
                ),
            )
            if leads and previous is not None and previous != participant_id:
                logger.info("Event %s leader changed from %s to %s", event_id, previous, participant_id)
            logger.info("Participant %s confirmed as %s for event %s", participant_id, role_category_id, event_id)
            return FulfillmentRecord.from_model(fulfillment)

    def forecast(self, role_category_id: str, event_ids: List[int]) -> List[ForecastEntry]:
        """
        Project who would lead each event if suggestions were confirmed in date order.

        Nothing is written; the projection is a simulation over the current
        rotation list and history.

        Raises:
            NotFoundError: If any event ID is unknown
        """
        with self.reading() as session:
            events = EventRepository.get_many(session, list(event_ids))
            missing = set(event_ids) - {e.id for e in events}
            if missing:
                raise NotFoundError(f"Events not found: {sorted(missing)}")
            candidates = _candidates(session, role_category_id)
            last_served = RotationRepository.last_served(session, role_category_id)
            picks = project(candidates, last_served, [e.event_date for e in events])
            return [
                ForecastEntry(event_id=e.id, event_date=e.event_date, participant_id=pick)
                for e, pick in zip(events, picks)
            ]

    def fulfillment_history(self, role_category_id: str) -> List[FulfillmentRecord]:
        """The append-only fulfillment log for a role, oldest first."""
        with self.reading() as session:
            return [FulfillmentRecord.from_model(r) for r in RotationRepository.history(session, role_category_id)]

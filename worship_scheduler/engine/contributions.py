"""Contribution slot workflow: request, submit, review.

A reviewer opens a slot on a content set for one contributor. The
contributor proposes catalog entries against it until the deadline or
until max_items live proposals exist. The reviewer then rejects each
proposal, or approves it, which folds it into the content set through the
same guard and ordering path as a direct add.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from worship_scheduler.domain.models import (
    DISPOSITION_APPROVED,
    DISPOSITION_PENDING,
    DISPOSITION_REJECTED,
    Contribution,
    ContributionSlot,
)
from worship_scheduler.domain.records import CatalogVariant, ContributionView, ItemOverrides, SlotView
from worship_scheduler.domain.repositories import (
    ContentSetRepository,
    ParticipantRepository,
    SlotRepository,
)
from worship_scheduler.errors import NotFoundError
from worship_scheduler.services import invariants, slots
from worship_scheduler.timeutils import resolve_now, to_utc_naive

from .base import EngineComponent
from .content import append_guarded, lock_content_set

logger = logging.getLogger(__name__)

_UNSET = object()


def _slot_view(session: Session, slot: ContributionSlot, now: datetime) -> SlotView:
    contributions = SlotRepository.contributions(session, slot.id)
    active = len(slots.active_contributions(contributions))
    status = slots.derive_status(slot.min_items, slot.due_at, active, now)
    return SlotView.from_model(slot, contributions, status, active, now)


class ContributionWorkflow(EngineComponent):
    """State machine for contribution slots and their proposals."""

    name = "contributions"

    # Reviewer side

    def create_slot(
        self,
        content_set_id: int,
        contributor_id: int,
        min_items: int,
        max_items: int,
        due_at: datetime,
        now: Optional[datetime] = None,
    ) -> SlotView:
        """
        Open a slot asking one participant for between min_items and max_items proposals.

        Args:
            content_set_id: Set the proposals are for
            contributor_id: Participant asked to contribute
            min_items: Proposals needed for the slot to read as submitted (>= 1)
            max_items: Live proposals allowed at once (>= min_items)
            due_at: Deadline; must be in the future
            now: Clock override (UTC)

        Returns:
            SlotView with status pending

        Raises:
            InvalidSlotWindowError: If the counts or deadline are invalid
            NotFoundError: If the set or participant does not exist
        """
        now = resolve_now(now)
        due_at = to_utc_naive(due_at)
        slots.validate_window(min_items, max_items, due_at, now)

        with self.transaction() as session:
            lock_content_set(session, content_set_id)
            if ParticipantRepository.get_by_id(session, contributor_id) is None:
                raise NotFoundError(f"Participant {contributor_id} not found")

            slot = ContributionSlot(
                content_set_id=content_set_id,
                contributor_id=contributor_id,
                min_items=min_items,
                max_items=max_items,
                due_at=due_at,
                created_at=now,
            )
            session.add(slot)
            session.flush()
            logger.info(
                "Opened slot %s on content set %s for participant %s (%s-%s items, due %s)",
                slot.id, content_set_id, contributor_id, min_items, max_items, due_at.isoformat(),
            )
            return _slot_view(session, slot, now)

    def reassign_slot(self, slot_id: int, contributor_id: int, now: Optional[datetime] = None) -> SlotView:
        """Hand a slot to a different participant. Existing proposals stay with the slot."""
        now = resolve_now(now)
        with self.transaction() as session:
            slot = self._locked_slot(session, slot_id)
            if ParticipantRepository.get_by_id(session, contributor_id) is None:
                raise NotFoundError(f"Participant {contributor_id} not found")
            previous = slot.contributor_id
            slot.contributor_id = contributor_id
            session.flush()
            logger.info("Slot %s reassigned from participant %s to %s", slot_id, previous, contributor_id)
            return _slot_view(session, slot, now)

    def approve(
        self,
        contribution_id: int,
        variant: CatalogVariant,
        unfamiliar: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> ContributionView:
        """
        Approve a pending proposal and append it to the content set.

        The guard runs under the parent lock. If it rejects, the proposal
        stays pending so the reviewer can retry later. A missed slot does not
        block approval.

        Args:
            contribution_id: Proposal to approve
            variant: Catalog variant chosen for the proposal's entry
            unfamiliar: Explicit unfamiliar flag; derived from familiarity when None
            now: Clock override (UTC)

        Raises:
            AlreadyDecidedError: If the proposal was already approved or rejected
            CapacityExceededError: If the set is full
            UnfamiliarQuotaExceededError: If the unfamiliar quota is used up
            NotFoundError: If the proposal is missing or the variant is for another entry
        """
        now = resolve_now(now)
        flag = invariants.is_unfamiliar(variant, self.cfg, unfamiliar)

        with self.transaction() as session:
            contribution, slot = self._locked_contribution(session, contribution_id)
            slots.check_undecided(contribution)
            if variant.entry_id != contribution.catalog_entry_id:
                raise NotFoundError(
                    f"Variant {variant.variant_id} does not belong to catalog entry {contribution.catalog_entry_id}"
                )

            content_set = ContentSetRepository.get_by_id(session, slot.content_set_id)
            item = append_guarded(
                session,
                content_set,
                variant,
                flag,
                self.cfg,
                ItemOverrides(media_url_override=contribution.media_url_override),
            )
            contribution.disposition = DISPOSITION_APPROVED
            contribution.decided_at = now
            contribution.content_item_id = item.id
            session.flush()
            logger.info(
                "Approved contribution %s into content set %s at position %s",
                contribution_id, content_set.id, item.position,
            )
            return ContributionView.from_model(contribution, slot.contributor_id)

    def reject(self, contribution_id: int, now: Optional[datetime] = None) -> ContributionView:
        """
        Reject a pending proposal. Allowed whatever the slot status is.

        Raises:
            AlreadyDecidedError: If the proposal was already approved or rejected
            NotFoundError: If the proposal does not exist
        """
        now = resolve_now(now)
        with self.transaction() as session:
            contribution, slot = self._locked_contribution(session, contribution_id)
            slots.check_undecided(contribution)
            contribution.disposition = DISPOSITION_REJECTED
            contribution.decided_at = now
            session.flush()
            logger.info("Rejected contribution %s in slot %s", contribution_id, slot.id)
            return ContributionView.from_model(contribution, slot.contributor_id)

    # Contributor side

    def submit(
        self,
        slot_id: int,
        catalog_entry_id: int,
        note: Optional[str] = None,
        media_url_override: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ContributionView:
        """
        Propose a catalog entry against a slot.

        Raises:
            SlotExpiredError: If the deadline has passed
            SlotFullError: If max_items live proposals already exist
            DuplicateContributionError: If the entry is already proposed in this slot
            NotFoundError: If the slot does not exist
        """
        now = resolve_now(now)
        with self.transaction() as session:
            slot = self._locked_slot(session, slot_id)
            existing = SlotRepository.contributions(session, slot_id)
            slots.check_submission(slot, existing, catalog_entry_id, now)

            contribution = Contribution(
                slot_id=slot_id,
                catalog_entry_id=catalog_entry_id,
                note=note,
                media_url_override=media_url_override,
                disposition=DISPOSITION_PENDING,
                submitted_at=now,
            )
            session.add(contribution)
            session.flush()
            logger.info(
                "Participant %s proposed catalog entry %s in slot %s",
                slot.contributor_id, catalog_entry_id, slot_id,
            )
            return ContributionView.from_model(contribution, slot.contributor_id)

    def update_contribution(
        self,
        contribution_id: int,
        note=_UNSET,
        media_url_override=_UNSET,
    ) -> ContributionView:
        """
        Edit the note or media link of a proposal that is still pending.

        Raises:
            AlreadyDecidedError: If the proposal was already decided
            NotFoundError: If the proposal does not exist
        """
        with self.transaction() as session:
            contribution, slot = self._locked_contribution(session, contribution_id)
            slots.check_undecided(contribution)
            if note is not _UNSET:
                contribution.note = note
            if media_url_override is not _UNSET:
                contribution.media_url_override = media_url_override
            session.flush()
            return ContributionView.from_model(contribution, slot.contributor_id)

    # Reads

    def get_slot(self, slot_id: int, now: Optional[datetime] = None) -> SlotView:
        """Slot with its proposals and status derived at `now`."""
        now = resolve_now(now)
        with self.reading() as session:
            slot = SlotRepository.get_by_id(session, slot_id)
            if slot is None:
                raise NotFoundError(f"Slot {slot_id} not found")
            return _slot_view(session, slot, now)

    def slot_status(self, slot_id: int, now: Optional[datetime] = None) -> str:
        return self.get_slot(slot_id, now).status

    def slots_for_contributor(self, participant_id: int, now: Optional[datetime] = None) -> List[SlotView]:
        """All slots assigned to a participant, soonest deadline first."""
        now = resolve_now(now)
        with self.reading() as session:
            return [_slot_view(session, s, now) for s in SlotRepository.get_by_contributor(session, participant_id)]

    def slots_for_content_set(self, content_set_id: int, now: Optional[datetime] = None) -> List[SlotView]:
        now = resolve_now(now)
        with self.reading() as session:
            return [_slot_view(session, s, now) for s in SlotRepository.get_by_content_set(session, content_set_id)]

    def contributions_for_content_set(self, content_set_id: int) -> List[ContributionView]:
        """Every proposal across the set's slots, flattened, with its contributor."""
        with self.reading() as session:
            if ContentSetRepository.get_by_id(session, content_set_id) is None:
                raise NotFoundError(f"Content set {content_set_id} not found")
            views: List[ContributionView] = []
            for slot in SlotRepository.get_by_content_set(session, content_set_id):
                for contribution in SlotRepository.contributions(session, slot.id):
                    views.append(ContributionView.from_model(contribution, slot.contributor_id))
            return views

    # Locking helpers

    def _locked_slot(self, session: Session, slot_id: int) -> ContributionSlot:
        slot = SlotRepository.get_by_id(session, slot_id)
        if slot is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        lock_content_set(session, slot.content_set_id)
        slot = SlotRepository.get_by_id(session, slot_id, fresh=True)
        if slot is None:
            raise NotFoundError(f"Slot {slot_id} not found")
        return slot

    def _locked_contribution(self, session: Session, contribution_id: int):
        contribution = SlotRepository.get_contribution(session, contribution_id)
        if contribution is None:
            raise NotFoundError(f"Contribution {contribution_id} not found")
        slot = SlotRepository.get_by_id(session, contribution.slot_id)
        lock_content_set(session, slot.content_set_id)
        # Disposition may have changed between the first read and the lock
        contribution = SlotRepository.get_contribution(session, contribution_id, fresh=True)
        if contribution is None:
            raise NotFoundError(f"Contribution {contribution_id} not found")
        return contribution, slot

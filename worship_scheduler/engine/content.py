"""Direct content-set operations: add, remove, reorder, edit, publish."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from worship_scheduler.domain.models import SET_DRAFT, SET_PUBLISHED, ContentItem, ContentSet
from worship_scheduler.domain.records import CatalogVariant, ContentSetView, ItemOverrides
from worship_scheduler.domain.repositories import ContentSetRepository
from worship_scheduler.errors import GuardResult, NotFoundError
from worship_scheduler.services import invariants, ordering

from .base import EngineComponent

logger = logging.getLogger(__name__)

_UNSET = object()


def lock_content_set(session: Session, content_set_id: int) -> ContentSet:
    """Take the parent lock or raise NotFoundError."""
    content_set = ContentSetRepository.lock(session, content_set_id)
    if content_set is None:
        raise NotFoundError(f"Content set {content_set_id} not found")
    return content_set


def append_guarded(
    session: Session,
    content_set: ContentSet,
    variant: CatalogVariant,
    unfamiliar: bool,
    cfg,
    overrides: ItemOverrides | None = None,
    after_position: int | None = None,
) -> ContentItem:
    """
    Guard then insert, under a parent lock the caller already holds.

    Counts are re-read inside the lock, so two racing writers cannot both
    pass the guard against the same snapshot.
    """
    items = ContentSetRepository.items(session, content_set.id)
    verdict = invariants.can_add_to(items, unfamiliar, cfg)
    verdict.raise_for_reason()

    overrides = overrides or ItemOverrides()
    item = ContentItem(
        catalog_entry_id=variant.entry_id,
        variant_id=variant.variant_id,
        unfamiliar=unfamiliar,
        performer_id=overrides.performer_id,
        media_url_override=overrides.media_url_override,
        key_override=overrides.key_override,
        notes=overrides.notes,
    )
    ordering.insert_at(session, content_set.id, item, after_position)
    return item


def snapshot(session: Session, content_set: ContentSet) -> ContentSetView:
    return ContentSetView.from_model(content_set, ContentSetRepository.items(session, content_set.id))


class ContentAssembler(EngineComponent):
    """Maintains the ordered, capped content list of each event."""

    name = "content"

    def get_content_set(self, content_set_id: int) -> ContentSetView:
        """Return the set with its items in position order."""
        with self.reading() as session:
            content_set = ContentSetRepository.get_by_id(session, content_set_id)
            if content_set is None:
                raise NotFoundError(f"Content set {content_set_id} not found")
            return snapshot(session, content_set)

    def can_add(
        self,
        content_set_id: int,
        variant: CatalogVariant | None = None,
        unfamiliar: Optional[bool] = None,
    ) -> GuardResult:
        """Speculative guard for UI hints. Takes no lock and writes nothing."""
        with self.reading() as session:
            if ContentSetRepository.get_by_id(session, content_set_id) is None:
                raise NotFoundError(f"Content set {content_set_id} not found")
            items = ContentSetRepository.items(session, content_set_id)
            if variant is not None:
                flag = invariants.is_unfamiliar(variant, self.cfg, unfamiliar)
            else:
                flag = bool(unfamiliar)
            return invariants.can_add_to(items, flag, self.cfg)

    def add_item(
        self,
        content_set_id: int,
        variant: CatalogVariant,
        unfamiliar: Optional[bool] = None,
        overrides: ItemOverrides | None = None,
        after_position: int | None = None,
    ) -> ContentSetView:
        """
        Add a catalog variant to a set, appending unless after_position is given.

        Raises:
            CapacityExceededError: If the set is full
            UnfamiliarQuotaExceededError: If the item is unfamiliar and the quota is used
            InvalidOrderError: If after_position is outside 0..N
            NotFoundError: If the set does not exist
        """
        flag = invariants.is_unfamiliar(variant, self.cfg, unfamiliar)
        with self.transaction() as session:
            content_set = lock_content_set(session, content_set_id)
            item = append_guarded(session, content_set, variant, flag, self.cfg, overrides, after_position)
            logger.info(
                "Added variant %s to content set %s at position %s (unfamiliar=%s)",
                variant.variant_id, content_set_id, item.position, flag,
            )
            return snapshot(session, content_set)

    def remove_item(self, item_id: int) -> ContentSetView:
        """
        Remove an item and compact the positions behind it.

        Raises:
            NotFoundError: If the item does not exist
        """
        with self.transaction() as session:
            item = ContentSetRepository.get_item(session, item_id)
            if item is None:
                raise NotFoundError(f"Content item {item_id} not found")
            content_set = lock_content_set(session, item.content_set_id)
            # Re-read under the lock; a concurrent writer may have moved or removed it
            item = ContentSetRepository.get_item(session, item_id, fresh=True)
            if item is None:
                raise NotFoundError(f"Content item {item_id} not found")
            ordering.remove_and_compact(session, content_set.id, item.position)
            logger.info("Removed item %s from content set %s", item_id, content_set.id)
            return snapshot(session, content_set)

    def reorder_items(self, content_set_id: int, ordered_ids: Sequence[int]) -> ContentSetView:
        """
        Reassign positions 1..N following ordered_ids.

        Raises:
            InvalidOrderError: If ordered_ids is not exactly the set's membership
            NotFoundError: If the set does not exist
        """
        with self.transaction() as session:
            content_set = lock_content_set(session, content_set_id)
            ordering.reorder(session, content_set_id, ordered_ids)
            logger.info("Reordered content set %s: %s", content_set_id, list(ordered_ids))
            return snapshot(session, content_set)

    def update_item(
        self,
        item_id: int,
        performer_id=_UNSET,
        media_url_override=_UNSET,
        key_override=_UNSET,
        notes=_UNSET,
        unfamiliar: Optional[bool] = None,
    ) -> ContentSetView:
        """
        Edit an item's overrides or its unfamiliar flag.

        Only the arguments actually passed are written. Turning the flag on
        is checked against the unfamiliar quota.
        """
        with self.transaction() as session:
            item = ContentSetRepository.get_item(session, item_id)
            if item is None:
                raise NotFoundError(f"Content item {item_id} not found")
            content_set = lock_content_set(session, item.content_set_id)
            item = ContentSetRepository.get_item(session, item_id, fresh=True)
            if item is None:
                raise NotFoundError(f"Content item {item_id} not found")

            if unfamiliar and not item.unfamiliar:
                items = ContentSetRepository.items(session, content_set.id)
                invariants.can_flag_unfamiliar(items, item.id, self.cfg).raise_for_reason()
            if unfamiliar is not None:
                item.unfamiliar = bool(unfamiliar)
            if performer_id is not _UNSET:
                item.performer_id = performer_id
            if media_url_override is not _UNSET:
                item.media_url_override = media_url_override
            if key_override is not _UNSET:
                item.key_override = key_override
            if notes is not _UNSET:
                item.notes = notes
            session.flush()
            logger.info("Updated item %s in content set %s", item_id, content_set.id)
            return snapshot(session, content_set)

    def publish(self, content_set_id: int) -> ContentSetView:
        """
        Mark a set published after re-checking its composition.

        Published sets stay editable; publishing is a status, not a lock.
        """
        with self.transaction() as session:
            content_set = lock_content_set(session, content_set_id)
            if content_set.status != SET_PUBLISHED:
                items = ContentSetRepository.items(session, content_set_id)
                invariants.check_composition(items, self.cfg).raise_for_reason()
                content_set.status = SET_PUBLISHED
                logger.info("Published content set %s", content_set_id)
            return snapshot(session, content_set)

    def unpublish(self, content_set_id: int) -> ContentSetView:
        """Return a set to draft."""
        with self.transaction() as session:
            content_set = lock_content_set(session, content_set_id)
            if content_set.status != SET_DRAFT:
                content_set.status = SET_DRAFT
                logger.info("Content set %s returned to draft", content_set_id)
            return snapshot(session, content_set)


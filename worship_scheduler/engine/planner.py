"""ServicePlanner - the single entry point request handlers call into."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from worship_scheduler.config import EngineConfig
from worship_scheduler.domain.db import create_db_engine, get_session_factory
from worship_scheduler.domain.records import (
    CatalogVariant,
    ContentSetView,
    ContributionView,
    ForecastEntry,
    FulfillmentRecord,
    ItemOverrides,
    SlotView,
)
from worship_scheduler.errors import GuardResult

from .content import ContentAssembler
from .contributions import ContributionWorkflow
from .staffing import StaffingCoordinator

logger = logging.getLogger(__name__)


class ServicePlanner:
    """
    Facade over the content, contribution and staffing components.

    Every call is a synchronous, self-contained transaction (or read) and
    returns a record or raises an EngineError subclass. Handlers translate
    those to their own transport.
    """

    def __init__(self, session_factory: sessionmaker, cfg: EngineConfig | None = None):
        """
        Args:
            session_factory: SQLAlchemy sessionmaker bound to the backing store
            cfg: EngineConfig (defaults if omitted)
        """
        self.cfg = cfg or EngineConfig()
        self.content = ContentAssembler(session_factory, self.cfg)
        self.contributions = ContributionWorkflow(session_factory, self.cfg)
        self.staffing = StaffingCoordinator(session_factory, self.cfg)

    @classmethod
    def from_config(cls, cfg: EngineConfig) -> "ServicePlanner":
        """Build a planner with its own engine from configuration."""
        engine = create_db_engine(cfg.db_url, busy_timeout=cfg.sqlite_busy_timeout)
        logger.debug("ServicePlanner bound to %s", engine.url)
        return cls(get_session_factory(engine), cfg)

    # Contribution slots

    def create_contribution_slot(
        self,
        content_set_id: int,
        contributor_id: int,
        min_items: int,
        max_items: int,
        due_at: datetime,
        now: Optional[datetime] = None,
    ) -> SlotView:
        return self.contributions.create_slot(content_set_id, contributor_id, min_items, max_items, due_at, now)

    def reassign_slot(self, slot_id: int, contributor_id: int, now: Optional[datetime] = None) -> SlotView:
        return self.contributions.reassign_slot(slot_id, contributor_id, now)

    def submit_contribution(
        self,
        slot_id: int,
        catalog_entry_id: int,
        note: Optional[str] = None,
        media_url_override: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ContributionView:
        return self.contributions.submit(slot_id, catalog_entry_id, note, media_url_override, now)

    def update_contribution(self, contribution_id: int, **changes) -> ContributionView:
        return self.contributions.update_contribution(contribution_id, **changes)

    def approve_contribution(
        self,
        contribution_id: int,
        variant: CatalogVariant,
        unfamiliar: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> ContributionView:
        return self.contributions.approve(contribution_id, variant, unfamiliar, now)

    def reject_contribution(self, contribution_id: int, now: Optional[datetime] = None) -> ContributionView:
        return self.contributions.reject(contribution_id, now)

    def get_slot(self, slot_id: int, now: Optional[datetime] = None) -> SlotView:
        return self.contributions.get_slot(slot_id, now)

    def slot_status(self, slot_id: int, now: Optional[datetime] = None) -> str:
        return self.contributions.slot_status(slot_id, now)

    def slots_for_contributor(self, participant_id: int, now: Optional[datetime] = None) -> List[SlotView]:
        return self.contributions.slots_for_contributor(participant_id, now)

    def slots_for_content_set(self, content_set_id: int, now: Optional[datetime] = None) -> List[SlotView]:
        return self.contributions.slots_for_content_set(content_set_id, now)

    def contributions_for_content_set(self, content_set_id: int) -> List[ContributionView]:
        return self.contributions.contributions_for_content_set(content_set_id)

    # Content sets

    def get_content_set(self, content_set_id: int) -> ContentSetView:
        return self.content.get_content_set(content_set_id)

    def can_add(
        self,
        content_set_id: int,
        variant: CatalogVariant | None = None,
        unfamiliar: Optional[bool] = None,
    ) -> GuardResult:
        return self.content.can_add(content_set_id, variant, unfamiliar)

    def add_content_item(
        self,
        content_set_id: int,
        variant: CatalogVariant,
        unfamiliar: Optional[bool] = None,
        overrides: ItemOverrides | None = None,
        after_position: int | None = None,
    ) -> ContentSetView:
        return self.content.add_item(content_set_id, variant, unfamiliar, overrides, after_position)

    def remove_content_item(self, item_id: int) -> ContentSetView:
        return self.content.remove_item(item_id)

    def reorder_content_items(self, content_set_id: int, ordered_ids: Sequence[int]) -> ContentSetView:
        return self.content.reorder_items(content_set_id, ordered_ids)

    def update_content_item(self, item_id: int, **changes) -> ContentSetView:
        return self.content.update_item(item_id, **changes)

    def publish_content_set(self, content_set_id: int) -> ContentSetView:
        return self.content.publish(content_set_id)

    def unpublish_content_set(self, content_set_id: int) -> ContentSetView:
        return self.content.unpublish(content_set_id)

    # Staffing

    def suggest_next_for_role(self, role_category_id: str) -> Optional[int]:
        return self.staffing.suggest_next(role_category_id)

    def confirm_assignment(self, event_id: int, role_category_id: str, participant_id: int) -> FulfillmentRecord:
        return self.staffing.confirm_assignment(event_id, role_category_id, participant_id)

    def forecast(self, role_category_id: str, event_ids: List[int]) -> List[ForecastEntry]:
        return self.staffing.forecast(role_category_id, event_ids)

    def fulfillment_history(self, role_category_id: str) -> List[FulfillmentRecord]:
        return self.staffing.fulfillment_history(role_category_id)


def build_planner(cfg: EngineConfig | None = None, db_url: str | None = None) -> ServicePlanner:
    """
    Convenience wrapper: load defaults, apply a database URL override, build a planner.

    Args:
        cfg: EngineConfig (defaults if omitted)
        db_url: Overrides cfg.db_url when given

    Returns:
        ServicePlanner ready for use
    """
    cfg = cfg or EngineConfig()
    if db_url:
        cfg = cfg.with_db_url(db_url)
    return ServicePlanner.from_config(cfg)

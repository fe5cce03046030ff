"""Capacity and composition guard for content sets.

The guard is pure: it takes counts (or items) and returns a GuardResult.
It can be called speculatively, e.g. to grey out an "add" action, and is
re-run inside the locked transaction on every commit path.
"""

from __future__ import annotations

from typing import Iterable, Optional

from worship_scheduler.config import EngineConfig
from worship_scheduler.domain.models import ContentItem
from worship_scheduler.domain.records import CatalogVariant
from worship_scheduler.errors import (
    CapacityExceededError,
    GuardResult,
    UnfamiliarQuotaExceededError,
)


def is_unfamiliar(variant: CatalogVariant, cfg: EngineConfig, explicit: Optional[bool] = None) -> bool:
    """
    Decide the unfamiliar flag for a new item.

    An explicit flag wins; otherwise a familiarity score below the configured
    threshold marks the item unfamiliar. No score means familiar.
    """
    if explicit is not None:
        return bool(explicit)
    if variant.familiarity_score is None:
        return False
    return variant.familiarity_score < cfg.familiarity_threshold


def can_add(item_count: int, unfamiliar_count: int, candidate_unfamiliar: bool, cfg: EngineConfig) -> GuardResult:
    """
    Check whether one more item may join a content set.

    Capacity is checked first, so a full set reports CapacityExceeded even
    when the candidate would also break the unfamiliar quota.
    """
    if item_count >= cfg.item_cap:
        return GuardResult.reject(
            CapacityExceededError.kind,
            f"Content set is at maximum capacity ({cfg.item_cap} items)",
        )
    if candidate_unfamiliar and unfamiliar_count >= cfg.unfamiliar_cap:
        return GuardResult.reject(
            UnfamiliarQuotaExceededError.kind,
            f"Content set already has {unfamiliar_count} unfamiliar item(s) (limit {cfg.unfamiliar_cap})",
        )
    return GuardResult.allow()


def can_add_to(items: Iterable[ContentItem], candidate_unfamiliar: bool, cfg: EngineConfig) -> GuardResult:
    """can_add over a loaded item list."""
    items = list(items)
    unfamiliar = sum(1 for i in items if i.unfamiliar)
    return can_add(len(items), unfamiliar, candidate_unfamiliar, cfg)


def can_flag_unfamiliar(items: Iterable[ContentItem], item_id: int, cfg: EngineConfig) -> GuardResult:
    """Check whether an existing item may be switched to unfamiliar."""
    others = sum(1 for i in items if i.unfamiliar and i.id != item_id)
    if others >= cfg.unfamiliar_cap:
        return GuardResult.reject(
            UnfamiliarQuotaExceededError.kind,
            f"Content set already has {others} unfamiliar item(s) (limit {cfg.unfamiliar_cap})",
        )
    return GuardResult.allow()


def check_composition(items: Iterable[ContentItem], cfg: EngineConfig) -> GuardResult:
    """Validate a whole set against both caps (used when publishing)."""
    items = list(items)
    if len(items) > cfg.item_cap:
        return GuardResult.reject(
            CapacityExceededError.kind,
            f"Cannot publish a content set with more than {cfg.item_cap} items",
        )
    unfamiliar = sum(1 for i in items if i.unfamiliar)
    if unfamiliar > cfg.unfamiliar_cap:
        return GuardResult.reject(
            UnfamiliarQuotaExceededError.kind,
            f"Cannot publish a content set with more than {cfg.unfamiliar_cap} unfamiliar item(s)",
        )
    return GuardResult.allow()

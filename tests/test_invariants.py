"""Tests for the capacity and unfamiliar-quota guard."""

import pytest

from worship_scheduler.config import EngineConfig
from worship_scheduler.domain.models import SET_DRAFT, SET_PUBLISHED, ContentItem
from worship_scheduler.domain.records import CatalogVariant
from worship_scheduler.engine.planner import ServicePlanner
from worship_scheduler.errors import (
    CapacityExceededError,
    NotFoundError,
    UnfamiliarQuotaExceededError,
)
from worship_scheduler.services.invariants import (
    can_add,
    can_flag_unfamiliar,
    check_composition,
    is_unfamiliar,
)


def _variant(entry_id, score=None):
    return CatalogVariant(entry_id=entry_id, variant_id=entry_id * 10, familiarity_score=score)


# Pure guard

def test_can_add_allows_under_caps():
    cfg = EngineConfig()
    result = can_add(item_count=3, unfamiliar_count=0, candidate_unfamiliar=True, cfg=cfg)
    assert result.ok
    assert result.reason is None
    assert bool(result) is True


def test_can_add_rejects_at_capacity():
    cfg = EngineConfig()
    result = can_add(item_count=6, unfamiliar_count=0, candidate_unfamiliar=False, cfg=cfg)
    assert not result
    assert result.reason == "CapacityExceeded"


def test_can_add_rejects_second_unfamiliar():
    cfg = EngineConfig()
    result = can_add(item_count=2, unfamiliar_count=1, candidate_unfamiliar=True, cfg=cfg)
    assert result.reason == "UnfamiliarQuotaExceeded"

    # A familiar candidate is unaffected by the quota
    assert can_add(item_count=2, unfamiliar_count=1, candidate_unfamiliar=False, cfg=cfg).ok


def test_capacity_is_reported_before_quota():
    cfg = EngineConfig()
    result = can_add(item_count=6, unfamiliar_count=1, candidate_unfamiliar=True, cfg=cfg)
    assert result.reason == "CapacityExceeded"


def test_custom_caps():
    cfg = EngineConfig(item_cap=2, unfamiliar_cap=0)
    assert can_add(1, 0, True, cfg).reason == "UnfamiliarQuotaExceeded"
    assert can_add(2, 0, False, cfg).reason == "CapacityExceeded"


def test_raise_for_reason_maps_to_error_kind():
    cfg = EngineConfig()
    with pytest.raises(CapacityExceededError):
        can_add(6, 0, False, cfg).raise_for_reason()
    with pytest.raises(UnfamiliarQuotaExceededError):
        can_add(1, 1, True, cfg).raise_for_reason()
    can_add(0, 0, False, cfg).raise_for_reason()


def test_is_unfamiliar_derivation():
    cfg = EngineConfig(familiarity_threshold=50)
    assert is_unfamiliar(_variant(1, score=10), cfg) is True
    assert is_unfamiliar(_variant(1, score=50), cfg) is False
    assert is_unfamiliar(_variant(1, score=None), cfg) is False
    # Explicit flag wins over the score
    assert is_unfamiliar(_variant(1, score=10), cfg, explicit=False) is False
    assert is_unfamiliar(_variant(1, score=90), cfg, explicit=True) is True


def test_can_flag_unfamiliar_ignores_the_item_itself():
    cfg = EngineConfig()
    items = [ContentItem(id=1, unfamiliar=True), ContentItem(id=2, unfamiliar=False)]
    assert can_flag_unfamiliar(items, 1, cfg).ok
    assert can_flag_unfamiliar(items, 2, cfg).reason == "UnfamiliarQuotaExceeded"


def test_check_composition():
    cfg = EngineConfig()
    ok_items = [ContentItem(id=i, unfamiliar=(i == 1)) for i in range(1, 7)]
    assert check_composition(ok_items, cfg).ok

    too_many = [ContentItem(id=i, unfamiliar=False) for i in range(1, 8)]
    assert check_composition(too_many, cfg).reason == "CapacityExceeded"

    two_new = [ContentItem(id=i, unfamiliar=True) for i in range(1, 3)]
    assert check_composition(two_new, cfg).reason == "UnfamiliarQuotaExceeded"


# Through the engine

def test_full_set_rejects_regardless_of_unfamiliar_flag(planner, world):
    """A set at cap 6 with its one unfamiliar slot used rejects any add with CapacityExceeded."""
    cs = world[1]
    planner.add_content_item(cs, _variant(1), unfamiliar=True)
    for entry_id in range(2, 7):
        planner.add_content_item(cs, _variant(entry_id), unfamiliar=False)
    before = planner.get_content_set(cs)
    assert len(before.items) == 6
    assert before.unfamiliar_count == 1

    with pytest.raises(CapacityExceededError):
        planner.add_content_item(cs, _variant(7), unfamiliar=False)
    with pytest.raises(CapacityExceededError):
        planner.add_content_item(cs, _variant(8), unfamiliar=True)

    after = planner.get_content_set(cs)
    assert len(after.items) == 6
    assert after.revision == before.revision


def test_second_unfamiliar_item_is_rejected(planner, world):
    cs = world[1]
    planner.add_content_item(cs, _variant(1, score=5))
    with pytest.raises(UnfamiliarQuotaExceededError):
        planner.add_content_item(cs, _variant(2, score=5))

    view = planner.add_content_item(cs, _variant(3, score=95))
    assert [i.unfamiliar for i in view.items] == [True, False]


def test_can_add_hint_writes_nothing(planner, world):
    cs = world[1]
    planner.add_content_item(cs, _variant(1), unfamiliar=True)
    before = planner.get_content_set(cs)

    assert planner.can_add(cs, _variant(2, score=10)).reason == "UnfamiliarQuotaExceeded"
    assert planner.can_add(cs, _variant(2, score=90)).ok
    assert planner.can_add(cs, unfamiliar=False).ok

    assert planner.get_content_set(cs).revision == before.revision


def test_can_add_unknown_set_is_not_found(planner, world):
    with pytest.raises(NotFoundError):
        planner.can_add(999)


def test_update_item_respects_unfamiliar_quota(planner, world):
    cs = world[1]
    planner.add_content_item(cs, _variant(1), unfamiliar=True)
    view = planner.add_content_item(cs, _variant(2), unfamiliar=False)
    first, second = view.items

    with pytest.raises(UnfamiliarQuotaExceededError):
        planner.update_content_item(second.id, unfamiliar=True)

    # Re-flagging the item that already holds the quota is fine
    planner.update_content_item(first.id, unfamiliar=True)

    # Clearing one frees the quota for the other
    planner.update_content_item(first.id, unfamiliar=False)
    view = planner.update_content_item(second.id, unfamiliar=True, key_override="G", notes="capo 2")
    assert [i.unfamiliar for i in view.items] == [False, True]
    assert view.items[1].key_override == "G"
    assert view.items[1].notes == "capo 2"


def test_update_item_only_touches_given_fields(planner, world):
    cs = world[1]
    view = planner.add_content_item(cs, _variant(1), unfamiliar=False)
    item_id = view.items[0].id

    planner.update_content_item(item_id, performer_id=3, media_url_override="https://example.org/a.mp3")
    view = planner.update_content_item(item_id, key_override="D")

    item = view.items[0]
    assert item.performer_id == 3
    assert item.media_url_override == "https://example.org/a.mp3"
    assert item.key_override == "D"


def test_publish_and_unpublish(planner, world):
    cs = world[1]
    planner.add_content_item(cs, _variant(1), unfamiliar=False)

    view = planner.publish_content_set(cs)
    assert view.status == SET_PUBLISHED

    # Publishing is a status, not a lock
    view = planner.add_content_item(cs, _variant(2), unfamiliar=False)
    assert view.status == SET_PUBLISHED
    assert len(view.items) == 2

    view = planner.unpublish_content_set(cs)
    assert view.status == SET_DRAFT


def test_publish_rejects_set_over_a_lowered_cap(session_factory, world):
    """A set filled under a larger cap fails publishing once the cap shrinks."""
    roomy = ServicePlanner(session_factory, EngineConfig(item_cap=6))
    for entry_id in range(1, 5):
        roomy.add_content_item(world[1], _variant(entry_id), unfamiliar=False)

    strict = ServicePlanner(session_factory, EngineConfig(item_cap=3))
    with pytest.raises(CapacityExceededError):
        strict.publish_content_set(world[1])
    assert strict.get_content_set(world[1]).status == SET_DRAFT

"""Tests for dense positions: append, insert, remove-and-compact, reorder."""

import pytest

from worship_scheduler.domain.records import CatalogVariant
from worship_scheduler.domain.repositories import ContentSetRepository
from worship_scheduler.errors import InvalidOrderError, NotFoundError
from worship_scheduler.services.ordering import positions_are_dense


def _variant(entry_id):
    return CatalogVariant(entry_id=entry_id, variant_id=entry_id * 10)


def _fill(planner, content_set_id, entry_ids):
    view = None
    for entry_id in entry_ids:
        view = planner.add_content_item(content_set_id, _variant(entry_id), unfamiliar=False)
    return view


def _entries(view):
    return [item.catalog_entry_id for item in view.items]


def _positions(view):
    return [item.position for item in view.items]


def test_append_assigns_next_position(planner, world):
    """Test that direct adds append at 1, 2, 3."""
    view = _fill(planner, world[1], [11, 12, 13])
    assert _positions(view) == [1, 2, 3]
    assert _entries(view) == [11, 12, 13]


def test_remove_middle_item_compacts_tail(planner, world):
    """Removing position 2 of 4 renumbers the former {1,3,4} to {1,2,3}."""
    view = _fill(planner, world[1], [11, 12, 13, 14])
    second = view.items[1]

    view = planner.remove_content_item(second.id)

    assert _entries(view) == [11, 13, 14]
    assert _positions(view) == [1, 2, 3]


def test_remove_last_remaining_item_leaves_empty_set(planner, world):
    view = _fill(planner, world[1], [11])
    view = planner.remove_content_item(view.items[0].id)
    assert view.items == []

    # The empty set still accepts a fresh append at position 1
    view = _fill(planner, world[1], [12])
    assert _positions(view) == [1]


def test_remove_unknown_item_is_not_found(planner, world):
    with pytest.raises(NotFoundError):
        planner.remove_content_item(999)


def test_insert_after_position_shifts_successors(planner, world):
    """Test shift-then-insert in the middle of the list."""
    _fill(planner, world[1], [11, 12, 13])

    view = planner.add_content_item(world[1], _variant(19), unfamiliar=False, after_position=1)

    assert _entries(view) == [11, 19, 12, 13]
    assert _positions(view) == [1, 2, 3, 4]


def test_insert_at_front(planner, world):
    _fill(planner, world[1], [11, 12])
    view = planner.add_content_item(world[1], _variant(19), unfamiliar=False, after_position=0)
    assert _entries(view) == [19, 11, 12]
    assert _positions(view) == [1, 2, 3]


def test_insert_after_current_max_appends(planner, world):
    _fill(planner, world[1], [11, 12])
    view = planner.add_content_item(world[1], _variant(19), unfamiliar=False, after_position=2)
    assert _entries(view) == [11, 12, 19]


def test_insert_out_of_range_is_rejected_without_changes(planner, world):
    before = _fill(planner, world[1], [11, 12])

    with pytest.raises(InvalidOrderError):
        planner.add_content_item(world[1], _variant(19), unfamiliar=False, after_position=5)
    with pytest.raises(InvalidOrderError):
        planner.add_content_item(world[1], _variant(19), unfamiliar=False, after_position=-1)

    after = planner.get_content_set(world[1])
    assert _entries(after) == [11, 12]
    assert after.revision == before.revision


def test_reorder_applies_permutation(planner, world):
    view = _fill(planner, world[1], [11, 12, 13])
    ids = [item.id for item in view.items]

    view = planner.reorder_content_items(world[1], list(reversed(ids)))

    assert _entries(view) == [13, 12, 11]
    assert _positions(view) == [1, 2, 3]


@pytest.mark.parametrize(
    "make_order",
    [
        lambda ids: ids[:-1],  # missing one
        lambda ids: ids + [999],  # unknown ID
        lambda ids: [ids[0], ids[0], ids[1]],  # repeated
        lambda ids: [],
    ],
)
def test_reorder_rejects_wrong_membership(planner, world, make_order):
    view = _fill(planner, world[1], [11, 12, 13])
    ids = [item.id for item in view.items]

    with pytest.raises(InvalidOrderError):
        planner.reorder_content_items(world[1], make_order(ids))

    assert _entries(planner.get_content_set(world[1])) == [11, 12, 13]


def test_reorder_unknown_set_is_not_found(planner, world):
    with pytest.raises(NotFoundError):
        planner.reorder_content_items(999, [])


def test_positions_stay_dense_across_mixed_operations(planner, world, db_session):
    """Density holds after every add/remove/reorder in a mixed sequence."""
    cs = world[1]

    def check():
        items = ContentSetRepository.items(db_session, cs)
        assert positions_are_dense(items)
        db_session.rollback()

    view = _fill(planner, cs, [11, 12, 13, 14, 15])
    check()
    planner.remove_content_item(view.items[0].id)
    check()
    view = planner.add_content_item(cs, _variant(16), unfamiliar=False, after_position=2)
    check()
    planner.reorder_content_items(cs, [i.id for i in reversed(view.items)])
    check()
    view = planner.get_content_set(cs)
    planner.remove_content_item(view.items[-1].id)
    check()
    planner.remove_content_item(view.items[2].id)
    check()

    assert len(planner.get_content_set(cs).items) == 3


def test_revision_increases_with_each_mutation(planner, world):
    first = _fill(planner, world[2], [11])
    second = _fill(planner, world[2], [12])
    third = planner.reorder_content_items(world[2], [i.id for i in reversed(second.items)])
    assert first.revision < second.revision < third.revision

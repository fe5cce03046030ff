"""Tests for database setup helpers."""

from datetime import date

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from worship_scheduler.domain.db import create_db_engine, get_session, init_database, reset_database
from worship_scheduler.domain.models import ContentItem, Event, Participant
from worship_scheduler.domain.repositories import EventRepository


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'setup.db'}"


def test_init_database_creates_tables(db_url):
    engine = init_database(db_url)
    tables = set(inspect(engine).get_table_names())
    assert {
        "participants",
        "participant_roles",
        "events",
        "content_sets",
        "content_items",
        "contribution_slots",
        "contributions",
        "rotation_entries",
        "role_fulfillments",
    } <= tables
    engine.dispose()


def test_sqlite_foreign_keys_are_enforced(db_url):
    init_database(db_url).dispose()
    session = get_session(db_url)
    try:
        session.add(ContentItem(content_set_id=999, position=1, catalog_entry_id=1, variant_id=1))
        with pytest.raises(IntegrityError):
            session.flush()
    finally:
        session.rollback()
        session.close()


def test_deleting_event_cascades_to_its_set(db_url):
    init_database(db_url).dispose()
    session = get_session(db_url)
    event = EventRepository.create(session, Event(id=1, category_id="sunday", event_date=date(2025, 9, 7)))
    session.commit()

    session.delete(event)
    session.commit()
    assert session.execute(text("SELECT COUNT(*) FROM content_sets")).scalar_one() == 0
    session.close()


def test_reset_database_drops_data(db_url):
    init_database(db_url).dispose()
    session = get_session(db_url)
    session.add(Participant(id=1, name="Ava"))
    session.commit()
    session.close()

    reset_database(db_url)

    engine = create_db_engine(db_url)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM participants")).scalar_one() == 0
    engine.dispose()

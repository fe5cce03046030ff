"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta

import pytest

from worship_scheduler.config import EngineConfig
from worship_scheduler.domain.db import create_db_engine, get_session_factory
from worship_scheduler.domain.models import Base, Event, Participant, RotationEntry
from worship_scheduler.domain.repositories import (
    ContentSetRepository,
    EventRepository,
    ParticipantRepository,
)
from worship_scheduler.engine.planner import ServicePlanner

FIRST_SUNDAY = date(2025, 9, 7)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def seed_world(session_factory):
    """
    Three leaders (1-3) in the "lead" rotation, one vocalist (4), and four
    weekly Sunday events, each with its empty content set.

    Returns:
        dict of event_id -> content_set_id
    """
    session = session_factory()
    people = [
        (1, "Ava", ["lead"]),
        (2, "Ben", ["lead"]),
        (3, "Cal", ["lead", "keys"]),
        (4, "Dee", ["vocals"]),
    ]
    for pid, name, roles in people:
        ParticipantRepository.create(session, Participant(id=pid, name=name), roles)
    for event_id in range(1, 5):
        EventRepository.create(
            session,
            Event(id=event_id, category_id="sunday", event_date=FIRST_SUNDAY + timedelta(weeks=event_id - 1)),
        )
    for order, pid in enumerate([1, 2, 3], start=1):
        session.add(RotationEntry(role_category_id="lead", participant_id=pid, rotation_order=order))
    session.commit()
    sets = {event_id: ContentSetRepository.get_by_event(session, event_id).id for event_id in range(1, 5)}
    session.close()
    return sets


@pytest.fixture
def engine():
    """In-memory database with all tables."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    """Create in-memory database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cfg():
    return EngineConfig()


@pytest.fixture
def planner(session_factory, cfg):
    return ServicePlanner(session_factory, cfg)


@pytest.fixture
def world(session_factory):
    return seed_world(session_factory)

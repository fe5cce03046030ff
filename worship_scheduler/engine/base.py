"""Base class for engine components that own a transaction per operation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session, sessionmaker

from worship_scheduler.config import EngineConfig
from worship_scheduler.errors import EngineError, StorageUnavailableError

logger = logging.getLogger(__name__)


class EngineComponent:
    """
    Shared plumbing for the engine's stateless components.

    Each public operation opens its own session, so components are safe to
    share between request handlers. Mutations run inside transaction();
    read-only queries run inside reading() and never commit.
    """

    name: str = "engine"

    def __init__(self, session_factory: sessionmaker, cfg: EngineConfig | None = None):
        """
        Args:
            session_factory: SQLAlchemy sessionmaker bound to the backing store
            cfg: EngineConfig with caps and thresholds (defaults if omitted)
        """
        self.session_factory = session_factory
        self.cfg = cfg or EngineConfig()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Run a block as one all-or-nothing unit.

        Commits on success and rolls back on any exception. Storage-layer
        failures are re-raised as StorageUnavailableError.
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except EngineError as e:
            session.rollback()
            logger.warning("%s: %s rejected: %s", self.name, e.kind, e.message)
            raise
        except (sa_exc.DBAPIError, sa_exc.TimeoutError) as e:
            session.rollback()
            logger.warning("%s: storage failure: %s", self.name, e)
            raise StorageUnavailableError(f"Storage unavailable: {e}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def reading(self) -> Iterator[Session]:
        """Open a session for read-only work; nothing is committed."""
        session = self.session_factory()
        try:
            yield session
        except (sa_exc.DBAPIError, sa_exc.TimeoutError) as e:
            logger.warning("%s: storage failure on read: %s", self.name, e)
            raise StorageUnavailableError(f"Storage unavailable: {e}") from e
        finally:
            session.close()

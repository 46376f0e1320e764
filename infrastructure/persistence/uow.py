# infrastructure/persistence/uow.py

"""
Unit of Work for the Graph NLP Platform.

Wraps one SQLAlchemy session per store operation: the session commits when
the block exits cleanly and rolls back otherwise. Database errors surface as
``RepositoryError``.

Key Features:
- Context manager with session cleanup on every exit path
- Integrity violations and driver errors mapped to domain exceptions
- Transaction lifecycle logging

Author: Graph NLP Platform
Date: 2026
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from domain.repositories import RepositoryError

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """
    Transaction scope over a session created from ``session_factory``.

    Usage:
        with SqlAlchemyUnitOfWork(session_factory) as uow:
            uow.session.add(model)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self.session: Optional[Session] = None
        self._is_committed = False
        self._is_rolled_back = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def is_active(self) -> bool:
        return self.session is not None and not (self._is_committed or self._is_rolled_back)

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self._session_factory()
        self._is_committed = False
        self._is_rolled_back = False
        self.logger.debug(f"Entering UnitOfWork context - session {id(self.session)}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self.logger.warning(f"Exception in UnitOfWork context: {exc_type.__name__}: {exc_val}")
                self.rollback()
            else:
                self.commit()
        finally:
            self.session.close()
            self.session = None

    def commit(self) -> None:
        """
        Commit the pending operations.

        Raises:
            RepositoryError: If the commit fails; the transaction is rolled back
        """
        if not self.is_active:
            return
        try:
            self.session.commit()
            self._is_committed = True
        except IntegrityError as e:
            self.logger.error(f"Integrity constraint violation during commit: {e}")
            self.rollback()
            raise RepositoryError(f"Data integrity violation: {e}")
        except SQLAlchemyError as e:
            self.logger.error(f"SQLAlchemy error during commit: {e}")
            self.rollback()
            raise RepositoryError(f"Database commit failed: {e}")

    def rollback(self) -> None:
        if not self.is_active:
            return
        try:
            self.session.rollback()
            self._is_rolled_back = True
        except SQLAlchemyError as e:
            self.logger.error(f"SQLAlchemy error during rollback: {e}")
            raise RepositoryError(f"Database rollback failed: {e}")


@contextmanager
def unit_of_work_context(session_factory: Callable[[], Session]) -> Iterator[Session]:
    """
    Yield a session whose work commits on success.

    Example:
        with unit_of_work_context(session_factory) as session:
            session.add(ConfigurationEntryModel(key="SETTING_x", value=1))
    """
    with SqlAlchemyUnitOfWork(session_factory) as uow:
        try:
            yield uow.session
        except SQLAlchemyError as e:
            logger.error(f"Database error in unit of work: {e}")
            raise RepositoryError(f"Database operation failed: {e}") from e

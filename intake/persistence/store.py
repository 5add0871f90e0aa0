"""Row-level store used by ingestion and the retry queue.

The store exposes exactly three statements: insert, update and an
equality-filtered select. Each one is atomic on its own; nothing here
spans statements, so callers that read and then write must cope with
concurrent writers themselves (see intake.ingestion).

RecordStore is the protocol the core depends on. SQLAlchemyStore is the
production implementation on top of a session from get_session().
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from .database import get_session
from .exceptions import (
    ConstraintViolationError,
    PersistenceError,
    StoreUnavailableError,
)
from .schema import get_model

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RecordStore(Protocol):
    """Minimal relational store the ingestion core runs against."""

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert a row and return it with generated columns filled in.

        Raises:
            ConstraintViolationError: A uniqueness constraint rejected the row
            StoreUnavailableError: The store cannot be reached
        """
        ...

    def update(self, table: str, key: Mapping[str, Any], fields: Mapping[str, Any]) -> int:
        """Set ``fields`` on every row matching ``key``; return the affected count."""
        ...

    def select(
        self,
        table: str,
        predicate: Mapping[str, Any],
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Return rows whose columns equal every value in ``predicate``."""
        ...


class SQLAlchemyStore:
    """RecordStore backed by a SQLAlchemy session.

    The store flushes but never commits; the owning get_session() scope
    decides when the transaction ends. Inserts run inside a SAVEPOINT so a
    constraint violation leaves the surrounding transaction usable for the
    re-read that follows it.
    """

    def __init__(self, session: Session):
        """Initialize store with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        model = get_model(table)
        self._check_columns(model, row)

        try:
            with self.session.begin_nested():
                instance = model(**row)
                self.session.add(instance)
            return instance.to_row()
        except SQLAlchemyError as e:
            self._raise_translated(e, "insert into", table)

    def update(self, table: str, key: Mapping[str, Any], fields: Mapping[str, Any]) -> int:
        model = get_model(table)
        self._check_columns(model, key)
        self._check_columns(model, fields)

        if not key:
            raise PersistenceError(f"Refusing to update {table} without a key")

        try:
            stmt = (
                update(model)
                .where(*self._conditions(model, key))
                .values(**fields)
                .execution_options(synchronize_session="fetch")
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            self._raise_translated(e, "update", table)

    def select(
        self,
        table: str,
        predicate: Mapping[str, Any],
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Equality-filtered select.

        ``order_by`` names a column; prefix it with ``-`` for descending.
        """
        model = get_model(table)
        self._check_columns(model, predicate)

        stmt = select(model).where(*self._conditions(model, predicate))

        if order_by:
            descending = order_by.startswith("-")
            column_name = order_by.lstrip("-")
            self._check_columns(model, {column_name: None})
            column = getattr(model, column_name)
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            instances = self.session.execute(stmt).scalars().all()
            return [instance.to_row() for instance in instances]
        except SQLAlchemyError as e:
            self._raise_translated(e, "select from", table)

    @staticmethod
    def _conditions(model, predicate: Mapping[str, Any]) -> list:
        return [getattr(model, column) == value for column, value in predicate.items()]

    @staticmethod
    def _check_columns(model, values: Mapping[str, Any]) -> None:
        known = set(model.__table__.columns.keys())
        unknown = sorted(set(values) - known)
        if unknown:
            raise PersistenceError(
                f"Unknown column(s) for {model.__tablename__}: {', '.join(unknown)}"
            )

    @staticmethod
    def _raise_translated(error: SQLAlchemyError, action: str, table: str) -> None:
        """Re-raise a SQLAlchemy error as the matching persistence exception."""
        if isinstance(error, IntegrityError):
            logger.debug(f"Constraint violation on {action} {table}: {error.orig}")
            raise ConstraintViolationError(
                f"Failed to {action} {table} due to constraint violation: {error.orig}"
            ) from error

        if isinstance(error, (OperationalError, InterfaceError)) or (
            isinstance(error, DBAPIError) and error.connection_invalidated
        ):
            logger.error(f"Store unavailable during {action} {table}: {error}", exc_info=True)
            raise StoreUnavailableError(f"Failed to {action} {table}: {error}") from error

        logger.error(f"Error during {action} {table}: {error}", exc_info=True)
        raise PersistenceError(f"Failed to {action} {table}: {error}") from error


@contextmanager
def session_store() -> Iterator[SQLAlchemyStore]:
    """Open a get_session() scope and yield a store bound to it.

    Everything done through the store commits together when the block
    exits cleanly.
    """
    with get_session() as session:
        yield SQLAlchemyStore(session)

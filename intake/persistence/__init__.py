"""Persistence layer: engine/session management and the row store.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Store
    - RecordStore: protocol the ingestion core depends on
    - SQLAlchemyStore: RecordStore over a SQLAlchemy session
    - session_store() -> ContextManager[SQLAlchemyStore]

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - StoreUnavailableError: Database unreachable or not initialised
    - RecordNotFoundError: Required row not found
    - ConstraintViolationError: Uniqueness or other constraint rejected a write

Example usage:
    >>> from intake.persistence import init_database, get_session, SQLAlchemyStore
    >>>
    >>> init_database("sqlite:///./data/intake.db")
    >>>
    >>> with get_session() as session:
    ...     store = SQLAlchemyStore(session)
    ...     rows = store.select("newsletter_subscriptions", {"email": "a@b.com"})
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    ConstraintViolationError,
    PersistenceError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from .store import RecordStore, SQLAlchemyStore, session_store

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Store
    "RecordStore",
    "SQLAlchemyStore",
    "session_store",
    # Exceptions
    "PersistenceError",
    "StoreUnavailableError",
    "RecordNotFoundError",
    "ConstraintViolationError",
]

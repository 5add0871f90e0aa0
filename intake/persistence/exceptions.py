"""Persistence layer exceptions.

Every store failure is raised as a PersistenceError subclass so callers
can catch the whole family with one except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class StoreUnavailableError(PersistenceError):
    """Raised when the database cannot be reached.

    Examples:
    - Database not initialised (init_database() never called)
    - Invalid database URL or unreachable server
    - Connection dropped mid-statement
    - Database file locked or not writable
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an operation addresses a row that does not exist.

    Lookups return empty results instead; this is only raised by operations
    that need the row to be there (e.g. marking a queued email as sent).
    """

    pass


class ConstraintViolationError(PersistenceError):
    """Raised when an insert or update breaks a database constraint.

    For natural-key tables this usually means a concurrent writer inserted
    the same key first. Ingestion recovers from it by re-reading the row.
    """

    pass

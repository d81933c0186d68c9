"""Persistence layer exceptions.

Everything raised by the persistence layer derives from PersistenceError, so
the dedup engine and scoring stage can skip a failing record with a single
except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Database URL invalid, unreachable, or not yet initialized."""


class RecordNotFoundError(PersistenceError):
    """A record the operation requires does not exist.

    Optional lookups return None instead of raising this.
    """


class DataIntegrityError(PersistenceError):
    """A constraint was violated.

    Most commonly the (external_id, source_name) unique constraint, when a
    posting was inserted between our existence check and our insert.
    """

"""Exception hierarchy for the paper catalog pipeline.

- Base exception for all paperwatch errors
- Row-level schema errors raised by the normalizer (recoverable)
- Reconciliation errors (fatal to the cycle)
- Persistence errors for catalog, ledger and candidate files (fatal)

All exceptions inherit from PaperwatchError to allow catching every
pipeline-related error in a single except block when needed.
"""

from typing import Optional


class PaperwatchError(Exception):
    """Base exception for all paperwatch errors

    Use this to catch any error raised by a reconciliation cycle:
    ```python
    try:
        cycle.run()
    except PaperwatchError as e:
        logger.error("cycle_failed", error=str(e))
    ```
    """

    pass


class SchemaError(PaperwatchError):
    """A candidate row cannot be projected into a canonical record

    Raised when:
    - A required field (id, title, publication_date) is missing or blank
    - The publication date cannot be parsed

    Recovered by dropping the single row; the batch continues.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        field: Optional[str] = None,
        row_index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.field = field
        self.row_index = row_index


class ReconciliationError(PaperwatchError):
    """Reconciliation of a fetch against the catalog cannot proceed"""

    pass


class NoDataError(ReconciliationError):
    """Both the new fetch and the previous catalog are empty

    Nothing is safe to persist; the caller must abort the cycle
    without touching the persisted catalog.
    """

    pass


class DuplicateRecordError(ReconciliationError):
    """An input table carries the same id more than once"""

    def __init__(self, message: str, ids: Optional[list] = None) -> None:
        super().__init__(message)
        self.ids = ids or []


class PersistenceError(PaperwatchError):
    """Catalog, ledger or candidate file cannot be read or written

    Raised when:
    - A persisted file is unreadable or malformed
    - The atomic replace of a file fails

    The previously persisted file is always left untouched.
    """

    pass


class LockError(PersistenceError):
    """Another process holds the run lock"""

    pass


class ConfigValidationError(PaperwatchError):
    """Configuration validation failed"""

    pass

"""Catalog Store: CSV persistence for catalog and candidate tables.

Every write goes through a temporary file in the target directory that is
fsynced and then atomically renamed over the destination, so an
interrupted run never leaves a partially written table and the previous
file stays untouched on failure.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union
import structlog
from pydantic import ValidationError

from paperwatch.models.record import (
    CANDIDATE_COLUMNS,
    CATALOG_COLUMNS,
    CandidateRecord,
    Record,
)
from paperwatch.utils.exceptions import PersistenceError

logger = structlog.get_logger()

PathLike = Union[str, Path]


def atomic_write_csv(
    path: PathLike,
    columns: Sequence[str],
    rows: Iterable[Mapping[str, str]],
    delimiter: str = ",",
) -> None:
    """Write rows to a CSV file atomically.

    Uses temporary file + rename pattern to prevent corruption.

    Raises:
        PersistenceError: If the file cannot be written. The previous
            file, if any, is left untouched.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.stem}_",
            suffix=".tmp",
        )
    except OSError as e:
        raise PersistenceError(f"Cannot prepare write of {target}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(columns), delimiter=delimiter)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, target)
    except Exception as e:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        logger.error("table_write_failed", path=str(target), error=str(e))
        raise PersistenceError(f"Cannot write {target}: {e}") from e

    logger.debug("table_written", path=str(target))


def read_csv_rows(path: PathLike, delimiter: str = ",") -> List[Dict[str, str]]:
    """Read a CSV/TSV file into a list of row dicts.

    A leading byte-order mark, as spreadsheet exports write, is dropped.

    Raises:
        PersistenceError: If the file cannot be read or decoded.
    """
    source = Path(path)
    try:
        with open(source, "r", encoding="utf-8-sig", newline="") as f:
            return list(csv.DictReader(f, delimiter=delimiter))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise PersistenceError(f"Cannot read {source}: {e}") from e


def _cell(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def record_to_row(record: CandidateRecord, columns: Sequence[str]) -> Dict[str, str]:
    """Render a record as a CSV row restricted to ``columns``."""
    return {c: record.rendered(c) for c in columns}


def row_to_record(row: Mapping[str, Optional[str]]) -> Record:
    """Parse a persisted catalog row.

    Raises:
        ValidationError: If the row does not describe a valid record.
    """
    return Record(**{c: _cell(row.get(c)) for c in CATALOG_COLUMNS})


def row_to_candidate(row: Mapping[str, Optional[str]]) -> CandidateRecord:
    """Parse a persisted candidate row (e.g. a to-notify table)."""
    return CandidateRecord(**{c: _cell(row.get(c)) for c in CANDIDATE_COLUMNS})


class CatalogStore:
    """Persisted catalog: the source of truth across runs."""

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[List[Record]]:
        """Load the persisted catalog.

        Returns:
            The catalog records, or None when no catalog exists yet
            (first run).

        Raises:
            PersistenceError: If the file is unreadable or any row is
                malformed.
        """
        if not self.path.exists():
            logger.info("catalog_absent", path=str(self.path))
            return None

        rows = read_csv_rows(self.path)
        records: List[Record] = []
        for index, row in enumerate(rows):
            try:
                records.append(row_to_record(row))
            except (ValidationError, TypeError) as e:
                logger.error(
                    "catalog_row_invalid",
                    path=str(self.path),
                    row_index=index,
                    error=str(e),
                )
                raise PersistenceError(
                    f"Catalog {self.path} row {index} is malformed: {e}"
                ) from e

        logger.info("catalog_loaded", path=str(self.path), records=len(records))
        return records

    def save(self, records: Sequence[Record]) -> None:
        """Persist the catalog atomically.

        Raises:
            PersistenceError: If the write fails.
        """
        atomic_write_csv(
            self.path,
            CATALOG_COLUMNS,
            (record_to_row(r, CATALOG_COLUMNS) for r in records),
        )
        logger.info("catalog_saved", path=str(self.path), records=len(records))


def write_candidates(path: PathLike, records: Sequence[CandidateRecord]) -> None:
    """Write a candidate-shaped table (header only when empty)."""
    atomic_write_csv(
        path,
        CANDIDATE_COLUMNS,
        (record_to_row(r, CANDIDATE_COLUMNS) for r in records),
    )


def read_candidates(path: PathLike) -> List[CandidateRecord]:
    """Read a candidate-shaped table.

    Raises:
        PersistenceError: If the file is unreadable or a row is malformed.
    """
    records: List[CandidateRecord] = []
    for index, row in enumerate(read_csv_rows(path)):
        try:
            records.append(row_to_candidate(row))
        except (ValidationError, TypeError) as e:
            raise PersistenceError(f"{path} row {index} is malformed: {e}") from e
    return records

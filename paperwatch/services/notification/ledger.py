"""Notification-Dedup Ledger.

The ledger is an append-only set of ids that were already announced. It is
independent of the catalog's status field and is never pruned, so a paper
that expires from the catalog and is later re-fetched as NEW is still not
announced twice.

Usage:
    from paperwatch.services.notification.ledger import LedgerStore, to_notify

    store = LedgerStore("data/notified.csv")
    pending = to_notify(catalog, store.load())
    if notifier.send(pending):
        store.append_ids(r.id for r in pending)
"""

from pathlib import Path
from typing import FrozenSet, Iterable, List, Sequence, Union
import structlog

from paperwatch.models.record import Record, RecordStatus
from paperwatch.services.catalog_store import atomic_write_csv, read_csv_rows
from paperwatch.utils.exceptions import PersistenceError

logger = structlog.get_logger()

LEDGER_COLUMN = "id"


def to_notify(catalog: Sequence[Record], ledger: FrozenSet[str]) -> List[Record]:
    """Records to announce: status NEW and id absent from the ledger.

    UPDATED records are not re-announced.

    Args:
        catalog: Reconciled, retained catalog.
        ledger: Ids already notified.

    Returns:
        Matching records in catalog order.
    """
    pending = [
        r for r in catalog if r.status == RecordStatus.NEW and r.id not in ledger
    ]
    skipped = sum(
        1 for r in catalog if r.status == RecordStatus.NEW and r.id in ledger
    )
    logger.info(
        "to_notify_computed",
        pending=len(pending),
        already_notified=skipped,
    )
    return pending


def append(ledger: FrozenSet[str], ids: Iterable[str]) -> FrozenSet[str]:
    """Return a new ledger with ``ids`` added."""
    return ledger | frozenset(ids)


class LedgerStore:
    """File-backed ledger persisted as a one-column CSV."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> FrozenSet[str]:
        """Load the ledger; an absent file is an empty ledger.

        Raises:
            PersistenceError: If the file is unreadable or lacks the id column.
        """
        if not self.path.exists():
            logger.info("ledger_absent", path=str(self.path))
            return frozenset()

        rows = read_csv_rows(self.path)
        if rows and LEDGER_COLUMN not in rows[0]:
            raise PersistenceError(
                f"Ledger {self.path} has no '{LEDGER_COLUMN}' column"
            )

        ledger = frozenset(
            (row.get(LEDGER_COLUMN) or "").strip()
            for row in rows
            if (row.get(LEDGER_COLUMN) or "").strip()
        )
        logger.debug("ledger_loaded", path=str(self.path), entries=len(ledger))
        return ledger

    def append_ids(self, ids: Iterable[str]) -> FrozenSet[str]:
        """Append ids after a successful send.

        All-or-nothing: the whole ledger is rewritten through an atomic
        replace, so either every id is persisted or the previous file
        remains as it was.

        Args:
            ids: Ids that were just notified.

        Returns:
            The updated ledger.

        Raises:
            PersistenceError: If the ledger cannot be read or written.
        """
        new_ids = frozenset(i.strip() for i in ids if i and i.strip())
        current = self.load()

        if not new_ids:
            logger.debug("ledger_append_nothing", path=str(self.path))
            return current

        updated = append(current, new_ids)
        atomic_write_csv(
            self.path,
            [LEDGER_COLUMN],
            ({LEDGER_COLUMN: i} for i in sorted(updated)),
        )

        logger.info(
            "ledger_appended",
            path=str(self.path),
            added=len(updated) - len(current),
            total=len(updated),
        )
        return updated

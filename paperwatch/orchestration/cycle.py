"""Reconciliation cycle orchestration.

One cycle: read candidate tables -> normalize -> reconcile against the
persisted catalog -> apply retention -> persist the catalog -> compute the
to-notify set against the ledger and write it for the notification
collaborator. A separate notify step hands that table to a Notifier and
appends the ids to the ledger only when the send succeeded.

Both steps hold the run lock, so the catalog and the ledger always have a
single writer.
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional
import structlog

from paperwatch.models.config import TrackerConfig
from paperwatch.models.record import CandidateRecord, Record, utc_now
from paperwatch.models.result import (
    CycleResult,
    NotifyResult,
    NotifyStatus,
    ReconcileOutcome,
)
from paperwatch.observability.context import correlation_id_context
from paperwatch.observability.metrics import (
    CATALOG_SIZE,
    CYCLE_DURATION,
    LEDGER_SIZE,
    NOTIFICATIONS,
    RECORDS_EXPIRED,
    RECORDS_RECONCILED,
    SCHEMA_ERRORS,
    write_metrics_textfile,
)
from paperwatch.services.catalog_store import (
    CatalogStore,
    read_candidates,
    write_candidates,
)
from paperwatch.services.notification.dispatch import Notifier
from paperwatch.services.notification.ledger import LedgerStore, to_notify
from paperwatch.services.reconciliation import ReconciliationEngine
from paperwatch.services.retention import expired_ids, filter_retained
from paperwatch.services.source_reader import read_sources
from paperwatch.utils.lock import RunLock

logger = structlog.get_logger()


def generate_run_id(now: datetime) -> str:
    return f"run-{now.strftime('%Y%m%d-%H%M%S')}"


class ReconciliationCycle:
    """Runs reconciliation cycles for one configured catalog.

    Attributes:
        config: Tracker configuration.
        clock: Timestamp source; captured once per cycle.
        catalog_store: Persisted catalog.
        ledger_store: Notification ledger.
    """

    def __init__(
        self,
        config: TrackerConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.clock = clock
        self.catalog_store = CatalogStore(config.catalog_path)
        self.ledger_store = LedgerStore(config.ledger_path)
        self.to_notify_path = Path(config.to_notify_path)
        self.lock_path = Path(f"{config.catalog_path}.lock")

    def run(self, run_id: Optional[str] = None) -> CycleResult:
        """Execute one reconciliation cycle.

        Args:
            run_id: Correlation id; generated from the clock if None.

        Returns:
            CycleResult summarizing the cycle.

        Raises:
            NoDataError: If there are no candidates and no catalog. No
                file is written.
            PersistenceError: If a table cannot be read or written, or the
                run lock is held. Previously persisted files stay intact.
        """
        now = self.clock()
        run_id = run_id or generate_run_id(now)
        started = time.monotonic()

        with correlation_id_context(run_id), RunLock(self.lock_path):
            logger.info(
                "cycle_started",
                run_id=run_id,
                sources=len(self.config.sources),
            )
            result = self._run_locked(run_id, now)

        CYCLE_DURATION.observe(time.monotonic() - started)
        self._export_metrics()
        return result

    def _run_locked(self, run_id: str, now: datetime) -> CycleResult:
        summary = CycleResult(run_id=run_id, started_at=now)

        # 1. Candidates
        results, absent = read_sources(self.config.sources)
        candidates: List[CandidateRecord] = []
        for normalized in results:
            candidates.extend(normalized.records)
            summary.sources_read.append(normalized.source)
            summary.schema_errors[normalized.source] = normalized.error_count
            if normalized.error_count:
                SCHEMA_ERRORS.labels(source=normalized.source).inc(
                    normalized.error_count
                )
        summary.candidates = len(candidates)

        if absent:
            logger.warning("cycle_sources_absent", sources=absent)

        # 2. Everything that can fail on read happens before any write
        previous = self.catalog_store.load()
        ledger = self.ledger_store.load()

        # 3. Reconcile, then retention
        engine = ReconciliationEngine(
            comparison_columns=self.config.comparison_columns,
            clock=lambda: now,
        )
        reconciled = engine.reconcile(candidates or None, previous)
        expired = expired_ids(reconciled.catalog, self.config.retention_days, now)
        catalog = filter_retained(reconciled.catalog, self.config.retention_days, now)

        # 4. Persist
        self.catalog_store.save(catalog)
        pending = to_notify(catalog, ledger)
        write_candidates(self.to_notify_path, self._notification_order(pending))

        # 5. Summary and metrics
        summary.new = reconciled.count(ReconcileOutcome.NEW)
        summary.updated = reconciled.count(ReconcileOutcome.UPDATED)
        summary.disappeared = reconciled.count(ReconcileOutcome.DISAPPEARED)
        summary.unchanged = reconciled.count(ReconcileOutcome.UNCHANGED)
        summary.expired = len(expired)
        summary.catalog_size = len(catalog)
        summary.to_notify_ids = [r.id for r in pending]
        summary.finished_at = self.clock()

        for outcome in ReconcileOutcome:
            RECORDS_RECONCILED.labels(outcome=outcome.value).inc(
                reconciled.count(outcome)
            )
        RECORDS_EXPIRED.inc(len(expired))
        CATALOG_SIZE.set(len(catalog))
        LEDGER_SIZE.set(len(ledger))

        logger.info(
            "cycle_completed",
            run_id=run_id,
            candidates=summary.candidates,
            schema_errors=summary.total_schema_errors,
            new=summary.new,
            updated=summary.updated,
            disappeared=summary.disappeared,
            unchanged=summary.unchanged,
            expired=summary.expired,
            catalog_size=summary.catalog_size,
            to_notify=len(pending),
        )
        return summary

    def notify(self, notifier: Notifier) -> NotifyResult:
        """Hand the pending to-notify table to a notifier.

        Ids already in the ledger are filtered out again before sending,
        so calling notify twice never announces a paper twice. The ledger
        is appended only when the notifier reports success.

        Args:
            notifier: The notification collaborator.

        Returns:
            NotifyResult with the status and the ids appended to the ledger.

        Raises:
            PersistenceError: If the table or ledger cannot be read or
                written, or the run lock is held.
        """
        with RunLock(self.lock_path):
            result = self._notify_locked(notifier)

        NOTIFICATIONS.labels(status=result.status.value).inc()
        self._export_metrics()
        return result

    def _notify_locked(self, notifier: Notifier) -> NotifyResult:
        if not self.to_notify_path.exists():
            logger.info("notify_no_table", path=str(self.to_notify_path))
            return NotifyResult(status=NotifyStatus.EMPTY)

        ledger = self.ledger_store.load()
        table = read_candidates(self.to_notify_path)
        pending = [r for r in table if r.id not in ledger]

        if not pending:
            logger.info("notify_nothing_pending", table_rows=len(table))
            return NotifyResult(status=NotifyStatus.EMPTY)

        if len(pending) != len(table):
            # The collaborator reads the table, so it must not list
            # papers that were announced already
            write_candidates(self.to_notify_path, pending)
            logger.info(
                "notify_table_filtered",
                dropped=len(table) - len(pending),
                pending=len(pending),
            )

        if not notifier.send(pending):
            logger.error("notify_send_failed", records=len(pending))
            return NotifyResult(status=NotifyStatus.FAILED, pending=len(pending))

        ids = [r.id for r in pending]
        updated = self.ledger_store.append_ids(ids)
        LEDGER_SIZE.set(len(updated))
        logger.info("notify_completed", notified=len(ids))
        return NotifyResult(
            status=NotifyStatus.SENT, notified_ids=ids, pending=len(pending)
        )

    def mark_notified(self, ids: Iterable[str]) -> List[str]:
        """Append ids sent by an out-of-band notification to the ledger.

        Returns:
            The ids that were not yet in the ledger.
        """
        with RunLock(self.lock_path):
            before = self.ledger_store.load()
            after = self.ledger_store.append_ids(ids)
            LEDGER_SIZE.set(len(after))
        return sorted(after - before)

    @staticmethod
    def _notification_order(records: List[Record]) -> List[Record]:
        """Most recently published first, as the announcement lists them."""
        by_id = sorted(records, key=lambda r: r.id)
        return sorted(by_id, key=lambda r: r.publication_date, reverse=True)

    def _export_metrics(self) -> None:
        if self.config.metrics_path:
            write_metrics_textfile(self.config.metrics_path)

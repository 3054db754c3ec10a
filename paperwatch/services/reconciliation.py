"""Reconciliation Engine.

Merges a freshly fetched candidate set against the previously persisted
catalog and produces the next catalog:

- Newly appeared ids become NEW (first_seen_at = last_changed_at = now)
- Disappeared ids become OLD with all fields retained
- Ids present in both are compared on the configured columns: any
  difference makes them UPDATED, otherwise the previous record is kept

The engine is a pure function of its inputs and its clock; it reads no
ambient process state.

Usage:
    engine = ReconciliationEngine(clock=lambda: fixed_now)
    result = engine.reconcile(candidates, previous_catalog)
    result.catalog  # next catalog
    result.outcomes  # id -> ReconcileOutcome
"""

from collections import Counter
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
import structlog

from paperwatch.models.record import (
    CANDIDATE_COLUMNS,
    DEFAULT_COMPARISON_COLUMNS,
    CandidateRecord,
    Record,
    RecordStatus,
    ensure_utc,
    utc_now,
)
from paperwatch.models.result import ReconcileOutcome, ReconcileResult
from paperwatch.utils.exceptions import DuplicateRecordError, NoDataError

logger = structlog.get_logger()

R = TypeVar("R", bound=CandidateRecord)


def sort_for_display(records: Sequence[Record]) -> List[Record]:
    """Order records by first_seen_at descending, ties by id."""
    by_id = sorted(records, key=lambda r: r.id)
    return sorted(by_id, key=lambda r: r.first_seen_at, reverse=True)


def _index_by_id(records: Sequence[R], label: str) -> Dict[str, R]:
    counts = Counter(r.id for r in records)
    duplicates = sorted(i for i, n in counts.items() if n > 1)
    if duplicates:
        raise DuplicateRecordError(
            f"{label} contains duplicate ids: {duplicates[:10]}", ids=duplicates
        )
    return {r.id: r for r in records}


class ReconciliationEngine:
    """Three-way merge of a new fetch against the previous catalog.

    Attributes:
        comparison_columns: Columns compared to detect content changes.
        clock: Timestamp source for NEW/UPDATED assignments.
    """

    def __init__(
        self,
        comparison_columns: Sequence[str] = DEFAULT_COMPARISON_COLUMNS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the engine.

        Args:
            comparison_columns: Explicit column set for change detection.
            clock: Injectable "now" source.

        Raises:
            ValueError: If a column is unknown or is "id".
        """
        columns = tuple(comparison_columns)
        if not columns:
            raise ValueError("comparison_columns cannot be empty")
        invalid = [c for c in columns if c not in CANDIDATE_COLUMNS or c == "id"]
        if invalid:
            raise ValueError(f"Invalid comparison columns: {invalid}")

        self.comparison_columns: Tuple[str, ...] = columns
        self.clock = clock

    def changed_columns(
        self, candidate: CandidateRecord, previous: CandidateRecord
    ) -> List[str]:
        """Columns whose rendered values differ between two versions."""
        return [
            c
            for c in self.comparison_columns
            if candidate.rendered(c) != previous.rendered(c)
        ]

    def reconcile(
        self,
        new_records: Optional[Sequence[CandidateRecord]],
        previous_catalog: Optional[Sequence[Record]],
    ) -> ReconcileResult:
        """Reconcile a fetch against the previous catalog.

        Args:
            new_records: Candidates of this cycle; None or empty if absent.
            previous_catalog: Persisted catalog; None or empty on first run.

        Returns:
            ReconcileResult with the next catalog and per-id outcomes.

        Raises:
            NoDataError: If both inputs are empty or absent.
            DuplicateRecordError: If an input repeats an id.
        """
        new_records = list(new_records or [])
        previous_catalog = list(previous_catalog or [])

        if not new_records and not previous_catalog:
            raise NoDataError("Both the new fetch and the previous catalog are empty")

        now = ensure_utc(self.clock())
        incoming = _index_by_id(new_records, "new fetch")
        previous = _index_by_id(previous_catalog, "previous catalog")

        catalog: List[Record] = []
        outcomes: Dict[str, ReconcileOutcome] = {}

        if not incoming:
            # Total fetch absence usually means a fetch failure, not that
            # every paper disappeared: statuses are left untouched.
            logger.warning(
                "reconcile_no_new_records",
                previous=len(previous),
                action="catalog_passed_through",
            )
            for record in previous_catalog:
                catalog.append(record)
                outcomes[record.id] = ReconcileOutcome.UNCHANGED
            return self._finish(catalog, outcomes, now)

        for record_id, candidate in incoming.items():
            prior = previous.get(record_id)

            if prior is None:
                catalog.append(
                    Record.from_candidate(
                        candidate,
                        status=RecordStatus.NEW,
                        first_seen_at=now,
                        last_changed_at=now,
                    )
                )
                outcomes[record_id] = ReconcileOutcome.NEW
                continue

            changed = self.changed_columns(candidate, prior)
            if changed:
                catalog.append(
                    Record.from_candidate(
                        candidate,
                        status=RecordStatus.UPDATED,
                        first_seen_at=prior.first_seen_at,
                        last_changed_at=max(now, prior.first_seen_at),
                    )
                )
                outcomes[record_id] = ReconcileOutcome.UPDATED
                logger.debug(
                    "record_updated", record_id=record_id, changed_columns=changed
                )
            else:
                catalog.append(prior)
                outcomes[record_id] = ReconcileOutcome.UNCHANGED

        for record_id, prior in previous.items():
            if record_id in incoming:
                continue
            catalog.append(prior.model_copy(update={"status": RecordStatus.OLD}))
            outcomes[record_id] = ReconcileOutcome.DISAPPEARED

        return self._finish(catalog, outcomes, now)

    def _finish(
        self,
        catalog: List[Record],
        outcomes: Dict[str, ReconcileOutcome],
        now: datetime,
    ) -> ReconcileResult:
        result = ReconcileResult(
            catalog=sort_for_display(catalog),
            outcomes=outcomes,
            reconciled_at=now,
        )
        logger.info(
            "reconcile_completed",
            total=len(result.catalog),
            new=result.count(ReconcileOutcome.NEW),
            updated=result.count(ReconcileOutcome.UPDATED),
            disappeared=result.count(ReconcileOutcome.DISAPPEARED),
            unchanged=result.count(ReconcileOutcome.UNCHANGED),
        )
        return result


def reconcile(
    new_records: Optional[Sequence[CandidateRecord]],
    previous_catalog: Optional[Sequence[Record]],
    now: Optional[datetime] = None,
    comparison_columns: Sequence[str] = DEFAULT_COMPARISON_COLUMNS,
) -> List[Record]:
    """Functional shortcut returning only the next catalog.

    Args:
        new_records: Candidates of this cycle.
        previous_catalog: Persisted catalog.
        now: Fixed timestamp; defaults to the current UTC time.
        comparison_columns: Columns compared to detect changes.

    Returns:
        The next catalog.
    """
    clock = (lambda: now) if now is not None else utc_now
    engine = ReconciliationEngine(comparison_columns=comparison_columns, clock=clock)
    return engine.reconcile(new_records, previous_catalog).catalog

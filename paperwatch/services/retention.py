"""Retention Filter.

Applies the rolling time window over a reconciled catalog. Records whose
first_seen_at falls before ``as_of - window_days`` are dropped permanently.
Always applied after reconciliation, so status transitions are computed
against the full previous catalog.
"""

from datetime import datetime, timedelta
from typing import List, Sequence
import structlog

from paperwatch.models.record import Record, ensure_utc

logger = structlog.get_logger()


def retention_cutoff(window_days: int, as_of: datetime) -> datetime:
    """Earliest first_seen_at that survives the window.

    Raises:
        ValueError: If window_days is negative.
    """
    if window_days < 0:
        raise ValueError(f"window_days must be non-negative, got {window_days}")
    return ensure_utc(as_of) - timedelta(days=window_days)


def filter_retained(
    catalog: Sequence[Record],
    window_days: int,
    as_of: datetime,
) -> List[Record]:
    """Keep exactly the records with first_seen_at >= as_of - window_days.

    Args:
        catalog: Reconciled catalog.
        window_days: Retention window in days.
        as_of: Reference time of the cycle.

    Returns:
        Retained records in their original order.
    """
    cutoff = retention_cutoff(window_days, as_of)
    retained = [r for r in catalog if r.first_seen_at >= cutoff]

    dropped = len(catalog) - len(retained)
    if dropped:
        logger.info(
            "retention_expired_records",
            dropped=dropped,
            retained=len(retained),
            cutoff=cutoff.isoformat(),
        )

    return retained


def expired_ids(
    catalog: Sequence[Record],
    window_days: int,
    as_of: datetime,
) -> List[str]:
    """Ids that filter_retained would drop, sorted."""
    cutoff = retention_cutoff(window_days, as_of)
    return sorted(r.id for r in catalog if r.first_seen_at < cutoff)

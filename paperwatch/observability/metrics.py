"""Prometheus metrics definitions for paperwatch cycles.

Defines counters, gauges, and histograms for monitoring:
- Reconciliation outcomes per cycle
- Rows dropped by the normalizer
- Retention expiry and catalog size
- Notification hand-offs

Usage:
    from paperwatch.observability.metrics import RECORDS_RECONCILED

    RECORDS_RECONCILED.labels(outcome="new").inc(3)

The batch run has no HTTP server, so metrics are exported through the
node-exporter textfile collector with write_metrics_textfile().
"""

from pathlib import Path
from typing import Union

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    generate_latest,
    write_to_textfile,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

RECORDS_RECONCILED = Counter(
    name="paperwatch_records_reconciled_total",
    documentation="Records classified by reconciliation",
    labelnames=["outcome"],  # new, updated, disappeared, unchanged
    registry=REGISTRY,
)

SCHEMA_ERRORS = Counter(
    name="paperwatch_schema_errors_total",
    documentation="Candidate rows dropped for schema errors",
    labelnames=["source"],
    registry=REGISTRY,
)

RECORDS_EXPIRED = Counter(
    name="paperwatch_records_expired_total",
    documentation="Records dropped by the retention window",
    registry=REGISTRY,
)

NOTIFICATIONS = Counter(
    name="paperwatch_notifications_total",
    documentation="Notification hand-offs by result",
    labelnames=["status"],  # sent, failed, empty
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

CATALOG_SIZE = Gauge(
    name="paperwatch_catalog_size",
    documentation="Records in the persisted catalog",
    registry=REGISTRY,
)

LEDGER_SIZE = Gauge(
    name="paperwatch_ledger_size",
    documentation="Ids in the notification ledger",
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

CYCLE_DURATION = Histogram(
    name="paperwatch_cycle_duration_seconds",
    documentation="Reconciliation cycle duration in seconds",
    buckets=(0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text exposition format."""
    return generate_latest(REGISTRY)


def write_metrics_textfile(path: Union[str, Path]) -> None:
    """Write the registry to a textfile-collector file.

    prometheus_client writes to a temporary file and renames it, so
    the collector never reads a partial file.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(target), REGISTRY)

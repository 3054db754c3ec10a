"""Observability module.

Provides:
- Correlation ID context management for cycle tracing
- Structured logging with context propagation
- Prometheus metrics exported through the textfile collector

Usage:
    from paperwatch.observability import (
        correlation_id_context,
        get_logger,
        RECORDS_RECONCILED,
    )

    with correlation_id_context("run-123"):
        logger = get_logger("cycle")
        logger.info("cycle_started")

    RECORDS_RECONCILED.labels(outcome="new").inc()
"""

from paperwatch.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
)
from paperwatch.observability.logging import (
    get_logger,
    configure_logging,
    add_correlation_id_processor,
)
from paperwatch.observability.metrics import (
    RECORDS_RECONCILED,
    SCHEMA_ERRORS,
    RECORDS_EXPIRED,
    NOTIFICATIONS,
    CATALOG_SIZE,
    LEDGER_SIZE,
    CYCLE_DURATION,
    get_metrics_text,
    write_metrics_textfile,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Logging
    "get_logger",
    "configure_logging",
    "add_correlation_id_processor",
    # Metrics
    "RECORDS_RECONCILED",
    "SCHEMA_ERRORS",
    "RECORDS_EXPIRED",
    "NOTIFICATIONS",
    "CATALOG_SIZE",
    "LEDGER_SIZE",
    "CYCLE_DURATION",
    "get_metrics_text",
    "write_metrics_textfile",
]

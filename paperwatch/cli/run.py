"""Run command: one reconciliation cycle.

Handles cycle execution and summary display.
"""

from pathlib import Path
from typing import Optional

import typer

from paperwatch.cli.utils import (
    CONFIG_OPTION,
    load_config,
    handle_errors,
    display_success,
    display_warning,
    display_info,
)
from paperwatch.models.result import CycleResult
from paperwatch.orchestration import ReconciliationCycle


@handle_errors
def run_command(
    config_path: Path = CONFIG_OPTION,
    run_id: Optional[str] = typer.Option(
        None, "--run-id", help="Correlation id for this cycle"
    ),
):
    """Reconcile fetched candidates into the catalog and write the to-notify table."""
    config = load_config(config_path)

    if not config.sources:
        display_warning("No sources configured; the catalog will be passed through.")

    display_info("Starting reconciliation cycle...")
    cycle = ReconciliationCycle(config)
    result = cycle.run(run_id=run_id)

    _display_summary(result, config.to_notify_path)


def _display_summary(result: CycleResult, to_notify_path: str) -> None:
    typer.echo(f"Run: {result.run_id}")
    typer.echo(f"Sources read: {', '.join(result.sources_read) or 'none'}")
    typer.echo(f"Candidates: {result.candidates}")

    if result.total_schema_errors:
        for source, count in sorted(result.schema_errors.items()):
            if count:
                display_warning(f"  {source}: {count} row(s) dropped (schema errors)")

    typer.echo(
        f"New: {result.new}  Updated: {result.updated}  "
        f"Old: {result.disappeared}  Unchanged: {result.unchanged}  "
        f"Expired: {result.expired}"
    )
    typer.echo(f"Catalog size: {result.catalog_size}")

    if not result.has_changes:
        display_info("No new or updated papers this cycle.")

    if result.to_notify_ids:
        display_success(
            f"{len(result.to_notify_ids)} paper(s) to notify -> {to_notify_path}"
        )
    else:
        display_info("No new papers to notify.")

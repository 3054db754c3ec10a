"""Ledger commands.

Inspect the notification ledger and record out-of-band sends.
"""

from pathlib import Path

import typer

from paperwatch.cli.utils import (
    CONFIG_OPTION,
    load_config,
    handle_errors,
    display_success,
    display_info,
)
from paperwatch.orchestration import ReconciliationCycle
from paperwatch.services.catalog_store import read_candidates
from paperwatch.services.notification import LedgerStore

ledger_app = typer.Typer(help="Inspect and update the notification ledger")


@ledger_app.command(name="show")
@handle_errors
def ledger_show(config_path: Path = CONFIG_OPTION):
    """Display the ids already notified."""
    config = load_config(config_path)
    ledger = LedgerStore(config.ledger_path).load()

    typer.echo(f"Ledger contains {len(ledger)} notified ids:")
    for record_id in sorted(ledger):
        typer.echo(f" - {record_id}")


@ledger_app.command(name="mark-sent")
@handle_errors
def ledger_mark_sent(
    table: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="To-notify CSV that was sent"
    ),
    config_path: Path = CONFIG_OPTION,
):
    """Append every id of a successfully sent to-notify table to the ledger."""
    config = load_config(config_path)
    records = read_candidates(table)

    added = ReconciliationCycle(config).mark_notified(r.id for r in records)

    if added:
        display_success(f"Added {len(added)} id(s) to the ledger.")
    else:
        display_info("All ids were already in the ledger.")

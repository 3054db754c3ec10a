"""Notify command: hand the to-notify table to the notification collaborator."""

from pathlib import Path

import typer

from paperwatch.cli.utils import (
    CONFIG_OPTION,
    load_config,
    handle_errors,
    display_error,
    display_success,
    display_info,
)
from paperwatch.models.result import NotifyStatus
from paperwatch.orchestration import ReconciliationCycle
from paperwatch.services.catalog_store import read_candidates
from paperwatch.services.notification import CommandNotifier, Notifier, NullNotifier


@handle_errors
def notify_command(
    config_path: Path = CONFIG_OPTION,
    print_only: bool = typer.Option(
        False,
        "--print-only",
        help="List the pending papers and mark them notified without sending",
    ),
):
    """Send pending papers through the configured command and update the ledger."""
    config = load_config(config_path)
    cycle = ReconciliationCycle(config)

    notifier: Notifier
    if print_only:
        table = Path(config.to_notify_path)
        if table.exists():
            for record in read_candidates(table):
                typer.echo(
                    f" - [{record.publication_date}] {record.title} ({record.id})"
                )
        notifier = NullNotifier()
    elif config.notification.command:
        notifier = CommandNotifier(
            config.notification.command,
            table_path=config.to_notify_path,
            timeout_seconds=config.notification.timeout_seconds,
        )
    else:
        display_error("No notification.command configured (use --print-only)")
        raise typer.Exit(code=1)

    result = cycle.notify(notifier)

    if result.status == NotifyStatus.SENT:
        display_success(
            f"Notified {len(result.notified_ids)} paper(s); ledger updated."
        )
    elif result.status == NotifyStatus.FAILED:
        display_error(
            f"Notification failed for {result.pending} paper(s); ledger unchanged."
        )
        raise typer.Exit(code=1)
    else:
        display_info("No papers pending notification.")

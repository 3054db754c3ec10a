"""Catalog commands.

Provides commands to view the persisted catalog.
"""

from collections import Counter
from pathlib import Path
from typing import Optional

import typer

from paperwatch.cli.utils import CONFIG_OPTION, load_config, handle_errors, display_info
from paperwatch.models.record import RecordStatus
from paperwatch.services.catalog_store import CatalogStore

# Create catalog sub-app
catalog_app = typer.Typer(help="Inspect the persisted catalog")


@catalog_app.command(name="show")
@handle_errors
def catalog_show(
    config_path: Path = CONFIG_OPTION,
    status: Optional[RecordStatus] = typer.Option(
        None, "--status", "-s", help="Only records with this status"
    ),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to show"),
):
    """Display catalog records, most recently seen first."""
    config = load_config(config_path)
    records = CatalogStore(config.catalog_path).load()

    if records is None:
        display_info(f"No catalog at {config.catalog_path} yet.")
        return

    if status is not None:
        records = [r for r in records if r.status == status]

    typer.echo(f"Catalog contains {len(records)} records:")
    for r in records[:limit]:
        typer.echo(
            f" - [{r.status.value:<7}] {r.publication_date} {r.title} ({r.id})"
        )


@catalog_app.command(name="stats")
@handle_errors
def catalog_stats(config_path: Path = CONFIG_OPTION):
    """Display record counts per status and per source."""
    config = load_config(config_path)
    records = CatalogStore(config.catalog_path).load()

    if records is None:
        display_info(f"No catalog at {config.catalog_path} yet.")
        return

    by_status = Counter(r.status.value for r in records)
    by_source = Counter(r.id.split(":", 1)[0] for r in records)

    typer.echo(f"Total records: {len(records)}")
    for s in RecordStatus:
        typer.echo(f"  {s.value}: {by_status.get(s.value, 0)}")
    typer.echo("By source:")
    for source, count in sorted(by_source.items()):
        typer.echo(f"  {source}: {count}")

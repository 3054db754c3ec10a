"""paperwatch CLI Package.

Provides the command-line interface of the paper catalog.

Usage:
    python -m paperwatch.cli run --config config/paperwatch.yaml
    python -m paperwatch.cli notify
    python -m paperwatch.cli catalog show --status NEW
    python -m paperwatch.cli ledger mark-sent data/to_notify.csv
    python -m paperwatch.cli validate config/paperwatch.yaml
"""

import typer

from paperwatch.cli.run import run_command
from paperwatch.cli.notify import notify_command
from paperwatch.cli.validate import validate_command
from paperwatch.cli.catalog import catalog_app
from paperwatch.cli.ledger import ledger_app

# Create main app
app = typer.Typer(help="paperwatch: rolling, deduplicated catalog of research papers")

# Register individual commands
app.command(name="run")(run_command)
app.command(name="notify")(notify_command)
app.command(name="validate")(validate_command)

# Register sub-applications
app.add_typer(catalog_app, name="catalog")
app.add_typer(ledger_app, name="ledger")

__all__ = [
    "app",
    "run_command",
    "notify_command",
    "validate_command",
    "catalog_app",
    "ledger_app",
]

"""Validate command for configuration files.

Validates configuration file syntax and semantics.
"""

from pathlib import Path

import typer

from paperwatch.services.config_manager import ConfigManager
from paperwatch.cli.utils import handle_errors, display_success, display_error
from paperwatch.utils.exceptions import ConfigValidationError


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(..., help="Config file to validate"),
):
    """Validate configuration file syntax and semantics."""
    try:
        manager = ConfigManager(config_path=str(config_path))
        config = manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    display_success("Configuration is valid! ✅")
    for source in config.sources:
        mapping = source.resolve_mapping()
        typer.echo(f" - {source.name}: {source.path} (ids '{mapping.id_prefix}:…')")

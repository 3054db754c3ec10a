"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Callable, TypeVar

import typer

from paperwatch.models.config import TrackerConfig
from paperwatch.observability.logging import configure_logging, get_logger
from paperwatch.services.config_manager import ConfigManager
from paperwatch.utils.exceptions import ConfigValidationError, NoDataError


# Type variable for decorator
F = TypeVar("F", bound=Callable)

EXIT_NO_DATA = 3

CONFIG_OPTION = typer.Option(
    "config/paperwatch.yaml",
    "--config",
    "-c",
    help="Path to paperwatch config YAML",
)


def load_config(config_path: Path) -> TrackerConfig:
    """Load and validate configuration, then configure logging from it.

    Args:
        config_path: Path to configuration file.

    Returns:
        Validated TrackerConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(config_path=str(config_path))
    try:
        config = config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    configure_logging(
        level=config.logging.level,
        json_output=config.logging.json_output,
    )
    return config


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    NoDataError exits with code 3 ("nothing to persist"), distinct from
    click's usage-error code 2; any other error exits with code 1.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except NoDataError as e:
            get_logger("cli").warning(
                "command_no_data", command=func.__name__, error=str(e)
            )
            display_warning(f"Nothing to do: {e}")
            raise typer.Exit(code=EXIT_NO_DATA)
        except Exception as e:
            get_logger("cli").exception("command_failed", command=func.__name__)
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)

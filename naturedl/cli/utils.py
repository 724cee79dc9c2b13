"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Callable, Optional, TypeVar

import structlog
import typer

from naturedl.services.config_manager import ConfigManager, ConfigValidationError
from naturedl.models.config import AppConfig, BrowserSettings
from naturedl.observability.logging import configure_logging

# Configure structured logging
configure_logging()
logger = structlog.get_logger()

# Type variable for decorator
F = TypeVar("F", bound=Callable)


def load_config(config_path: Optional[Path]) -> AppConfig:
    """Load and validate configuration.

    Args:
        config_path: Path to configuration file, or None for defaults.

    Returns:
        Validated AppConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(
        config_path=str(config_path) if config_path else None,
        require_file=config_path is not None,
    )
    try:
        config = config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    configure_logging(
        level=config.logging.level, json_output=config.logging.json_output
    )
    return config


def browser_settings(
    config: AppConfig, show_window: bool, no_sandbox: bool
) -> BrowserSettings:
    """Apply browser command-line flags on top of the configuration.

    Args:
        config: Loaded configuration.
        show_window: Run the browser with a visible window.
        no_sandbox: Disable the Chromium sandbox.

    Returns:
        Effective browser settings.
    """
    settings = config.browser
    if show_window:
        settings = settings.model_copy(update={"headless": False})
    if no_sandbox:
        settings = settings.model_copy(update={"sandbox": False})
    return settings


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages.

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function with error handling.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
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

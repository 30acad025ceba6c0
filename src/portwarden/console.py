"""Console and logging utilities for Portwarden."""

import logging
import os
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Shared console instances
console = Console()
error_console = Console(stderr=True)

# Debug logging - enabled by PORTWARDEN_DEBUG environment variable
DEBUG = os.getenv("PORTWARDEN_DEBUG", "").lower() in ("1", "true", "yes")


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure the ``portwarden`` logger.

    Records go to stderr through rich so stdout stays free for command
    output and the MCP stdio transport.

    Args:
        verbose: Log at DEBUG instead of WARNING
        log_file: Optional file that also receives INFO and above
    """
    level = logging.DEBUG if (verbose or DEBUG) else logging.WARNING
    root = logging.getLogger("portwarden")
    root.setLevel(logging.DEBUG)
    root.handlers.clear()
    root.propagate = False

    handler = RichHandler(console=error_console, show_path=False, rich_tracebacks=True)
    handler.setLevel(level)
    root.addHandler(handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG if (verbose or DEBUG) else logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        root.addHandler(file_handler)


def info(message: str, **kwargs: Any) -> None:
    console.print(message, **kwargs)


def plain(text: str) -> None:
    """Print pre-rendered report text without markup or highlighting."""
    console.print(text, markup=False, highlight=False)


def success(message: str, **kwargs: Any) -> None:
    console.print(f"[green]{message}[/green]", **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    console.print(f"[yellow]{message}[/yellow]", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error to stderr, prefixed in red.

    Args:
        message: Rich markup; escape user-provided text first
        **kwargs: Additional arguments for console.print
    """
    error_console.print(f"[red]Error:[/red] {message}", **kwargs)

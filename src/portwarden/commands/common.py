"""Common utilities for CLI commands."""

from typing import NoReturn

import typer
from rich.markup import escape

from ..console import console, error, error_console, info, plain, success, warning
from ..errors import PortwardenError
from ..manager import ResourceManager

# Re-export console utilities
__all__ = [
    "console",
    "error_console",
    "info",
    "plain",
    "success",
    "warning",
    "error",
    "fail",
    "get_manager",
]


def get_manager() -> ResourceManager:
    """Get manager instance with loaded state."""
    return ResourceManager.create()


def fail(exc: PortwardenError) -> NoReturn:
    """Report an error and exit with status 1."""
    error(escape(str(exc)))
    raise typer.Exit(1)

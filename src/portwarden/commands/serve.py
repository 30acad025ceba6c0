"""Serve command - run the MCP server on stdio."""

import typer

from ..config import get_log_path
from ..console import setup_logging


def serve(ctx: typer.Context) -> None:
    """Run the MCP tool server over stdio.

    Configure your MCP client with the command `portwarden serve`.
    """
    from ..server import run

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    setup_logging(verbose=verbose, log_file=get_log_path())
    run()

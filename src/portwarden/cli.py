"""Typer CLI for Portwarden - Main entry point."""

import typer

from . import __version__
from .commands import (
    check,
    cleanup,
    dev_ports,
    kill,
    kill_dev,
    monitor,
    project_app,
    protect,
    protected,
    resources,
    serve,
    unprotect,
)
from .console import setup_logging

app = typer.Typer(
    name="portwarden",
    help="Port and dev-server manager that never kills your databases",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"portwarden version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Port and dev-server manager that never kills your databases."""
    ctx.obj = {"verbose": verbose}
    setup_logging(verbose=verbose)

# Register all commands
app.command()(check)
app.command()(kill)
app.command(name="dev-ports")(dev_ports)
app.command(name="kill-dev")(kill_dev)
app.command()(cleanup)
app.command()(monitor)
app.command()(resources)
app.command()(protected)
app.command()(protect)
app.command()(unprotect)
app.command()(serve)
app.add_typer(project_app, name="project")


def main() -> None:
    """Main entry point."""
    app()

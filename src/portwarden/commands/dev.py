"""Dev-server commands - inspect and clean up well-known development ports."""

import typer
from rich.table import Table

from ..errors import PortwardenError
from ..manager import SERVER_TYPES
from ..render import render_dev_servers, render_selective
from .common import console, fail, get_manager, plain


def dev_ports() -> None:
    """Show the status of common development ports.

    Examples:
        portwarden dev-ports
    """
    statuses = get_manager().list_dev_ports()

    table = Table(title="Development Ports")
    table.add_column("Port", style="yellow")
    table.add_column("Status", style="magenta")
    table.add_column("PID", style="cyan")
    table.add_column("Process", style="green")

    for status in statuses:
        top = status.top
        if top is None:
            table.add_row(str(status.port), "○ free", "-", "-")
        else:
            table.add_row(str(status.port), "● in use", str(top.pid), top.name)

    console.print(table)


def kill_dev(
    server_type: str = typer.Argument(
        "all", help=f"Server type: {', '.join(SERVER_TYPES)}"
    ),
) -> None:
    """Kill development servers by command-line pattern.

    Protection rules are NOT applied. Use `portwarden cleanup` for the
    protected variant.

    Examples:
        portwarden kill-dev vite
        portwarden kill-dev
    """
    manager = get_manager()
    try:
        report = manager.kill_dev_servers(server_type)
    except PortwardenError as e:
        fail(e)
    plain(render_dev_servers(report))


def cleanup() -> None:
    """Free in-use development ports, skipping protected services.

    Examples:
        portwarden cleanup
    """
    plain(render_selective(get_manager().kill_dev_servers_selective()))

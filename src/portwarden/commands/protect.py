"""Protection commands - list, add and remove protected ports."""

import typer
from rich.table import Table

from ..errors import PortwardenError
from ..render import render_protected_port, render_unprotected_port
from .common import console, fail, get_manager, info, plain


def protected() -> None:
    """Show protected ports, process patterns and which protected services are running.

    Examples:
        portwarden protected
    """
    report = get_manager().list_protected_services()
    running = {service.port: service for service in report.running}

    table = Table(title="Protected Ports")
    table.add_column("Port", style="yellow")
    table.add_column("Service", style="green")
    table.add_column("Source", style="blue")
    table.add_column("Status", style="magenta")

    entries = [(port, label, "built-in") for port, label in report.builtin.items()]
    entries += [(port, label, "custom") for port, label in report.custom.items()]
    for port, label, source in sorted(entries):
        if port in running:
            names = ", ".join(sorted({p.name for p in running[port].processes}))
            status = f"● {names}"
        else:
            status = "○ idle"
        table.add_row(str(port), label, source, status)

    console.print(table)
    info(f"[dim]Protected process patterns: {', '.join(report.patterns)}[/dim]")


def protect(
    port: int = typer.Argument(..., help="Port number (1-65535)"),
    service: str = typer.Argument(..., help="Description of the service on this port"),
) -> None:
    """Add a custom protected port.

    Examples:
        portwarden protect 4000 "Local API gateway"
    """
    manager = get_manager()
    try:
        result = manager.add_custom_protected_port(port, service)
    except PortwardenError as e:
        fail(e)
    plain(render_protected_port(result))


def unprotect(port: int = typer.Argument(..., help="Port number (1-65535)")) -> None:
    """Remove a custom protected port. Built-in ports cannot be removed.

    Examples:
        portwarden unprotect 4000
    """
    manager = get_manager()
    try:
        result = manager.remove_custom_protected_port(port)
    except PortwardenError as e:
        fail(e)
    plain(render_unprotected_port(result))

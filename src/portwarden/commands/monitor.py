"""Monitor command - watch a port for status changes."""

import typer

from ..errors import PortwardenError
from ..manager import MonitorEvent
from ..render import render_monitor_event
from .common import fail, get_manager, info, plain


def monitor(
    port: int = typer.Argument(..., help="Port number (1-65535)"),
    duration: int = typer.Option(30, "-d", "--duration", help="Seconds to watch (up to 300)"),
) -> None:
    """Watch a port and print a line whenever its status changes.

    Examples:
        portwarden monitor 3000
        portwarden monitor 5173 --duration 120
    """
    manager = get_manager()

    def on_event(event: MonitorEvent) -> None:
        plain(render_monitor_event(port, event))

    try:
        manager.monitor_port(port, duration, on_event=on_event)
    except PortwardenError as e:
        fail(e)
    info(f"[dim]Monitoring completed for port {port}[/dim]")

"""Kill command - free a port unless it is protected."""

import typer

from ..errors import PortwardenError
from ..render import render_kill_report
from .common import fail, get_manager, plain


def kill(
    port: int = typer.Argument(..., help="Port number (1-65535)"),
    force: bool = typer.Option(False, "-f", "--force", help="Use SIGKILL instead of SIGTERM"),
) -> None:
    """Terminate the processes on a port.

    Protected ports and critical services (databases, Docker, ...) are refused.

    Examples:
        portwarden kill 3000
        portwarden kill 3000 --force
    """
    manager = get_manager()
    try:
        report = manager.kill_port(port, force)
    except PortwardenError as e:
        fail(e)
    plain(render_kill_report(report))

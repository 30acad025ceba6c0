"""Check command - show what is bound to a port."""

import typer

from ..errors import PortwardenError
from ..render import render_port_status
from .common import fail, get_manager, plain


def check(port: int = typer.Argument(..., help="Port number (1-65535)")) -> None:
    """Check if a port is in use and show the processes bound to it.

    Examples:
        portwarden check 3000
    """
    manager = get_manager()
    try:
        status = manager.check_port(port)
    except PortwardenError as e:
        fail(e)
    plain(render_port_status(status))

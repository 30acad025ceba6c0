"""Resources command - show memory, CPU and network usage."""

from ..render import render_resources
from .common import get_manager, plain


def resources() -> None:
    """Show current system resource usage."""
    plain(render_resources(get_manager().system_resources()))

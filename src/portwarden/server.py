"""MCP server exposing Portwarden operations as tools over stdio."""

import logging
from collections.abc import Callable
from functools import wraps

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from . import render
from .errors import PortwardenError
from .manager import ResourceManager

logger = logging.getLogger(__name__)

mcp = FastMCP("portwarden")

_manager: ResourceManager | None = None


def get_manager() -> ResourceManager:
    """Get the process-wide manager, loading state on first use."""
    global _manager
    if _manager is None:
        _manager = ResourceManager.create()
    return _manager


def set_manager(manager: ResourceManager | None) -> None:
    global _manager
    _manager = manager


def _reported(func: Callable[..., str]) -> Callable[..., str]:
    """Turn Portwarden errors into MCP tool errors (isError: true)."""

    @wraps(func)
    def wrapper(*args, **kwargs) -> str:
        try:
            return func(*args, **kwargs)
        except PortwardenError as e:
            logger.info("%s failed: %s", func.__name__, e)
            raise ToolError(f"❌ {e}") from e

    return wrapper


@mcp.tool()
@_reported
def check_port(port: int) -> str:
    """Check if a specific port is in use and show process details."""
    return render.render_port_status(get_manager().check_port(port))


@mcp.tool()
@_reported
def kill_port(port: int, force: bool = False) -> str:
    """Kill processes running on a specific port.

    Protected ports and critical services (databases, Docker, ...) are refused.
    Set force to use SIGKILL instead of a graceful SIGTERM.
    """
    return render.render_kill_report(get_manager().kill_port(port, force))


@mcp.tool()
@_reported
def list_dev_ports() -> str:
    """Check status of common development ports (3000, 3001, 4321, 5173, 8000, 8080, 8100, 9000)."""
    return render.render_dev_ports(get_manager().list_dev_ports())


@mcp.tool()
@_reported
def system_resources() -> str:
    """Get current system resource usage (memory, CPU, network)."""
    return render.render_resources(get_manager().system_resources())


@mcp.tool()
@_reported
def kill_dev_servers(server_type: str = "all") -> str:
    """Kill development servers by type: astro, npm, vite, next, or all.

    This does not check protection rules; prefer kill_dev_servers_selective.
    """
    return render.render_dev_servers(get_manager().kill_dev_servers(server_type))


@mcp.tool()
@_reported
def monitor_port(port: int, duration: int = 30) -> str:
    """Monitor a port for status changes for up to 300 seconds (default 30)."""
    return render.render_monitor(get_manager().monitor_port(port, duration))


@mcp.tool()
@_reported
def list_protected_services() -> str:
    """List all protected ports and services that cannot be killed."""
    return render.render_protected_services(get_manager().list_protected_services())


@mcp.tool()
@_reported
def kill_dev_servers_selective() -> str:
    """Kill only development servers while protecting databases and system services."""
    return render.render_selective(get_manager().kill_dev_servers_selective())


@mcp.tool()
@_reported
def add_project(name: str, directory: str, ports: list[int], framework: str) -> str:
    """Register a project with its ports for session persistence."""
    project = get_manager().add_project(name, directory, ports, framework)
    return render.render_project_added(project)


@mcp.tool()
@_reported
def list_active_projects() -> str:
    """List all registered active projects and their ports."""
    return render.render_projects(get_manager().list_active_projects())


@mcp.tool()
@_reported
def kill_project_ports(project_name: str) -> str:
    """Kill ports for a specific project only, skipping protected services."""
    return render.render_project_cleanup(get_manager().kill_project_ports(project_name))


@mcp.tool()
@_reported
def remove_project(project_name: str) -> str:
    """Unregister a project."""
    project = get_manager().remove_project(project_name)
    return f"✅ Removed project '{project.name}' ({project.directory})"


@mcp.tool()
@_reported
def add_protected_port(port: int, service: str) -> str:
    """Add a custom port to the protected list."""
    return render.render_protected_port(get_manager().add_custom_protected_port(port, service))


@mcp.tool()
@_reported
def remove_protected_port(port: int) -> str:
    """Remove a custom port from the protected list. Built-in ports cannot be removed."""
    return render.render_unprotected_port(get_manager().remove_custom_protected_port(port))


def run() -> None:
    """Serve over stdio until the client disconnects."""
    get_manager()
    logger.info("Portwarden MCP server running on stdio")
    mcp.run(transport="stdio")

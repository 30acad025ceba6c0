"""Project commands - register projects and clean up their ports."""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from ..errors import PortwardenError
from ..render import format_timestamp, render_project_added, render_project_cleanup
from .common import console, fail, get_manager, plain, success, warning

project_app = typer.Typer(help="Register projects and clean up their ports", no_args_is_help=True)


@project_app.command("add")
def add(
    name: str = typer.Argument(..., help="Project name"),
    ports: list[int] = typer.Option(..., "-p", "--port", help="Port used by the project (repeatable)"),
    framework: str = typer.Option("unknown", "-F", "--framework", help="Framework, e.g. Next.js"),
    directory: str | None = typer.Option(
        None, "-d", "--directory", help="Project directory (defaults to cwd)"
    ),
) -> None:
    """Register a project, or update the one registered for the same directory.

    Examples:
        portwarden project add shop -p 3000 -p 3001 --framework Next.js
    """
    directory = directory or str(Path.cwd().resolve())
    manager = get_manager()
    try:
        project = manager.add_project(name, directory, ports, framework)
    except PortwardenError as e:
        fail(e)
    plain(render_project_added(project))


@project_app.command("list")
def list_projects() -> None:
    """List registered projects active in the last 24 hours."""
    projects = get_manager().list_active_projects()
    if not projects:
        warning("No active projects registered")
        return

    table = Table(title="Active Projects")
    table.add_column("Name", style="green")
    table.add_column("Framework", style="blue")
    table.add_column("Ports", style="yellow")
    table.add_column("Directory", style="dim")
    table.add_column("Last Active", style="cyan")

    for project in projects:
        table.add_row(
            escape(project.name),
            escape(project.framework),
            ", ".join(str(p) for p in project.ports) or "-",
            escape(project.directory),
            format_timestamp(project.last_active),
        )

    console.print(table)


@project_app.command("kill")
def kill(name: str = typer.Argument(..., help="Project name (case-insensitive)")) -> None:
    """Free the ports of one project, skipping protected services.

    Examples:
        portwarden project kill shop
    """
    manager = get_manager()
    try:
        report = manager.kill_project_ports(name)
    except PortwardenError as e:
        fail(e)
    plain(render_project_cleanup(report))


@project_app.command("remove")
def remove(name: str = typer.Argument(..., help="Project name (case-insensitive)")) -> None:
    """Unregister a project."""
    manager = get_manager()
    try:
        project = manager.remove_project(name)
    except PortwardenError as e:
        fail(e)
    success(escape(f"Removed project {project.name} ({project.directory})"))

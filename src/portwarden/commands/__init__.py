"""Command modules for portwarden CLI."""

from .check import check
from .dev import cleanup, dev_ports, kill_dev
from .kill import kill
from .monitor import monitor
from .project import project_app
from .protect import protect, protected, unprotect
from .resources import resources
from .serve import serve

__all__ = [
    "check",
    "cleanup",
    "dev_ports",
    "kill",
    "kill_dev",
    "monitor",
    "project_app",
    "protect",
    "protected",
    "resources",
    "serve",
    "unprotect",
]

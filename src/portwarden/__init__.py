"""Portwarden - port and dev-server manager with protected services."""

__version__ = "0.1.0"

from .errors import (
    InvalidArgumentError,
    InvalidPortError,
    NotFoundError,
    OSQueryError,
    PortwardenError,
)
from .manager import DEV_PORTS, SERVER_PATTERNS, ResourceManager, validate_port
from .protection import (
    BUILTIN_PROTECTED_PORTS,
    PROTECTED_PROCESS_PATTERNS,
    Classification,
    ProtectionPolicy,
)
from .store import ProjectInfo, SessionData, StateStore
from .system import ProcessHandle, SystemScanner, Termination

__all__ = [
    "__version__",
    "BUILTIN_PROTECTED_PORTS",
    "Classification",
    "DEV_PORTS",
    "InvalidArgumentError",
    "InvalidPortError",
    "NotFoundError",
    "OSQueryError",
    "PROTECTED_PROCESS_PATTERNS",
    "PortwardenError",
    "ProcessHandle",
    "ProjectInfo",
    "ProtectionPolicy",
    "ResourceManager",
    "SERVER_PATTERNS",
    "SessionData",
    "StateStore",
    "SystemScanner",
    "Termination",
    "validate_port",
]

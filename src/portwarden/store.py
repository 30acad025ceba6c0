"""Persistent session state for Portwarden - a single JSON document."""

import copy
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import get_state_path

logger = logging.getLogger(__name__)

PROJECT_TTL_MS = 24 * 60 * 60 * 1000
DEFAULT_CUSTOM_LABEL = "Custom service"

_PROJECT_KEYS = {"name", "directory", "ports", "framework", "lastActive"}
_SESSION_KEYS = {"activeProjects", "protectedPorts", "customProtectedServices", "lastActivity"}


@dataclass
class ProjectInfo:
    """A registered project and the ports it uses."""

    name: str
    directory: str
    ports: list[int]
    framework: str
    last_active: int  # epoch milliseconds
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectInfo":
        if not isinstance(data, dict):
            raise TypeError(f"project entry must be an object, got {type(data).__name__}")
        return cls(
            name=str(data["name"]),
            directory=str(data["directory"]),
            ports=[int(p) for p in data.get("ports", [])],
            framework=str(data.get("framework", "")),
            last_active=int(data.get("lastActive", 0)),
            extra={k: v for k, v in data.items() if k not in _PROJECT_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "name": self.name,
            "directory": self.directory,
            "ports": list(self.ports),
            "framework": self.framework,
            "lastActive": self.last_active,
        }


@dataclass
class SessionData:
    """Root persisted document.

    ``protected_ports`` and ``custom_protected_services`` are kept in sync
    by StateStore; every port in one is a key in the other.
    """

    active_projects: list[ProjectInfo] = field(default_factory=list)
    protected_ports: list[int] = field(default_factory=list)
    custom_protected_services: dict[int, str] = field(default_factory=dict)
    last_activity: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionData":
        """Build a document from parsed JSON.

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        if not isinstance(data, dict):
            raise TypeError("session document must be a JSON object")

        services = data.get("customProtectedServices") or {}
        if not isinstance(services, dict):
            raise TypeError("customProtectedServices must be an object")

        session = cls(
            active_projects=[ProjectInfo.from_dict(p) for p in data.get("activeProjects", [])],
            protected_ports=[int(p) for p in data.get("protectedPorts", [])],
            custom_protected_services={int(k): str(v) for k, v in services.items()},
            last_activity=int(data.get("lastActivity", 0)),
            extra={k: v for k, v in data.items() if k not in _SESSION_KEYS},
        )
        session._reconcile()
        return session

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "activeProjects": [p.to_dict() for p in self.active_projects],
            "protectedPorts": list(self.protected_ports),
            # JSON object keys are strings
            "customProtectedServices": {
                str(port): label for port, label in self.custom_protected_services.items()
            },
            "lastActivity": self.last_activity,
        }

    def _reconcile(self) -> None:
        """Restore the port-set/label-map pairing after a hand edit."""
        ports: list[int] = []
        for port in self.protected_ports:
            if port not in ports:
                ports.append(port)
        for port in self.custom_protected_services:
            if port not in ports:
                ports.append(port)
        for port in ports:
            self.custom_protected_services.setdefault(port, DEFAULT_CUSTOM_LABEL)
        self.protected_ports = ports


class StateStore:
    """Load and save the session document.

    Every mutation rewrites the whole file. Save failures are logged and
    swallowed; the in-memory state stays authoritative for the caller.
    """

    _lock = threading.Lock()

    def __init__(self, path: Path | None = None, clock: Callable[[], float] = time.time) -> None:
        """Initialize store.

        Args:
            path: Path to the session file. If None, uses default location.
            clock: Wall-clock source in seconds since the epoch
        """
        self.path = path or get_state_path()
        self._clock = clock
        self._data = SessionData(last_activity=self._now_ms())

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def load(self) -> SessionData:
        """Read the session file, evicting projects idle for over 24 hours.

        A missing or unparseable file is replaced by an empty document.

        Returns:
            Copy of the loaded document
        """
        with self._lock:
            try:
                with open(self.path, encoding="utf-8") as f:
                    self._data = SessionData.from_dict(json.load(f))
            except FileNotFoundError:
                logger.info("No session file at %s, starting fresh", self.path)
                self._data = SessionData(last_activity=self._now_ms())
                self._write()
                return copy.deepcopy(self._data)
            except (OSError, ValueError, TypeError, KeyError) as e:
                logger.warning("Session file %s is unreadable (%s), starting fresh", self.path, e)
                self._data = SessionData(last_activity=self._now_ms())
                self._write()
                return copy.deepcopy(self._data)

            cutoff = self._now_ms() - PROJECT_TTL_MS
            kept = [p for p in self._data.active_projects if p.last_active > cutoff]
            evicted = len(self._data.active_projects) - len(kept)
            if evicted:
                logger.info("Evicted %d stale project(s)", evicted)
            self._data.active_projects = kept
            return copy.deepcopy(self._data)

    def save(self) -> bool:
        """Write the whole document atomically.

        Returns:
            True if written, False if the write failed (logged)
        """
        with self._lock:
            return self._write()

    def _write(self) -> bool:
        self._data.last_activity = self._now_ms()
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=str(self.path.parent), encoding="utf-8", suffix=".tmp"
            ) as tmp:
                tmp_name = tmp.name
                json.dump(self._data.to_dict(), tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error("Failed to save session to %s: %s", self.path, e)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        return True

    def add_project(
        self, name: str, directory: str, ports: Iterable[int], framework: str
    ) -> ProjectInfo:
        """Register a project, replacing any entry with the same directory.

        Args:
            name: Project name
            directory: Project directory (the dedup key)
            ports: Ports used by the project
            framework: Framework label

        Returns:
            Copy of the stored project
        """
        project = ProjectInfo(
            name=name,
            directory=directory,
            ports=list(ports),
            framework=framework,
            last_active=self._now_ms(),
        )
        with self._lock:
            for i, existing in enumerate(self._data.active_projects):
                if existing.directory == directory:
                    project.extra = existing.extra
                    self._data.active_projects[i] = project
                    break
            else:
                self._data.active_projects.append(project)
            self._write()
        return copy.deepcopy(project)

    def remove_project(self, directory: str) -> bool:
        """Remove the project registered for a directory.

        Returns:
            True if a project was removed
        """
        with self._lock:
            before = len(self._data.active_projects)
            self._data.active_projects = [
                p for p in self._data.active_projects if p.directory != directory
            ]
            removed = len(self._data.active_projects) != before
            if removed:
                self._write()
            return removed

    def touch_project(self, directory: str) -> bool:
        """Refresh lastActive for the project in a directory.

        Returns:
            True if the project exists
        """
        with self._lock:
            for project in self._data.active_projects:
                if project.directory == directory:
                    project.last_active = self._now_ms()
                    self._write()
                    return True
            return False

    def find_project(self, name: str) -> ProjectInfo | None:
        """Find a project by name, case-insensitively.

        When several projects share a name, the most recently active wins.
        """
        wanted = name.lower()
        matches = [p for p in self._data.active_projects if p.name.lower() == wanted]
        if not matches:
            return None
        return copy.deepcopy(max(matches, key=lambda p: p.last_active))

    def get_project_ports(self, directory: str) -> list[int]:
        for project in self._data.active_projects:
            if project.directory == directory:
                return list(project.ports)
        return []

    def add_protected_port(self, port: int, label: str) -> None:
        """Protect a port; calling again updates the label."""
        with self._lock:
            if port not in self._data.protected_ports:
                self._data.protected_ports.append(port)
            self._data.custom_protected_services[port] = label
            self._write()

    def remove_protected_port(self, port: int) -> bool:
        """Unprotect a custom port.

        Returns:
            True if the port was protected
        """
        with self._lock:
            present = port in self._data.protected_ports
            self._data.protected_ports = [p for p in self._data.protected_ports if p != port]
            self._data.custom_protected_services.pop(port, None)
            self._write()
            return present

    def get_active_projects(self) -> list[ProjectInfo]:
        return copy.deepcopy(self._data.active_projects)

    def get_protected_ports(self) -> list[int]:
        return list(self._data.protected_ports)

    def get_custom_protected_services(self) -> dict[int, str]:
        return dict(self._data.custom_protected_services)

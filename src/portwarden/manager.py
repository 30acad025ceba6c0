"""Resource manager - the single entry point for every port/process operation."""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType

from .config import Settings, load_settings
from .errors import InvalidArgumentError, InvalidPortError, NotFoundError, OSQueryError
from .protection import ProtectionPolicy
from .resources import ResourceSnapshot, collect_resources
from .store import DEFAULT_CUSTOM_LABEL, ProjectInfo, StateStore
from .system import ProcessHandle, SystemScanner, Termination

logger = logging.getLogger(__name__)

DEV_PORTS: tuple[int, ...] = (3000, 3001, 4321, 5173, 8000, 8080, 8100, 9000)

SERVER_PATTERNS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "astro": ("astro dev", "astro preview"),
        "npm": ("npm run dev", "npm start", "npm run serve"),
        "vite": ("vite", "vite dev", "vite serve"),
        "next": ("next dev", "next start"),
    }
)
SERVER_TYPES: tuple[str, ...] = (*SERVER_PATTERNS, "all")

MAX_MONITOR_SECONDS = 300


def validate_port(port: object) -> int:
    """Ensure a port is an integer in 1-65535.

    Raises:
        InvalidPortError: Otherwise (booleans are rejected too)
    """
    if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
        raise InvalidPortError(port)
    return port


@dataclass
class PortStatus:
    """Processes currently bound to a port."""

    port: int
    processes: list[ProcessHandle] = field(default_factory=list)

    @property
    def in_use(self) -> bool:
        return bool(self.processes)

    @property
    def top(self) -> ProcessHandle | None:
        return self.processes[0] if self.processes else None

    def describe(self) -> str:
        """One-line status, used to detect changes while monitoring."""
        if self.top is None:
            return "Available"
        return f"In-use (PID: {self.top.pid}, Process: {self.top.name})"


@dataclass
class PortKillReport:
    """Outcome of trying to free one port."""

    port: int
    force: bool = False
    processes: list[ProcessHandle] = field(default_factory=list)
    terminations: list[Termination] = field(default_factory=list)
    protected_label: str | None = None  # refused by port number
    matched_services: list[str] = field(default_factory=list)  # refused by process pattern
    error: str | None = None  # skipped because the port could not be queried
    freed: bool | None = None  # advisory re-check, None when nothing was signaled

    @property
    def refused(self) -> bool:
        return self.protected_label is not None or bool(self.matched_services)

    @property
    def skipped(self) -> bool:
        return self.refused or self.error is not None

    @property
    def signaled(self) -> bool:
        return any(t.success for t in self.terminations)

    @property
    def reasons(self) -> list[str]:
        reasons = []
        if self.protected_label is not None:
            reasons.append(f"protected port ({self.protected_label})")
        if self.matched_services:
            reasons.append(f"critical service running: {', '.join(self.matched_services)}")
        if self.error is not None:
            reasons.append(f"query failed: {self.error}")
        return reasons


@dataclass
class PatternKill:
    """Processes signaled for one dev-server command pattern."""

    pattern: str
    terminations: list[Termination] = field(default_factory=list)
    error: str | None = None
    remaining: list[int] = field(default_factory=list)  # still matching after the grace period


@dataclass
class DevServerReport:
    server_type: str
    patterns: list[PatternKill] = field(default_factory=list)

    @property
    def killed(self) -> int:
        return sum(1 for p in self.patterns for t in p.terminations if t.success)

    @property
    def remaining(self) -> list[int]:
        return [pid for p in self.patterns for pid in p.remaining]


@dataclass
class SelectiveCleanupReport:
    ports: list[PortKillReport] = field(default_factory=list)

    @property
    def cleaned(self) -> int:
        return sum(1 for r in self.ports if r.signaled)


@dataclass
class RunningService:
    port: int
    label: str
    processes: list[ProcessHandle]


@dataclass
class ProtectedServicesReport:
    builtin: dict[int, str]
    custom: dict[int, str]
    patterns: tuple[str, ...]
    running: list[RunningService] = field(default_factory=list)


@dataclass
class ProjectCleanupReport:
    project: ProjectInfo
    ports: list[PortKillReport] = field(default_factory=list)


@dataclass
class ProtectedPortResult:
    port: int
    label: str
    builtin: bool = False  # already protected by the built-in table, nothing stored


@dataclass
class MonitorEvent:
    timestamp: datetime
    status: str


@dataclass
class MonitorReport:
    port: int
    duration: float
    events: list[MonitorEvent] = field(default_factory=list)


class ResourceManager:
    """Inspect ports, enforce protection and terminate processes.

    Operations run one at a time. Kill operations signal, wait one grace
    period and re-check once; the re-check is advisory.
    """

    def __init__(
        self,
        store: StateStore,
        scanner: SystemScanner | None = None,
        policy: ProtectionPolicy | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
        resources: Callable[[], ResourceSnapshot] = collect_resources,
    ) -> None:
        """Initialize manager.

        Args:
            store: Loaded state store
            scanner: OS collaborator
            policy: Protection policy; defaults to one backed by the store
            settings: Timing settings
            sleep: Blocking sleep, injectable for tests
            monotonic: Clock for monitoring deadlines
            now: Wall clock for monitoring timestamps
            resources: Resource snapshot collector
        """
        self.settings = settings or Settings()
        self.store = store
        self.scanner = scanner or SystemScanner(timeout=self.settings.query_timeout_seconds)
        self.policy = policy or ProtectionPolicy(store.get_custom_protected_services)
        self._sleep = sleep
        self._monotonic = monotonic
        self._now = now
        self._resources = resources

    @classmethod
    def create(
        cls, settings: Settings | None = None, state_path: Path | None = None
    ) -> "ResourceManager":
        """Build a manager with default collaborators and a loaded store."""
        settings = settings or load_settings()
        store = StateStore(state_path)
        store.load()
        return cls(store, settings=settings)

    # -- port inspection ---------------------------------------------------

    def check_port(self, port: int) -> PortStatus:
        """Get the processes bound to a port."""
        validate_port(port)
        return PortStatus(port=port, processes=self._query_quietly(port))

    def list_dev_ports(self) -> list[PortStatus]:
        """Get the status of every well-known development port."""
        return [PortStatus(port=p, processes=self._query_quietly(p)) for p in DEV_PORTS]

    def system_resources(self) -> ResourceSnapshot:
        return self._resources()

    def monitor_port(
        self,
        port: int,
        duration: float = 30,
        on_event: Callable[[MonitorEvent], None] | None = None,
    ) -> MonitorReport:
        """Poll a port for the whole duration, recording status changes.

        The first observation is always recorded.

        Args:
            port: Port to watch
            duration: Seconds to watch, more than 0 and at most 300
            on_event: Called with each event as it is recorded

        Raises:
            InvalidPortError: Bad port
            InvalidArgumentError: Duration out of range
        """
        validate_port(port)
        if (
            isinstance(duration, bool)
            or not isinstance(duration, (int, float))
            or not 0 < duration <= MAX_MONITOR_SECONDS
        ):
            raise InvalidArgumentError(
                f"Invalid duration: {duration}. Must be greater than 0 "
                f"and at most {MAX_MONITOR_SECONDS} seconds."
            )

        report = MonitorReport(port=port, duration=duration)
        interval = self.settings.monitor_interval_seconds
        deadline = self._monotonic() + duration
        last_status = ""

        while self._monotonic() < deadline:
            status = PortStatus(port=port, processes=self._query_quietly(port)).describe()
            if status != last_status:
                event = MonitorEvent(timestamp=self._now(), status=status)
                report.events.append(event)
                last_status = status
                if on_event is not None:
                    on_event(event)

            remaining = deadline - self._monotonic()
            if remaining <= 0:
                break
            self._sleep(min(interval, remaining))

        return report

    # -- termination -------------------------------------------------------

    def kill_port(self, port: int, force: bool = False) -> PortKillReport:
        """Terminate the processes on a port unless it is protected.

        Raises:
            InvalidPortError: Bad port
            OSQueryError: The port's owners could not be determined
        """
        validate_port(port)
        report = self._free_port(port, force)
        self._settle([report], self.settings.kill_grace_seconds)
        return report

    def kill_dev_servers(self, server_type: str = "all") -> DevServerReport:
        """Terminate dev servers by command-line pattern.

        Signaled patterns are searched again after one grace period; PIDs
        that still match are reported in `remaining`.

        Protection is not consulted; kill_dev_servers_selective is the
        protected alternative.

        Raises:
            InvalidArgumentError: Unknown server type
        """
        if server_type == "all":
            patterns = [p for group in SERVER_PATTERNS.values() for p in group]
        elif server_type in SERVER_PATTERNS:
            patterns = list(SERVER_PATTERNS[server_type])
        else:
            raise InvalidArgumentError(
                f"Unknown server type: {server_type}. Use: {', '.join(SERVER_TYPES)}"
            )

        report = DevServerReport(server_type=server_type)
        signaled: set[int] = set()
        for pattern in patterns:
            entry = PatternKill(pattern=pattern)
            report.patterns.append(entry)
            try:
                pids = self.scanner.find_pids_by_command(pattern)
            except OSQueryError as e:
                logger.warning("Could not search for %r: %s", pattern, e)
                entry.error = str(e)
                continue
            for pid in pids:
                if pid in signaled:
                    continue
                signaled.add(pid)
                entry.terminations.append(self.scanner.terminate(pid))

        if signaled:
            self._sleep(self.settings.dev_server_grace_seconds)
            self._recheck_patterns(report)
        return report

    def kill_dev_servers_selective(self) -> SelectiveCleanupReport:
        """Free in-use dev ports, skipping protected ports and critical services."""
        report = SelectiveCleanupReport()
        for port in DEV_PORTS:
            processes = self._query_quietly(port)
            if not processes:
                continue
            entry = PortKillReport(port=port)
            if self.policy.is_port_protected(port):
                entry.processes = processes
                entry.protected_label = self.policy.protected_label(port)
            else:
                self._apply_policy(entry, processes)
            report.ports.append(entry)

        self._settle(report.ports, self.settings.kill_grace_seconds)
        return report

    # -- protection --------------------------------------------------------

    def list_protected_services(self) -> ProtectedServicesReport:
        """Describe every protection rule and which protected ports are live."""
        custom = self.policy.custom_ports()
        report = ProtectedServicesReport(
            builtin=dict(self.policy.builtin_ports),
            custom=custom,
            patterns=self.policy.patterns,
        )
        for port, label in sorted({**report.builtin, **custom}.items()):
            processes = self._query_quietly(port)
            if processes:
                report.running.append(RunningService(port=port, label=label, processes=processes))
        return report

    def add_custom_protected_port(self, port: int, label: str) -> ProtectedPortResult:
        """Protect a port from termination.

        Built-in ports are already protected and are never shadowed.
        """
        validate_port(port)
        if self.policy.is_builtin(port):
            return ProtectedPortResult(
                port=port, label=self.policy.builtin_ports[port], builtin=True
            )
        label = label.strip() if label else ""
        label = label or DEFAULT_CUSTOM_LABEL
        self.store.add_protected_port(port, label)
        return ProtectedPortResult(port=port, label=label)

    def remove_custom_protected_port(self, port: int) -> ProtectedPortResult:
        """Remove a custom protected port.

        Raises:
            InvalidArgumentError: The port is built-in
            NotFoundError: The port is not a custom protected port
        """
        validate_port(port)
        if self.policy.is_builtin(port):
            raise InvalidArgumentError(
                f"Port {port} ({self.policy.builtin_ports[port]}) is built-in and cannot be unprotected"
            )
        label = self.store.get_custom_protected_services().get(port)
        if label is None or not self.store.remove_protected_port(port):
            raise NotFoundError(f"Port {port} is not a custom protected port")
        return ProtectedPortResult(port=port, label=label)

    # -- projects ----------------------------------------------------------

    def add_project(
        self, name: str, directory: str, ports: Iterable[int], framework: str
    ) -> ProjectInfo:
        """Register (or update, by directory) a project.

        Raises:
            InvalidArgumentError: Empty name or directory
            InvalidPortError: Any port out of range
        """
        if not name or not name.strip():
            raise InvalidArgumentError("Project name must not be empty")
        if not directory or not directory.strip():
            raise InvalidArgumentError("Project directory must not be empty")
        ports = [validate_port(p) for p in ports]
        return self.store.add_project(name.strip(), directory, ports, framework)

    def list_active_projects(self) -> list[ProjectInfo]:
        return self.store.get_active_projects()

    def kill_project_ports(self, name: str) -> ProjectCleanupReport:
        """Free every port of one project, with the same protection as kill_port.

        The project is marked active, restarting its 24 hour expiry.

        Raises:
            NotFoundError: No project with that name (case-insensitive)
        """
        project = self._get_project(name)
        self.store.touch_project(project.directory)
        report = ProjectCleanupReport(project=project)
        for port in self.store.get_project_ports(project.directory):
            try:
                validate_port(port)
                entry = self._free_port(port, force=False)
            except InvalidPortError as e:
                entry = PortKillReport(port=port, error=str(e))
            except OSQueryError as e:
                logger.warning("Skipping port %s of %s: %s", port, project.name, e)
                entry = PortKillReport(port=port, error=str(e))
            report.ports.append(entry)

        self._settle(report.ports, self.settings.kill_grace_seconds)
        return report

    def remove_project(self, name: str) -> ProjectInfo:
        """Unregister a project by name (case-insensitive).

        Raises:
            NotFoundError: No such project
        """
        project = self._get_project(name)
        self.store.remove_project(project.directory)
        return project

    # -- internals ---------------------------------------------------------

    def _get_project(self, name: str) -> ProjectInfo:
        project = self.store.find_project(name) if name else None
        if project is None:
            raise NotFoundError(f"Project '{name}' not found")
        return project

    def _free_port(self, port: int, force: bool) -> PortKillReport:
        """Check protection, query, classify and signal one port (no waiting)."""
        report = PortKillReport(port=port, force=force)
        if self.policy.is_port_protected(port):
            report.protected_label = self.policy.protected_label(port)
            logger.info("Refusing to kill protected port %s (%s)", port, report.protected_label)
            return report
        self._apply_policy(report, self.scanner.query_bound_processes(port))
        return report

    def _apply_policy(self, report: PortKillReport, processes: list[ProcessHandle]) -> None:
        report.processes = processes
        classification = self.policy.classify_processes(processes)
        if classification.has_critical:
            report.matched_services = sorted(classification.matched_services)
            logger.info(
                "Refusing to kill port %s: critical service(s) %s",
                report.port,
                ", ".join(report.matched_services),
            )
            return
        report.terminations = [self.scanner.terminate(p.pid, report.force) for p in processes]

    def _settle(self, reports: list[PortKillReport], grace: float) -> None:
        """Wait once for signaled ports, then re-check each of them."""
        pending = [r for r in reports if r.terminations]
        if not pending:
            return
        self._sleep(grace)
        for report in pending:
            report.freed = not self._query_quietly(report.port)

    def _recheck_patterns(self, report: DevServerReport) -> None:
        """Search each pattern again and keep the signaled PIDs that still match."""
        for entry in report.patterns:
            killed = {t.pid for t in entry.terminations if t.success}
            if not killed:
                continue
            try:
                pids = self.scanner.find_pids_by_command(entry.pattern)
            except OSQueryError as e:
                logger.warning("Could not re-check %r: %s", entry.pattern, e)
                continue
            entry.remaining = [pid for pid in pids if pid in killed]

    def _query_quietly(self, port: int) -> list[ProcessHandle]:
        """Query a port, treating a failed lookup as nothing bound."""
        try:
            return self.scanner.query_bound_processes(port)
        except OSQueryError as e:
            logger.warning("Could not query port %s: %s", port, e)
            return []

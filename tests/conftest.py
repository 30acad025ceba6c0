"""Test fixtures and configuration."""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from portwarden.errors import OSQueryError
from portwarden.manager import ResourceManager
from portwarden.resources import ResourceSnapshot
from portwarden.store import StateStore
from portwarden.system import ProcessHandle, Termination

EPOCH = 1_760_000_000.0


def proc(pid: int, name: str, command: str | None = None) -> ProcessHandle:
    """Build a process handle; the command defaults to the name."""
    return ProcessHandle(pid=pid, name=name, command=command or name)


class FakeScanner:
    """In-memory stand-in for SystemScanner.

    Terminated PIDs disappear from their ports and command matches unless
    listed in ``stubborn``.
    """

    def __init__(self) -> None:
        self.bound: dict[int, list[ProcessHandle]] = {}
        self.commands: dict[str, list[int]] = {}
        self.failing_ports: set[int] = set()
        self.failing_patterns: set[str] = set()
        self.refused_pids: set[int] = set()
        self.stubborn: set[int] = set()
        self.queries: list[int] = []
        self.signals: list[tuple[int, bool]] = []

    def bind(self, port: int, *processes: ProcessHandle) -> None:
        self.bound.setdefault(port, []).extend(processes)

    def query_bound_processes(self, port: int) -> list[ProcessHandle]:
        self.queries.append(port)
        if port in self.failing_ports:
            raise OSQueryError("lsof timed out")
        return list(self.bound.get(port, []))

    def find_pids_by_command(self, pattern: str) -> list[int]:
        if pattern in self.failing_patterns:
            raise OSQueryError("pgrep is not available")
        return list(self.commands.get(pattern, []))

    def terminate(self, pid: int, force: bool = False) -> Termination:
        self.signals.append((pid, force))
        if pid in self.refused_pids:
            return Termination(pid=pid, success=False, error="Operation not permitted")
        if pid not in self.stubborn:
            for port, processes in self.bound.items():
                self.bound[port] = [p for p in processes if p.pid != pid]
            for pattern, pids in self.commands.items():
                self.commands[pattern] = [p for p in pids if p != pid]
        return Termination(pid=pid, success=True)


class FakeClock:
    """Deterministic clocks; sleeping advances time instantly."""

    def __init__(self) -> None:
        self.elapsed = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.elapsed

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.elapsed += seconds

    def time(self) -> float:
        return EPOCH + self.elapsed

    def now(self) -> datetime:
        return datetime(2026, 1, 1, 12, 0, 0) + timedelta(seconds=self.elapsed)


@pytest.fixture
def temp_dir():
    """Temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def state_path(temp_dir):
    """Session file location inside the temp dir."""
    return temp_dir / "state" / "session.json"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scanner():
    return FakeScanner()


@pytest.fixture
def store(state_path, clock):
    """Loaded state store backed by the temp dir."""
    state_store = StateStore(state_path, clock=clock.time)
    state_store.load()
    return state_store


@pytest.fixture
def snapshot():
    return ResourceSnapshot(
        memory_percent=42.0,
        memory_used=8 * 1024**3,
        memory_total=16 * 1024**3,
        swap_percent=3.5,
        cpu_percent=12.5,
        cpu_count=8,
        established_connections=17,
        listening_ports=5,
    )


@pytest.fixture
def manager(store, scanner, clock, snapshot):
    """Manager wired to the fake scanner and clock."""
    return ResourceManager(
        store,
        scanner=scanner,
        sleep=clock.sleep,
        monotonic=clock.monotonic,
        now=clock.now,
        resources=lambda: snapshot,
    )

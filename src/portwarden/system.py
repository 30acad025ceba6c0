"""System process/port scanner for Portwarden."""

import logging
import os
import re
import signal
import subprocess
from dataclasses import dataclass

import psutil

from .errors import OSQueryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessHandle:
    """A process bound to a port, valid for a single operation only."""

    pid: int
    name: str
    command: str


@dataclass
class Termination:
    """Outcome of signaling one PID."""

    pid: int
    success: bool
    error: str | None = None


class SystemScanner:
    """Query the system for port owners and signal processes."""

    def __init__(self, timeout: float = 5.0) -> None:
        """Initialize scanner.

        Args:
            timeout: Seconds before a query subprocess is abandoned
        """
        self.timeout = timeout

    def query_bound_processes(self, port: int) -> list[ProcessHandle]:
        """Get processes with a listening TCP socket on a port.

        Tries lsof first (macOS/Linux), then ss (Linux).

        Args:
            port: Port number to inspect

        Returns:
            Processes bound to the port, empty if the port is free

        Raises:
            OSQueryError: If no query tool is available or the query timed out
        """
        try:
            owners = self._query_lsof(port)
        except FileNotFoundError:
            logger.debug("lsof not found, falling back to ss")
            try:
                owners = self._query_ss(port)
            except FileNotFoundError as e:
                raise OSQueryError("Neither lsof nor ss is available") from e

        return [
            ProcessHandle(pid=pid, name=name, command=self._get_command_line(pid) or name)
            for pid, name in owners
        ]

    def find_pids_by_command(self, pattern: str) -> list[int]:
        """Find processes whose full command line matches a pattern.

        Args:
            pattern: Substring (pgrep extended regex) to match

        Returns:
            Matching PIDs, excluding this process and its ancestors

        Raises:
            OSQueryError: If pgrep is unavailable or timed out
        """
        try:
            result = subprocess.run(
                ["pgrep", "-f", pattern],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise OSQueryError("pgrep is not available") from e
        except subprocess.TimeoutExpired as e:
            raise OSQueryError(f"pgrep timed out for pattern {pattern!r}") from e

        # pgrep exits 1 when nothing matched
        if result.returncode not in (0, 1):
            raise OSQueryError(result.stderr.strip() or f"pgrep exited {result.returncode}")

        own = own_lineage()
        pids = []
        for line in result.stdout.split():
            if line.isdigit() and int(line) not in own:
                pids.append(int(line))
        return pids

    def terminate(self, pid: int, force: bool = False) -> Termination:
        """Send SIGTERM (or SIGKILL when forced) to a process.

        Args:
            pid: Process ID
            force: Use SIGKILL instead of SIGTERM

        Returns:
            Termination outcome; failures are captured, not raised
        """
        sig = signal.SIGKILL if force else signal.SIGTERM
        try:
            os.kill(pid, sig)
        except OSError as e:
            logger.info("Failed to signal PID %s: %s", pid, e)
            return Termination(pid=pid, success=False, error=e.strerror or str(e))
        logger.info("Sent %s to PID %s", sig.name, pid)
        return Termination(pid=pid, success=True)

    def _query_lsof(self, port: int) -> list[tuple[int, str]]:
        """Query port owners using lsof.

        Returns:
            (pid, process name) pairs
        """
        try:
            result = subprocess.run(
                ["lsof", "-nP", f"-iTCP:{port}", "-sTCP:LISTEN", "-Fpc"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise OSQueryError(f"lsof timed out on port {port}") from e

        # lsof exits 1 with no output when nothing matches
        if result.returncode != 0 and not result.stdout.strip():
            return []

        return parse_lsof_fields(result.stdout)

    def _query_ss(self, port: int) -> list[tuple[int, str]]:
        """Query port owners using ss (Linux).

        Returns:
            (pid, process name) pairs
        """
        try:
            result = subprocess.run(
                ["ss", "-Htlnp", "sport", "=", f":{port}"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise OSQueryError(f"ss timed out on port {port}") from e

        if result.returncode != 0:
            raise OSQueryError(result.stderr.strip() or f"ss exited {result.returncode}")

        return parse_ss_users(result.stdout)

    def _get_command_line(self, pid: int) -> str | None:
        """Get the full command line of a process via ps."""
        try:
            result = subprocess.run(
                ["ps", "-o", "command=", "-p", str(pid)],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.SubprocessError, FileNotFoundError):
            return None
        command = result.stdout.strip()
        return command or None


def own_lineage() -> set[int]:
    """Get the PIDs of this process and every ancestor.

    A launcher such as ``sh -c`` or ``uv run`` carries the dev-server
    pattern in its own command line, so pattern kills must skip it.
    """
    pids = {os.getpid(), os.getppid()}
    try:
        pids.update(parent.pid for parent in psutil.Process().parents())
    except psutil.Error as e:
        logger.debug("Could not list parent processes: %s", e)
    return pids


def parse_lsof_fields(output: str) -> list[tuple[int, str]]:
    """Parse ``lsof -F pc`` output.

    Each process set starts with a ``p<pid>`` line followed by ``c<name>``;
    file-descriptor lines (``f...``) are ignored.

    Args:
        output: Raw lsof stdout

    Returns:
        Unique (pid, name) pairs in order of appearance
    """
    owners: list[tuple[int, str]] = []
    seen: set[int] = set()
    pid: int | None = None

    for line in output.splitlines():
        if line.startswith("p") and line[1:].isdigit():
            pid = int(line[1:])
        elif line.startswith("c") and pid is not None:
            if pid not in seen:
                seen.add(pid)
                owners.append((pid, line[1:]))
            pid = None
    return owners


_SS_USER = re.compile(r'\("([^"]*)",pid=(\d+)')


def parse_ss_users(output: str) -> list[tuple[int, str]]:
    """Parse the ``users:((...))`` column of ``ss -p`` output.

    Format: LISTEN 0 511 *:3000 *:* users:(("node",pid=4242,fd=21))

    Args:
        output: Raw ss stdout

    Returns:
        Unique (pid, name) pairs in order of appearance
    """
    owners: list[tuple[int, str]] = []
    seen: set[int] = set()
    for name, pid_str in _SS_USER.findall(output):
        pid = int(pid_str)
        if pid not in seen:
            seen.add(pid)
            owners.append((pid, name))
    return owners

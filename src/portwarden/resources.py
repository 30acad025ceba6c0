"""Read-only system resource snapshot."""

import logging
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)


@dataclass
class ResourceSnapshot:
    """Point-in-time memory, CPU and network figures."""

    memory_percent: float
    memory_used: int
    memory_total: int
    swap_percent: float
    cpu_percent: float
    cpu_count: int | None
    established_connections: int | None  # None when the OS denies access
    listening_ports: int | None


def collect_resources(cpu_interval: float = 0.1) -> ResourceSnapshot:
    """Collect a resource snapshot.

    Args:
        cpu_interval: Seconds to sample CPU usage over

    Returns:
        ResourceSnapshot
    """
    memory = psutil.virtual_memory()
    swap = psutil.swap_memory()

    established: int | None = None
    listening: int | None = None
    try:
        connections = psutil.net_connections(kind="tcp")
    except (psutil.AccessDenied, PermissionError) as e:
        # macOS requires root for system-wide connection listing
        logger.debug("Connection listing denied: %s", e)
    else:
        established = sum(1 for c in connections if c.status == psutil.CONN_ESTABLISHED)
        listening = len(
            {c.laddr.port for c in connections if c.status == psutil.CONN_LISTEN and c.laddr}
        )

    return ResourceSnapshot(
        memory_percent=memory.percent,
        memory_used=memory.used,
        memory_total=memory.total,
        swap_percent=swap.percent,
        cpu_percent=psutil.cpu_percent(interval=cpu_interval),
        cpu_count=psutil.cpu_count(),
        established_connections=established,
        listening_ports=listening,
    )

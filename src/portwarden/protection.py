"""Protection policy: which ports and processes must never be killed."""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .system import ProcessHandle

# Well-known service ports. None of these overlap the dev ports.
BUILTIN_PROTECTED_PORTS: Mapping[int, str] = MappingProxyType(
    {
        22: "SSH",
        25: "SMTP",
        53: "DNS",
        443: "HTTPS",
        631: "CUPS (printing)",
        1433: "Microsoft SQL Server",
        1521: "Oracle Database",
        2375: "Docker daemon",
        2376: "Docker daemon (TLS)",
        3306: "MySQL",
        5432: "PostgreSQL",
        5672: "RabbitMQ",
        5984: "CouchDB",
        6379: "Redis",
        8086: "InfluxDB",
        9042: "Cassandra",
        9092: "Kafka",
        9200: "Elasticsearch",
        11211: "Memcached",
        15672: "RabbitMQ Management",
        27017: "MongoDB",
    }
)

# Lowercase substrings matched against process names and command lines.
PROTECTED_PROCESS_PATTERNS: tuple[str, ...] = (
    "mysql",
    "mariadb",
    "postgres",
    "redis-server",
    "mongod",
    "docker",
    "containerd",
    "elasticsearch",
    "rabbitmq",
    "beam.smp",
    "kafka",
    "zookeeper",
    "memcached",
    "cassandra",
    "influxd",
    "couchdb",
    "sshd",
)


@dataclass(frozen=True)
class Classification:
    """Result of matching processes against the protected patterns."""

    has_critical: bool
    matched_services: frozenset[str] = field(default_factory=frozenset)


class ProtectionPolicy:
    """Decide whether a port or its processes are protected.

    Two independent axes: the port number (built-in table plus custom
    entries) and the bound processes (pattern match). Built-in tables are
    fixed at construction; custom entries are read on every call.
    """

    def __init__(
        self,
        custom_services: Callable[[], Mapping[int, str]],
        builtin_ports: Mapping[int, str] = BUILTIN_PROTECTED_PORTS,
        patterns: Iterable[str] = PROTECTED_PROCESS_PATTERNS,
    ) -> None:
        """Initialize policy.

        Args:
            custom_services: Returns the current custom port -> label mapping
            builtin_ports: Immutable built-in port -> label table
            patterns: Process name/command substrings
        """
        self._custom_services = custom_services
        self.builtin_ports = MappingProxyType(dict(builtin_ports))
        self.patterns = tuple(p.lower() for p in patterns)

    def is_port_protected(self, port: int) -> bool:
        """Check if a port is in the built-in table or the custom set."""
        return port in self.builtin_ports or port in self._custom_services()

    def is_builtin(self, port: int) -> bool:
        """Check if a port is in the built-in table."""
        return port in self.builtin_ports

    def protected_label(self, port: int) -> str | None:
        """Get the service label for a protected port.

        Built-in labels take precedence; custom entries never shadow them.
        """
        if port in self.builtin_ports:
            return self.builtin_ports[port]
        return self._custom_services().get(port)

    def custom_ports(self) -> dict[int, str]:
        """Get custom entries that are not also built-in."""
        return {
            port: label
            for port, label in self._custom_services().items()
            if port not in self.builtin_ports
        }

    def classify_processes(self, processes: Iterable[ProcessHandle]) -> Classification:
        """Match processes against the protected patterns.

        Args:
            processes: Already-fetched processes bound to a port

        Returns:
            Classification with the original-case names of matching processes
        """
        matched: set[str] = set()
        for proc in processes:
            name = proc.name.lower()
            command = proc.command.lower()
            if any(p in name or p in command for p in self.patterns):
                matched.add(proc.name)
        return Classification(has_critical=bool(matched), matched_services=frozenset(matched))

"""Plain-text rendering of manager reports."""

from datetime import datetime

from .manager import (
    DevServerReport,
    MonitorEvent,
    MonitorReport,
    PortKillReport,
    PortStatus,
    ProjectCleanupReport,
    ProtectedPortResult,
    ProtectedServicesReport,
    SelectiveCleanupReport,
)
from .resources import ResourceSnapshot
from .store import ProjectInfo


def format_bytes(num: float) -> str:
    """Format a byte count, e.g. 1536 -> '1.5 KiB'."""
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(num) < 1024 or unit == "TiB":
            return f"{num:.0f} {unit}" if unit == "B" else f"{num:.1f} {unit}"
        num /= 1024
    return f"{num:.1f} TiB"


def format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


def render_port_status(status: PortStatus) -> str:
    if not status.in_use:
        return f"🟢 Port {status.port} is available"
    lines = [f"🔴 Port {status.port} is in use:"]
    for proc in status.processes:
        lines.append(f"  • PID: {proc.pid}")
        lines.append(f"  • Process: {proc.name}")
        lines.append(f"  • Command: {proc.command}")
    return "\n".join(lines)


def _kill_lines(report: PortKillReport) -> list[str]:
    """Lines for one port: refusal, skip, idle or per-PID results."""
    port = report.port
    if report.protected_label is not None:
        return [f"🛡️ Port {port} is protected ({report.protected_label}) - not killed"]
    if report.matched_services:
        services = ", ".join(report.matched_services)
        return [f"🛡️ Port {port} runs critical service(s): {services} - not killed"]
    if report.error is not None:
        return [f"⚠️ Port {port} skipped: {report.error}"]
    if not report.processes:
        return [f"ℹ️ No processes found on port {port}"]

    if report.force:
        lines = [f"💀 Force killing processes on port {port}:"]
    else:
        lines = [f"⚡ Gracefully terminating processes on port {port}:"]
    names = {p.pid: p.name for p in report.processes}
    for t in report.terminations:
        if t.success:
            lines.append(f"  ✅ Killed PID {t.pid} ({names.get(t.pid, '?')})")
        else:
            lines.append(f"  ❌ Failed to kill PID {t.pid}: {t.error}")
    if report.freed is True:
        lines.append(f"✅ Port {port} is now free")
    elif report.freed is False:
        lines.append(f"⚠️ Some processes may still be running on port {port}")
    return lines


def render_kill_report(report: PortKillReport) -> str:
    return "\n".join(_kill_lines(report))


def render_dev_ports(statuses: list[PortStatus]) -> str:
    lines = ["🔍 Development Ports Status:", ""]
    for status in statuses:
        if status.top is None:
            lines.append(f"Port {status.port}: 🟢 Available")
        else:
            lines.append(
                f"Port {status.port}: 🔴 In-use "
                f"(PID: {status.top.pid}, Process: {status.top.name})"
            )
    return "\n".join(lines)


def render_resources(snapshot: ResourceSnapshot) -> str:
    def count(value: int | None) -> str:
        return "unavailable" if value is None else str(value)

    cores = f" across {snapshot.cpu_count} cores" if snapshot.cpu_count else ""
    return "\n".join(
        [
            "📊 System Resources:",
            "",
            f"💾 Memory: {snapshot.memory_percent:.1f}% used "
            f"({format_bytes(snapshot.memory_used)} of {format_bytes(snapshot.memory_total)})",
            f"🧠 Swap: {snapshot.swap_percent:.1f}% used",
            f"⚡ CPU: {snapshot.cpu_percent:.1f}%{cores}",
            "",
            "🌐 Network:",
            f"  • Established connections: {count(snapshot.established_connections)}",
            f"  • Listening ports: {count(snapshot.listening_ports)}",
        ]
    )


def render_dev_servers(report: DevServerReport) -> str:
    lines = [f"🔄 Killing {report.server_type} development servers:", ""]
    for entry in report.patterns:
        if entry.error is not None:
            lines.append(f'⚠️ Error searching for "{entry.pattern}": {entry.error}')
            continue
        for t in entry.terminations:
            if t.success:
                lines.append(f'✅ Killed PID {t.pid} matching "{entry.pattern}"')
            else:
                lines.append(f'❌ Failed to kill PID {t.pid} matching "{entry.pattern}": {t.error}')
        if entry.remaining:
            pids = ", ".join(str(pid) for pid in entry.remaining)
            lines.append(f'⚠️ Some processes may still be running matching "{entry.pattern}" (PID {pids})')
    if not any(entry.terminations for entry in report.patterns):
        lines.append(f"ℹ️ No {report.server_type} development servers found running")
    lines.append("")
    if report.remaining:
        lines.append(
            f"⚠️ Development server cleanup incomplete ({report.killed} killed, "
            f"{len(report.remaining)} still running)"
        )
    else:
        lines.append(f"✅ Development server cleanup complete ({report.killed} killed)")
    return "\n".join(lines)


def render_monitor_event(port: int, event: MonitorEvent) -> str:
    glyph = "🟢" if event.status == "Available" else "🔴"
    return f"[{event.timestamp:%H:%M:%S}] Port {port}: {glyph} {event.status}"


def render_monitor(report: MonitorReport) -> str:
    lines = [f"👁️ Monitoring port {report.port} for {report.duration:g} seconds...", ""]
    lines.extend(render_monitor_event(report.port, e) for e in report.events)
    lines.append("")
    lines.append(f"✅ Monitoring completed for port {report.port}")
    return "\n".join(lines)


def render_protected_services(report: ProtectedServicesReport) -> str:
    lines = ["🛡️ Protected Services:", "", "Built-in protected ports:"]
    for port, label in sorted(report.builtin.items()):
        lines.append(f"  • {port}: {label}")
    if report.custom:
        lines.append("")
        lines.append("Custom protected ports:")
        for port, label in sorted(report.custom.items()):
            lines.append(f"  • {port}: {label}")
    lines.append("")
    lines.append("Protected process patterns:")
    lines.append(f"  {', '.join(report.patterns)}")
    lines.append("")
    if report.running:
        lines.append("Currently running protected services:")
        for service in report.running:
            names = ", ".join(sorted({p.name for p in service.processes}))
            lines.append(f"  🟢 {service.port} ({service.label}): {names}")
    else:
        lines.append("No protected services currently detected")
    return "\n".join(lines)


def render_selective(report: SelectiveCleanupReport) -> str:
    lines = ["🧹 Selective development server cleanup:", ""]
    if not report.ports:
        lines.append("ℹ️ No development ports in use")
    for entry in report.ports:
        lines.extend(_kill_lines(entry))
    lines.append("")
    lines.append(f"✅ Cleaned {report.cleaned} port(s)")
    return "\n".join(lines)


def render_project_added(project: ProjectInfo) -> str:
    ports = ", ".join(str(p) for p in project.ports) or "none"
    return (
        f"✅ Registered project '{project.name}' ({project.framework})\n"
        f"  • Directory: {project.directory}\n"
        f"  • Ports: {ports}"
    )


def render_projects(projects: list[ProjectInfo]) -> str:
    if not projects:
        return "ℹ️ No active projects registered"
    lines = ["📁 Active Projects:", ""]
    for project in projects:
        ports = ", ".join(str(p) for p in project.ports) or "none"
        lines.append(f"• {project.name} ({project.framework})")
        lines.append(f"  Directory: {project.directory}")
        lines.append(f"  Ports: {ports}")
        lines.append(f"  Last active: {format_timestamp(project.last_active)}")
    return "\n".join(lines)


def render_project_cleanup(report: ProjectCleanupReport) -> str:
    lines = [f"🧹 Cleaning up ports for project '{report.project.name}':", ""]
    if not report.ports:
        lines.append("ℹ️ Project has no registered ports")
    for entry in report.ports:
        lines.extend(_kill_lines(entry))
    cleaned = sum(1 for entry in report.ports if entry.signaled)
    lines.append("")
    lines.append(f"✅ Cleaned {cleaned} of {len(report.ports)} port(s)")
    return "\n".join(lines)


def render_protected_port(result: ProtectedPortResult) -> str:
    if result.builtin:
        return f"ℹ️ Port {result.port} is already protected as a built-in service ({result.label})"
    return f"🛡️ Port {result.port} is now protected ({result.label})"


def render_unprotected_port(result: ProtectedPortResult) -> str:
    return f"✅ Port {result.port} ({result.label}) is no longer protected"

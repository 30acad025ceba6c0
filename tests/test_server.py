"""Tests for the MCP tool functions."""

import asyncio

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from conftest import proc
from portwarden import server


@pytest.fixture(autouse=True)
def wired(manager):
    server.set_manager(manager)
    yield
    server.set_manager(None)


def test_check_port_tool(scanner):
    assert server.check_port(3000) == "🟢 Port 3000 is available"

    scanner.bind(3000, proc(10, "node", "node server.js"))
    text = server.check_port(3000)
    assert "🔴 Port 3000 is in use" in text
    assert "Command: node server.js" in text


def test_invalid_port_is_tool_error():
    with pytest.raises(ToolError, match="Invalid port number: 70000"):
        server.check_port(70000)


def test_kill_port_refusal_is_not_an_error(scanner):
    scanner.bind(3306, proc(11, "mysqld"))

    text = server.kill_port(3306)

    assert "protected (MySQL)" in text
    assert scanner.signals == []


def test_kill_port_tool(scanner):
    scanner.bind(3000, proc(12, "node"))

    text = server.kill_port(3000, force=True)

    assert "Force killing" in text
    assert "Killed PID 12" in text
    assert "Port 3000 is now free" in text


def test_kill_dev_servers_unknown_type():
    with pytest.raises(ToolError, match="Unknown server type"):
        server.kill_dev_servers("rails")


def test_kill_dev_servers_reports_survivors(scanner):
    scanner.commands["vite"] = [930]
    scanner.stubborn.add(930)

    text = server.kill_dev_servers("vite")

    assert 'Some processes may still be running matching "vite" (PID 930)' in text
    assert "cleanup complete" not in text


def test_project_tools(scanner):
    text = server.add_project("shop", "/srv/shop", [3000, 3001], "Next.js")
    assert "Registered project 'shop'" in text

    assert "shop (Next.js)" in server.list_active_projects()

    scanner.bind(3001, proc(13, "node"))
    text = server.kill_project_ports("SHOP")
    assert "Killed PID 13" in text
    assert "Cleaned 1 of 2 port(s)" in text

    with pytest.raises(ToolError, match="not found"):
        server.kill_project_ports("ghost")

    assert "Removed project 'shop'" in server.remove_project("shop")


def test_protected_port_tools():
    assert "now protected (Local API)" in server.add_protected_port(4000, "Local API")
    assert "4000: Local API" in server.list_protected_services()
    assert "built-in service (SSH)" in server.add_protected_port(22, "My SSH")
    assert "no longer protected" in server.remove_protected_port(4000)

    with pytest.raises(ToolError):
        server.remove_protected_port(22)


def test_monitor_tool(scanner):
    text = server.monitor_port(3000, 10)
    assert text.count("Port 3000: 🟢 Available") == 1
    assert "Monitoring completed for port 3000" in text


def test_misc_tools(scanner):
    scanner.bind(5173, proc(14, "node"))
    assert "Port 5173: 🔴 In-use (PID: 14, Process: node)" in server.list_dev_ports()
    assert "Cleaned 1 port(s)" in server.kill_dev_servers_selective()
    assert "Established connections: 17" in server.system_resources()


def test_tools_are_registered():
    """Test the full tool surface is exposed by the MCP server."""
    names = {tool.name for tool in asyncio.run(server.mcp.list_tools())}
    assert names == {
        "check_port",
        "kill_port",
        "list_dev_ports",
        "system_resources",
        "kill_dev_servers",
        "monitor_port",
        "list_protected_services",
        "kill_dev_servers_selective",
        "add_project",
        "list_active_projects",
        "kill_project_ports",
        "remove_project",
        "add_protected_port",
        "remove_protected_port",
    }

"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from conftest import proc
from portwarden import __version__
from portwarden.cli import app
from portwarden.manager import ResourceManager

runner = CliRunner()


@pytest.fixture(autouse=True)
def wired(manager, monkeypatch):
    monkeypatch.setattr(ResourceManager, "create", lambda *args, **kwargs: manager)


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check(scanner):
    scanner.bind(3000, proc(10, "node"))

    result = runner.invoke(app, ["check", "3000"])

    assert result.exit_code == 0
    assert "Port 3000 is in use" in result.output
    assert "PID: 10" in result.output


def test_check_invalid_port(scanner):
    result = runner.invoke(app, ["check", "0"])

    assert result.exit_code == 1
    assert "Invalid port number" in result.output
    assert scanner.queries == []


def test_kill_refuses_protected(scanner):
    scanner.bind(5432, proc(11, "postgres"))

    result = runner.invoke(app, ["kill", "5432", "--force"])

    assert result.exit_code == 0
    assert "PostgreSQL" in result.output
    assert scanner.signals == []


def test_kill(scanner):
    scanner.bind(3000, proc(12, "node"))

    result = runner.invoke(app, ["kill", "3000"])

    assert result.exit_code == 0
    assert scanner.signals == [(12, False)]
    assert "now free" in result.output


def test_dev_ports(scanner):
    scanner.bind(4321, proc(13, "node"))

    result = runner.invoke(app, ["dev-ports"])

    assert result.exit_code == 0
    assert "4321" in result.output
    assert "node" in result.output


def test_kill_dev_unknown_type():
    result = runner.invoke(app, ["kill-dev", "rails"])
    assert result.exit_code == 1
    assert "Unknown server type" in result.output


def test_cleanup(scanner):
    scanner.bind(3000, proc(14, "node"))
    scanner.bind(8000, proc(15, "mongod"))

    result = runner.invoke(app, ["cleanup"])

    assert result.exit_code == 0
    assert scanner.signals == [(14, False)]
    assert "Cleaned 1 port(s)" in result.output


def test_monitor_prints_events(scanner):
    result = runner.invoke(app, ["monitor", "3000", "--duration", "10"])

    assert result.exit_code == 0
    assert result.output.count("Available") == 1


def test_monitor_invalid_duration():
    result = runner.invoke(app, ["monitor", "3000", "--duration", "1000"])
    assert result.exit_code == 1
    assert "Invalid duration" in result.output


def test_protect_and_unprotect(store):
    result = runner.invoke(app, ["protect", "4000", "Local API"])
    assert result.exit_code == 0
    assert store.get_custom_protected_services() == {4000: "Local API"}

    result = runner.invoke(app, ["protected"])
    assert result.exit_code == 0
    assert "4000" in result.output

    result = runner.invoke(app, ["unprotect", "4000"])
    assert result.exit_code == 0
    assert store.get_protected_ports() == []

    result = runner.invoke(app, ["unprotect", "22"])
    assert result.exit_code == 1


def test_project_commands(scanner, store, temp_dir):
    result = runner.invoke(
        app,
        ["project", "add", "shop", "-p", "3000", "-p", "3001", "-F", "Next.js", "-d", str(temp_dir)],
    )
    assert result.exit_code == 0
    project = store.find_project("shop")
    assert project.ports == [3000, 3001]
    assert project.directory == str(temp_dir)

    result = runner.invoke(app, ["project", "list"])
    assert result.exit_code == 0
    assert "shop" in result.output

    scanner.bind(3000, proc(16, "node"))
    result = runner.invoke(app, ["project", "kill", "SHOP"])
    assert result.exit_code == 0
    assert scanner.signals == [(16, False)]

    result = runner.invoke(app, ["project", "remove", "shop"])
    assert result.exit_code == 0
    assert store.get_active_projects() == []

    result = runner.invoke(app, ["project", "kill", "shop"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_resources():
    result = runner.invoke(app, ["resources"])
    assert result.exit_code == 0
    assert "42.0% used" in result.output

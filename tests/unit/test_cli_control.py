"""Tests for commands that talk to a live view."""
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from panetree.cli import cli
from panetree.models.message import Ping, Pong, Ready, Refresh, SetCwd


@pytest.fixture
def runner():
    """Provide a Click test runner."""
    return CliRunner()


@pytest.fixture
def send():
    with patch("panetree.cli.control.send_command") as mock_send:
        yield mock_send


def test_ping_prints_reply(runner, send, isolated_config, tmp_path):
    send.return_value = Pong()

    result = runner.invoke(cli, ["ping", "%3"])

    assert result.exit_code == 0
    assert result.output.strip() == "pong"
    socket_path, msg = send.call_args[0]
    assert socket_path == tmp_path / "state" / "3.sock"
    assert msg == Ping()
    assert send.call_args[1]["timeout"] == 3.0


def test_no_reply_fails(runner, send, isolated_config):
    send.return_value = None

    result = runner.invoke(cli, ["refresh", "%3"])

    assert result.exit_code != 0
    assert "No response from view" in result.output


def test_refresh(runner, send, isolated_config):
    send.return_value = Ready()

    result = runner.invoke(cli, ["refresh", "%3"])

    assert result.exit_code == 0
    assert send.call_args[0][1] == Refresh()


def test_cd_sends_resolved_directory(runner, send, isolated_config, tmp_path):
    send.return_value = Ready()
    target = tmp_path / "elsewhere"
    target.mkdir()

    result = runner.invoke(cli, ["cd", "%3", "--cwd", str(target)])

    assert result.exit_code == 0
    assert send.call_args[0][1] == SetCwd(cwd=str(target.resolve()))


def test_cd_rejects_missing_directory(runner, send, isolated_config, tmp_path):
    result = runner.invoke(cli, ["cd", "%3", "--cwd", str(tmp_path / "missing")])

    assert result.exit_code != 0
    send.assert_not_called()


def test_defaults_to_current_pane(runner, send, isolated_config, tmp_path, monkeypatch):
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,1,0")
    monkeypatch.setenv("TMUX_PANE", "%8")
    send.return_value = Pong()

    result = runner.invoke(cli, ["ping"])

    assert result.exit_code == 0
    assert send.call_args[0][0] == tmp_path / "state" / "8.sock"


def test_no_id_outside_tmux(runner, send, isolated_config, monkeypatch):
    monkeypatch.delenv("TMUX", raising=False)

    result = runner.invoke(cli, ["ping"])

    assert result.exit_code != 0
    assert "not inside tmux" in result.output
    send.assert_not_called()

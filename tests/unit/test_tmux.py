"""Tests for the tmux adapter."""
import subprocess
from unittest.mock import patch

import pytest

from panetree.models.pane import Pane
from panetree.tmux import Tmux


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


@pytest.fixture
def tmux():
    return Tmux(timeout=2.0)


def test_available_only_inside_tmux(tmux, monkeypatch):
    monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,1234,0")
    assert tmux.is_available

    monkeypatch.delenv("TMUX")
    assert not tmux.is_available


def test_current_pane_prefers_environment(tmux, monkeypatch):
    monkeypatch.setenv("TMUX_PANE", "%7")

    with patch("panetree.tmux.proc.run") as mock_run:
        assert tmux.current_pane_id() == "%7"

    mock_run.assert_not_called()


def test_current_pane_falls_back_to_display_message(tmux, monkeypatch):
    monkeypatch.delenv("TMUX_PANE", raising=False)

    with patch("panetree.tmux.proc.run", return_value=_completed(stdout="%3\n")) as mock_run:
        assert tmux.current_pane_id() == "%3"

    args = mock_run.call_args[0][0]
    assert args == ["tmux", "display-message", "-p", "#{pane_id}"]
    assert mock_run.call_args[1]["timeout"] == 2.0


def test_current_pane_unknown(tmux, monkeypatch):
    monkeypatch.delenv("TMUX_PANE", raising=False)

    with patch("panetree.tmux.proc.run", return_value=_completed(returncode=1)):
        assert tmux.current_pane_id() is None


def test_list_panes(tmux):
    output = "%1 0\n%2 1\n\n%5 0\n"
    with patch("panetree.tmux.proc.run", return_value=_completed(stdout=output)):
        panes = tmux.list_panes()

    assert panes == [Pane(id="%1"), Pane(id="%2", active=True), Pane(id="%5")]


def test_list_panes_failure_is_empty(tmux):
    with patch("panetree.tmux.proc.run", side_effect=FileNotFoundError("tmux")):
        assert tmux.list_panes() == []


def test_pane_exists(tmux):
    with patch("panetree.tmux.proc.run", return_value=_completed(stdout="%4\n")) as mock_run:
        assert tmux.pane_exists("%4")
    assert mock_run.call_args[0][0] == ["tmux", "display-message", "-t", "%4", "-p", "#{pane_id}"]
    assert mock_run.call_args[1]["quiet"] is True

    with patch("panetree.tmux.proc.run", return_value=_completed(returncode=1, stderr="can't find pane")):
        assert not tmux.pane_exists("%4")


def test_split_window(tmux):
    with patch("panetree.tmux.proc.run", return_value=_completed(stdout="%9\n")) as mock_run:
        pane_id = tmux.split_window("panetree show", 25, target="%1")

    assert pane_id == "%9"
    assert mock_run.call_args[0][0] == [
        "tmux", "split-window", "-h", "-p", "25", "-d", "-P", "-F", "#{pane_id}",
        "-t", "%1", "panetree show",
    ]


def test_split_window_without_target(tmux):
    with patch("panetree.tmux.proc.run", return_value=_completed(stdout="%9\n")) as mock_run:
        tmux.split_window("cmd", 30)

    assert "-t" not in mock_run.call_args[0][0]


def test_split_window_failure(tmux):
    with patch("panetree.tmux.proc.run", return_value=_completed(returncode=1, stderr="no space for new pane")):
        assert tmux.split_window("cmd", 25) is None

    with patch("panetree.tmux.proc.run", side_effect=subprocess.TimeoutExpired(["tmux"], 2.0)):
        assert tmux.split_window("cmd", 25) is None


def test_pane_commands(tmux):
    with patch("panetree.tmux.proc.run", return_value=_completed()) as mock_run:
        assert tmux.send_keys("%2", "C-c")
        assert tmux.select_pane("%1")
        assert tmux.kill_pane("%2")

    commands = [c[0][0] for c in mock_run.call_args_list]
    assert commands == [
        ["tmux", "send-keys", "-t", "%2", "C-c"],
        ["tmux", "select-pane", "-t", "%1"],
        ["tmux", "kill-pane", "-t", "%2"],
    ]


def test_custom_binary():
    with patch("panetree.tmux.proc.run", return_value=_completed()) as mock_run:
        Tmux(binary="/opt/bin/tmux").kill_pane("%2")

    assert mock_run.call_args[0][0][0] == "/opt/bin/tmux"

"""Tests for config CLI commands."""
import pytest
from click.testing import CliRunner

from panetree.cli import cli
from panetree.cli.config import config
from panetree.config import Config, set_config


@pytest.fixture
def runner():
    """Provide a Click test runner."""
    return CliRunner()


def test_config_show_toml(runner, reset_global_config):
    """Test panetree config show command with TOML output."""
    set_config(Config(tree={"max_depth": 2}, pane={"state_dir": "/test/state"}))

    result = runner.invoke(config, ['show'])

    assert result.exit_code == 0
    output = result.output
    assert "[tree]" in output
    assert "[pane]" in output
    assert "max_depth = 2" in output
    assert 'state_dir = "/test/state"' in output


def test_config_show_env(runner, reset_global_config):
    """Test panetree config show --format=env command."""
    set_config(Config(watch={"debounce_ms": 50}, view={"editor": "vim"}))

    result = runner.invoke(config, ['show', '--format', 'env'])

    assert result.exit_code == 0
    output_lines = set(result.output.strip().split('\n'))
    assert "PANETREE_WATCH_DEBOUNCE_MS=50" in output_lines
    assert "PANETREE_VIEW_EDITOR=vim" in output_lines
    assert "PANETREE_TREE_MAX_ENTRIES=200" in output_lines


def test_config_show_invalid_format(runner):
    """Unknown formats are rejected by click."""
    result = runner.invoke(config, ['show', '--format', 'yaml'])

    assert result.exit_code != 0


def test_config_show_through_main_group(runner, reset_global_config):
    """The config group is reachable from the top-level command."""
    set_config(Config())

    result = runner.invoke(cli, ['config', 'show'])

    assert result.exit_code == 0
    assert "[watch]" in result.output

"""Shared test fixtures."""
import pytest

from panetree.config import Config, PaneConfig, set_config
from panetree.models.pane import Pane


class FakeTmux:
    """In-memory stand-in for :class:`panetree.tmux.Tmux`."""

    def __init__(self, current="%1", available=True):
        self.current = current
        self.available = available
        self.panes = {current: True} if current else {}
        self.calls = []
        self.next_id = 10
        self.fail_split = False

    @property
    def is_available(self):
        return self.available

    def current_pane_id(self):
        return self.current

    def list_panes(self):
        return [Pane(id=pane_id, active=active) for pane_id, active in self.panes.items()]

    def pane_exists(self, pane_id):
        self.calls.append(("pane_exists", pane_id))
        return pane_id in self.panes

    def split_window(self, command, percent, target=None):
        self.calls.append(("split_window", command, percent, target))
        if self.fail_split:
            return None
        pane_id = f"%{self.next_id}"
        self.next_id += 1
        self.panes[pane_id] = False
        return pane_id

    def send_keys(self, pane_id, *keys):
        self.calls.append(("send_keys", pane_id, keys))
        return pane_id in self.panes

    def select_pane(self, pane_id):
        self.calls.append(("select_pane", pane_id))
        for other in self.panes:
            self.panes[other] = other == pane_id
        return pane_id in self.panes

    def kill_pane(self, pane_id):
        self.calls.append(("kill_pane", pane_id))
        return self.panes.pop(pane_id, None) is not None


@pytest.fixture
def fake_tmux():
    """A tmux with one pane, %1, that the caller runs in."""
    return FakeTmux()


@pytest.fixture
def pane_config(tmp_path):
    """Pane settings keeping identity files and sockets under tmp_path."""
    return PaneConfig(state_dir=str(tmp_path / "state"), settle_delay_ms=0)


@pytest.fixture
def reset_global_config():
    """Restore the global config after the test."""
    from panetree import config as config_module

    original = config_module._config
    yield
    set_config(original)


@pytest.fixture
def isolated_config(tmp_path, reset_global_config, monkeypatch):
    """Global config pointing its state directory at tmp_path."""
    monkeypatch.setenv("PANETREE_CONFIG_FILE", str(tmp_path / "missing.toml"))
    config = Config(pane={"state_dir": str(tmp_path / "state")})
    set_config(config)
    return config

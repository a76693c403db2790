"""One tree pane per originating tmux pane.

Which pane belongs to which origin is recorded in an identity file keyed by
the originating pane. The file alone is never trusted: tmux is asked whether
the recorded pane still exists before every decision, because the user can
close the pane without telling us.
"""
import logging
import shlex
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from .config import PaneConfig, get_config
from .exceptions import MultiplexerNotFound
from .tmux import Tmux
from .utils import get_identity_path, get_socket_path, get_state_dir

logger = logging.getLogger(__name__)


class PaneState(str, Enum):
    """Whether an origin currently has a live tree pane."""

    NO_PANE = "no_pane"
    PANE_ACTIVE = "pane_active"


class IdentityFile:
    """Persisted id of the tree pane spawned from one origin."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> Optional[str]:
        try:
            pane_id = self.path.read_text().strip()
        except OSError:
            return None
        return pane_id or None

    def write(self, pane_id: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(pane_id)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove identity file {self.path}: {e}")


def build_view_command(cwd: Union[str, Path], socket_path: Union[str, Path]) -> str:
    """Shell command line that runs the live view."""
    parts = [sys.executable, "-m", "panetree", "show", "--cwd", str(cwd), "--socket", str(socket_path)]
    return " ".join(shlex.quote(part) for part in parts)


class PaneLifecycle:
    """Create, reuse and close the tree pane of the calling tmux pane."""

    def __init__(
        self,
        tmux: Optional[Tmux] = None,
        config: Optional[PaneConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or get_config().pane
        self.tmux = tmux or Tmux(timeout=self.config.tmux_timeout)
        self.state_dir = get_state_dir(base=self.config.state_dir or None)
        self.sleep = sleep

    def source_pane(self) -> str:
        """The originating pane.

        Raises:
            MultiplexerNotFound: Not inside tmux, or tmux cannot name our pane
        """
        if not self.tmux.is_available:
            raise MultiplexerNotFound()
        pane_id = self.tmux.current_pane_id()
        if not pane_id:
            raise MultiplexerNotFound("Could not determine the current tmux pane.")
        return pane_id

    def identity(self, source: str) -> IdentityFile:
        return IdentityFile(get_identity_path(source, self.state_dir))

    def socket_path(self, source: str) -> Path:
        return get_socket_path(source, self.state_dir)

    def _live_pane(self, identity: IdentityFile) -> Optional[str]:
        pane_id = identity.read()
        if pane_id and self.tmux.pane_exists(pane_id):
            return pane_id
        return None

    def state(self, source: Optional[str] = None) -> PaneState:
        """Current state for ``source``, verified against tmux."""
        source = source or self.source_pane()
        if self._live_pane(self.identity(source)):
            return PaneState.PANE_ACTIVE
        return PaneState.NO_PANE

    def toggle(self, cwd: Union[str, Path]) -> Optional[str]:
        """Close the tree pane if it is live, otherwise create one at ``cwd``.

        Returns:
            The new pane's id, or None when a pane was closed or creation failed
        """
        source = self.source_pane()
        identity = self.identity(source)

        if self._live_pane(identity):
            self.close(source)
            return None

        identity.clear()
        return self._create(cwd, source, identity)

    def spawn(self, cwd: Union[str, Path]) -> Optional[str]:
        """Show the tree at ``cwd``, redirecting a live pane instead of adding one.

        Returns:
            The id of the pane showing the tree, or None on failure
        """
        source = self.source_pane()
        identity = self.identity(source)

        pane_id = self._live_pane(identity)
        if pane_id:
            return pane_id if self._reuse(pane_id, cwd, source) else None

        identity.clear()
        return self._create(cwd, source, identity)

    def close(self, source: Optional[str] = None) -> None:
        """Kill the tree pane if it is live and always forget its identity."""
        source = source or self.source_pane()
        identity = self.identity(source)

        pane_id = self._live_pane(identity)
        if pane_id:
            logger.info(f"Closing tree pane {pane_id}")
            self.tmux.kill_pane(pane_id)

        identity.clear()

    def _create(self, cwd: Union[str, Path], source: str, identity: IdentityFile) -> Optional[str]:
        command = build_view_command(cwd, self.socket_path(source))
        pane_id = self.tmux.split_window(command, self.config.split_percent, target=source)
        if not pane_id:
            logger.error(f"Failed to create tree pane next to {source}")
            return None

        try:
            identity.write(pane_id)
        except OSError as e:
            logger.warning(f"Could not record tree pane {pane_id}: {e}")

        # split-window -d should leave focus alone, but make sure of it
        self.tmux.select_pane(source)
        logger.info(f"Created tree pane {pane_id} for {source}")
        return pane_id

    def _reuse(self, pane_id: str, cwd: Union[str, Path], source: str) -> bool:
        if not self.tmux.send_keys(pane_id, "C-c"):
            return False
        # Let the interrupt land before the shell accepts a new line
        self.sleep(self.config.settle_delay_ms / 1000)

        command = build_view_command(cwd, self.socket_path(source))
        if not self.tmux.send_keys(pane_id, f"clear && {command}", "Enter"):
            return False
        logger.info(f"Reused tree pane {pane_id} at {cwd}")
        return True

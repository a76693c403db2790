"""tmux adapter.

Every call is bounded by a timeout and reports failure as a value (``None``,
``False`` or an empty list) rather than an exception; callers re-derive
state from the next call instead of retrying.
"""
import logging
import os
import subprocess
from typing import List, Optional

from . import proc
from .models.pane import Pane

logger = logging.getLogger(__name__)


class Tmux:
    """Thin wrapper over the tmux command line."""

    def __init__(self, timeout: float = 5.0, binary: str = "tmux"):
        self.timeout = timeout
        self.binary = binary

    @property
    def is_available(self) -> bool:
        """True when running inside a tmux session."""
        return bool(os.environ.get("TMUX"))

    def _run(self, *args: str, quiet: bool = False) -> Optional[subprocess.CompletedProcess]:
        try:
            return proc.run([self.binary, *args], quiet=quiet, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"tmux {args[0]} failed: {e}")
            return None

    def _ok(self, *args: str, quiet: bool = False) -> bool:
        result = self._run(*args, quiet=quiet)
        return result is not None and result.returncode == 0

    def current_pane_id(self) -> Optional[str]:
        """The pane this process runs in.

        ``$TMUX_PANE`` names our own pane; ``display-message`` would name the
        client's active pane, which is only a fallback.
        """
        pane_id = os.environ.get("TMUX_PANE")
        if pane_id:
            return pane_id
        result = self._run("display-message", "-p", "#{pane_id}")
        if result is None or result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def list_panes(self) -> List[Pane]:
        """Panes of the current window with their focus flag."""
        result = self._run("list-panes", "-F", "#{pane_id} #{pane_active}", quiet=True)
        if result is None or result.returncode != 0:
            return []

        panes = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if parts:
                panes.append(Pane(id=parts[0], active=len(parts) > 1 and parts[1] == "1"))
        return panes

    def pane_exists(self, pane_id: str) -> bool:
        """Liveness probe for ``pane_id``."""
        return self._ok("display-message", "-t", pane_id, "-p", "#{pane_id}", quiet=True)

    def split_window(self, command: str, percent: int, target: Optional[str] = None) -> Optional[str]:
        """Split a pane horizontally without focusing it and run ``command``.

        Returns:
            The new pane's id as printed by tmux, or None on failure
        """
        args = ["split-window", "-h", "-p", str(percent), "-d", "-P", "-F", "#{pane_id}"]
        if target:
            args += ["-t", target]
        args.append(command)

        result = self._run(*args)
        if result is None or result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def send_keys(self, pane_id: str, *keys: str) -> bool:
        return self._ok("send-keys", "-t", pane_id, *keys)

    def select_pane(self, pane_id: str) -> bool:
        return self._ok("select-pane", "-t", pane_id)

    def kill_pane(self, pane_id: str) -> bool:
        return self._ok("kill-pane", "-t", pane_id)

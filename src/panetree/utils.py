"""Utility functions for panetree."""
import os
import re
from pathlib import Path
from typing import Optional


def safe_id(identifier: str) -> str:
    """
    Reduce an identifier to the characters that are safe in a file name.

    Args:
        identifier: A tmux pane identifier or any caller-supplied id

    Returns:
        The identifier with every non-alphanumeric character removed

    Example:
        >>> safe_id("%12")
        '12'
    """
    return re.sub(r'[^a-zA-Z0-9]', '', identifier)


def get_state_dir(user: Optional[str] = None, base: Optional[str] = None) -> Path:
    """
    Directory holding identity files and control sockets.

    Args:
        user: Owner name used in the default location ($USER when omitted)
        base: Explicit directory, overriding the default

    Returns:
        ``base`` when given, otherwise ``/tmp/panetree-<user>``
    """
    if base:
        return Path(base).expanduser()
    user = user or os.getenv("USER", "nobody")
    return Path(f"/tmp/panetree-{user}")


def get_identity_path(source_pane_id: str, state_dir: Optional[Path] = None) -> Path:
    """Identity file recording the tree pane spawned from ``source_pane_id``."""
    state_dir = state_dir or get_state_dir()
    return state_dir / f"pane-{safe_id(source_pane_id)}"


def get_socket_path(identifier: str, state_dir: Optional[Path] = None) -> Path:
    """Control socket for the view keyed by ``identifier``."""
    state_dir = state_dir or get_state_dir()
    return state_dir / f"{safe_id(identifier)}.sock"

"""Hand the terminal to an editor or a diff pager.

These calls block until the program exits. The caller is responsible for
giving up the terminal first (see ``PaneTreeApp.open_selected``).
"""
import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from . import proc

logger = logging.getLogger(__name__)


def get_editor(configured: str = "") -> str:
    return configured or os.environ.get("EDITOR") or os.environ.get("VISUAL") or "less"


def get_pager(configured: str = "") -> str:
    return configured or os.environ.get("PAGER") or "less"


def is_tracked(rel_path: str, cwd: Union[str, Path]) -> bool:
    """Whether git knows ``rel_path``."""
    try:
        result = proc.run(["git", "ls-files", "--", rel_path], cwd=str(cwd), quiet=True, timeout=5)
    except (OSError, subprocess.SubprocessError):
        return False
    return result.returncode == 0 and bool(result.stdout.strip())


def diff_command(rel_path: str, cwd: Union[str, Path], pager: str = "") -> str:
    """Shell pipeline showing the working-tree diff of ``rel_path``.

    Untracked files are diffed against /dev/null. Output goes through delta
    when it is installed.
    """
    quoted = shlex.quote(rel_path)
    if is_tracked(rel_path, cwd):
        target = f"-- {quoted}"
    else:
        target = f"--no-index -- /dev/null {quoted}"

    if shutil.which("delta"):
        return (
            f"git diff {target} | delta --line-numbers --paging=never "
            f"--hunk-header-style='line-number syntax' --hunk-header-decoration-style='' "
            f"--file-style='yellow bold' --file-decoration-style='yellow ul' | less -RXS"
        )
    pager = get_pager(pager)
    pager_cmd = "less -RXS" if pager == "less" else pager
    return f"git diff --color=always {target} | {pager_cmd}"


def open_command(path: Union[str, Path], cwd: Union[str, Path], git_mode: bool,
                 editor: str = "", pager: str = "") -> List[str]:
    """Argument vector that opens ``path``: its diff in git mode, else the editor."""
    if git_mode:
        rel_path = os.path.relpath(str(path), str(cwd))
        return ["sh", "-c", diff_command(rel_path, cwd, pager)]
    return [*shlex.split(get_editor(editor)), str(path)]


def run_in_terminal(argv: List[str], cwd: Union[str, Path]) -> Optional[int]:
    """Run ``argv`` on the inherited terminal and wait for it.

    Returns:
        The exit status, or None if it could not be started. Callers only
        care that it returned.
    """
    env = dict(os.environ)
    env.setdefault("TERM", "xterm-256color")
    logger.debug(f"Handing terminal to: {' '.join(argv)}")
    try:
        return subprocess.run(argv, cwd=str(cwd), env=env).returncode
    except OSError as e:
        logger.warning(f"Could not run {argv[0]}: {e}")
        return None

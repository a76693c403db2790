"""Build node forests from the filesystem or from git status.

Both builders absorb every filesystem and subprocess error: an unreadable
directory contributes no children and an unavailable git contributes no
changes. The view must keep running whatever the disk looks like.
"""
import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from .. import proc
from ..models.node import GitStatus, Node, sort_key
from .ignore import DEFAULT_IGNORE, IgnoreRules

logger = logging.getLogger(__name__)

Forest = Tuple[Node, ...]


def _sorted_entries(directory: Path) -> Optional[List[Tuple[str, bool]]]:
    """List ``(name, is_dir)`` pairs, directories first, or ``None`` if unreadable."""
    entries = []
    try:
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False
                entries.append((entry.name, is_dir))
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return None

    entries.sort(key=lambda item: (not item[1], item[0]))
    return entries


def walk_tree(
    root: Union[str, Path],
    max_depth: int = 4,
    max_entries: int = 200,
    rules: Optional[IgnoreRules] = None,
) -> Forest:
    """Walk ``root`` into a forest of nodes.

    Args:
        root: Directory to walk
        max_depth: Deepest level whose contents are listed; the root is level 0
        max_entries: Total nodes emitted across the whole walk. Once reached,
            nothing further is emitted anywhere, in traversal order.
        rules: Ignore rules; defaults to the static names plus ``root/.gitignore``

    Returns:
        Root-level nodes, directories first
    """
    root_path = Path(root).resolve()
    if rules is None:
        rules = IgnoreRules.for_root(root_path)

    emitted = 0

    def walk(directory: Path, depth: int) -> Forest:
        nonlocal emitted
        if depth > max_depth or emitted >= max_entries:
            return ()

        entries = _sorted_entries(directory)
        if entries is None:
            return ()

        nodes = []
        for name, is_dir in entries:
            if emitted >= max_entries:
                break

            full_path = directory / name
            rel_path = full_path.relative_to(root_path).as_posix()
            if rules.matches(name, rel_path, is_dir):
                continue

            emitted += 1
            children = walk(full_path, depth + 1) if is_dir else ()
            nodes.append(Node(name=name, path=str(full_path), is_dir=is_dir, children=children))

        return tuple(nodes)

    forest = walk(root_path, 0)
    logger.debug(f"Walked {root_path}: {emitted} entries")
    return forest


class GitChange(NamedTuple):
    """One path reported by git status."""
    rel_path: str
    status: GitStatus


def _status_from_code(xy: str) -> GitStatus:
    if "?" in xy:
        return GitStatus.UNTRACKED
    if "D" in xy:
        return GitStatus.DELETED
    if "R" in xy:
        return GitStatus.RENAMED
    if "A" in xy:
        return GitStatus.ADDED
    return GitStatus.MODIFIED


def parse_status_output(output: str) -> List[GitChange]:
    """Parse ``git status --porcelain -z`` output.

    Entries are NUL-terminated and paths are written verbatim. A rename or
    copy entry is followed by an extra field holding the source path; the
    change is placed at the destination.

    Example:
        >>> parse_status_output(" M src/app.py\\0R  new.txt\\0old.txt\\0")
        [GitChange(rel_path='src/app.py', status=<GitStatus.MODIFIED: 'M'>), GitChange(rel_path='new.txt', status=<GitStatus.RENAMED: 'R'>)]
    """
    changes = []
    fields = iter(output.split("\0"))
    for entry in fields:
        if len(entry) < 4:
            continue
        xy = entry[:2]
        if "R" in xy or "C" in xy:
            next(fields, None)

        path = entry[3:].rstrip("/")
        if path:
            changes.append(GitChange(path, _status_from_code(xy)))
    return changes


def _run_git(root: Path, args: List[str], timeout: float) -> Optional[str]:
    try:
        result = proc.run(
            ["git", *args], cwd=str(root), timeout=timeout, quiet=True,
            encoding="utf-8", errors="surrogateescape",
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def get_git_changes(root: Union[str, Path], timeout: float = 5.0) -> List[GitChange]:
    """Changed paths under ``root``, relative to ``root``.

    Untracked directories are expanded into the files they contain. Any
    failure (not a repository, git missing, timeout) yields an empty list.
    """
    root_path = Path(root)
    deadline = time.monotonic() + timeout

    prefix = _run_git(root_path, ["rev-parse", "--show-prefix"], timeout)
    if prefix is None:
        return []
    prefix = prefix.rstrip("\n")

    remaining = deadline - time.monotonic()
    if remaining <= 0:
        return []
    # Without optional locks status never rewrites .git/index, which the
    # watcher would otherwise report as a change
    output = _run_git(
        root_path,
        ["--no-optional-locks", "status", "--porcelain", "-z", "-uall", "--", "."],
        remaining,
    )
    if output is None:
        return []

    changes = []
    for change in parse_status_output(output):
        if prefix:
            if not change.rel_path.startswith(prefix):
                continue
            change = change._replace(rel_path=change.rel_path[len(prefix):])
        changes.append(change)
    return changes


@dataclass
class _Bucket:
    files: List[Tuple[str, GitChange]] = field(default_factory=list)
    subdirs: Dict[str, "_Bucket"] = field(default_factory=dict)


def _bucket_to_nodes(bucket: _Bucket, base: Path) -> Forest:
    nodes = []
    for dir_name, sub_bucket in bucket.subdirs.items():
        dir_path = base / dir_name
        nodes.append(Node(
            name=dir_name,
            path=str(dir_path),
            is_dir=True,
            children=_bucket_to_nodes(sub_bucket, dir_path),
        ))
    for name, change in bucket.files:
        nodes.append(Node(name=name, path=str(base / name), git_status=change.status))
    return tuple(sorted(nodes, key=sort_key))


def build_git_tree(root: Union[str, Path], timeout: float = 5.0) -> Forest:
    """Forest of changed files under ``root``, grouped by directory.

    Not limited in depth or size. Changes under a top-level directory in
    :data:`DEFAULT_IGNORE` are dropped.
    """
    root_path = Path(root).resolve()
    changes = get_git_changes(root_path, timeout)
    if not changes:
        return ()

    top = _Bucket()
    for change in changes:
        parts = change.rel_path.split("/")
        if parts[0] in DEFAULT_IGNORE:
            continue

        bucket = top
        for part in parts[:-1]:
            bucket = bucket.subdirs.setdefault(part, _Bucket())
        bucket.files.append((parts[-1], change))

    return _bucket_to_nodes(top, root_path)

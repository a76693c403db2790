"""Ignore rules for the directory walk.

A path is hidden when its name is one of the fixed :data:`DEFAULT_IGNORE`
names, or when any glob read from the root ignore file matches it. Globs are
matched with :mod:`fnmatch` against the root-relative path, the bare name,
and for directories the name with a trailing ``/``.

Negated lines (``!pattern``) get no special treatment: they are kept as
ordinary globs, which in practice never match anything.
"""
import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Tuple

logger = logging.getLogger(__name__)

DEFAULT_IGNORE: FrozenSet[str] = frozenset({
    ".git",
    "node_modules",
    ".DS_Store",
    "__pycache__",
    ".claude",
})


def parse_ignore_file(path: Path) -> Tuple[str, ...]:
    """Read glob lines from ``path``, skipping comments and blank lines.

    A missing or unreadable file yields no patterns.
    """
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ()

    patterns = []
    for raw in content.splitlines():
        line = raw.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return tuple(patterns)


def should_ignore(
    name: str,
    rel_path: str,
    is_dir: bool,
    static_names: Iterable[str],
    patterns: Iterable[str],
) -> bool:
    """Decide whether an entry is excluded from the tree.

    Args:
        name: Base name of the entry
        rel_path: Path relative to the walked root, ``/``-separated
        is_dir: Whether the entry is a directory
        static_names: Names that are always excluded
        patterns: Globs from the ignore file

    Returns:
        True if the entry should be left out
    """
    if name in static_names:
        return True

    test_path = rel_path + "/" if is_dir else rel_path
    for pattern in patterns:
        if fnmatch.fnmatchcase(test_path, pattern) or fnmatch.fnmatchcase(name, pattern):
            return True
        if is_dir and fnmatch.fnmatchcase(name + "/", pattern):
            return True
    return False


@dataclass(frozen=True)
class IgnoreRules:
    """Static names plus ignore-file globs for one walk root."""

    static_names: FrozenSet[str] = DEFAULT_IGNORE
    patterns: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def for_root(cls, root: Path, ignore_file: str = ".gitignore") -> "IgnoreRules":
        """Rules for walking ``root``, reading ``root/ignore_file`` if present."""
        patterns = parse_ignore_file(root / ignore_file)
        if patterns:
            logger.debug(f"Loaded {len(patterns)} ignore patterns from {root / ignore_file}")
        return cls(patterns=patterns)

    def matches(self, name: str, rel_path: str, is_dir: bool) -> bool:
        return should_ignore(name, rel_path, is_dir, self.static_names, self.patterns)

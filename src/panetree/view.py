"""State of the live view, independent of how it is drawn.

All mutations happen on the view's event loop, one at a time: a rebuild
replaces the forest and its flattening together before anything else runs.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .config import Config, get_config
from .models.node import Node
from .tree.builder import build_git_tree, walk_tree
from .tree.flatten import FlatEntry, flatten
from .tree.ignore import IgnoreRules

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    """Which tree is shown."""

    ALL = "all"
    GIT = "git"


@dataclass
class ViewState:
    """Root, mode, tree snapshot and cursor of one view."""

    cwd: Path
    config: Config = field(default_factory=get_config)
    mode: ViewMode = ViewMode.ALL
    forest: Tuple[Node, ...] = ()
    flat: List[FlatEntry] = field(default_factory=list)
    cursor: int = 0

    def build(self) -> Tuple[Node, ...]:
        """Build a fresh forest for the current root and mode."""
        if self.mode is ViewMode.GIT:
            return build_git_tree(self.cwd, timeout=self.config.git.status_timeout)
        rules = IgnoreRules.for_root(self.cwd, self.config.tree.ignore_file)
        return walk_tree(
            self.cwd,
            max_depth=self.config.tree.max_depth,
            max_entries=self.config.tree.max_entries,
            rules=rules,
        )

    def rebuild(self, reset_cursor: bool = False) -> None:
        """Replace the tree snapshot and keep the cursor in range."""
        forest = self.build()
        flat = flatten(forest)
        self.forest, self.flat = forest, flat
        if reset_cursor:
            self.cursor = 0
        else:
            self.cursor = min(self.cursor, max(0, len(flat) - 1))
        logger.debug(f"Rebuilt {self.mode.value} tree for {self.cwd}: {len(flat)} rows")

    def toggle_mode(self) -> ViewMode:
        self.mode = ViewMode.GIT if self.mode is ViewMode.ALL else ViewMode.ALL
        self.rebuild(reset_cursor=True)
        return self.mode

    def set_cwd(self, cwd: Path) -> None:
        self.cwd = Path(cwd).resolve()
        self.rebuild(reset_cursor=True)

    def selected(self) -> Optional[FlatEntry]:
        if 0 <= self.cursor < len(self.flat):
            return self.flat[self.cursor]
        return None

    def move(self, delta: int) -> None:
        if self.flat:
            self.cursor = max(0, min(len(self.flat) - 1, self.cursor + delta))

    def to_parent(self) -> None:
        entry = self.selected()
        if entry and entry.parent_index >= 0:
            self.cursor = entry.parent_index

    def to_first_child(self) -> None:
        entry = self.selected()
        if entry and entry.first_child_index >= 0:
            self.cursor = entry.first_child_index

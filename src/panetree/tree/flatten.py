"""Linearize a forest into addressable rows for navigation and scrolling."""
from dataclasses import dataclass
from typing import List, Sequence

from ..models.node import Node

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass(frozen=True)
class FlatEntry:
    """One row of a flattened forest.

    ``parent_index`` and ``first_child_index`` are positions in the same
    flattened list, or -1 when there is none.
    """

    node: Node
    index: int
    depth: int
    prefix: str
    connector: str
    parent_index: int
    first_child_index: int

    @property
    def width(self) -> int:
        """Rendered width of the row: guides, connector, name and dir slash."""
        return len(self.prefix) + len(self.connector) + len(self.node.name) + (1 if self.node.is_dir else 0)


def flatten(forest: Sequence[Node]) -> List[FlatEntry]:
    """Depth-first pre-order rows for ``forest``.

    Every directory is shown expanded, so a node with children always has its
    first child on the very next row.
    """
    flat: List[FlatEntry] = []

    def walk(nodes: Sequence[Node], depth: int, prefix: str, parent_index: int) -> None:
        for i, node in enumerate(nodes):
            is_last = i == len(nodes) - 1
            index = len(flat)
            flat.append(FlatEntry(
                node=node,
                index=index,
                depth=depth,
                prefix=prefix,
                connector=LAST_BRANCH if is_last else BRANCH,
                parent_index=parent_index,
                first_child_index=index + 1 if node.children else -1,
            ))
            if node.children:
                walk(node.children, depth + 1, prefix + (SPACE if is_last else PIPE), index)

    walk(forest, 0, "", -1)
    return flat


def scroll_start(cursor: int, total: int, visible: int) -> int:
    """First row to draw so that ``cursor`` sits mid-viewport when possible."""
    if visible <= 0:
        return 0
    return max(0, min(cursor - visible // 2, total - visible))


def horizontal_offset(entry: FlatEntry, width: int) -> int:
    """Columns to trim from the left so the selected name stays visible."""
    if entry.width <= width:
        return 0
    name_width = len(entry.node.name) + (1 if entry.node.is_dir else 0) + 4
    return max(0, entry.width - max(width, name_width))

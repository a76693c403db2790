"""Tree node model for panetree."""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class GitStatus(str, Enum):
    """Change kind reported by git status, keyed by its status letter."""

    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    UNTRACKED = "?"
    RENAMED = "R"


class Node(BaseModel):
    """One filesystem entry in a built tree.

    Nodes are immutable snapshots; a refresh builds a new forest rather than
    editing an old one.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Base name")
    path: str = Field(..., description="Absolute path, unique within a build")
    is_dir: bool = Field(False, description="Is a directory")
    children: Tuple["Node", ...] = Field((), description="Visible children (directories only)")
    git_status: Optional[GitStatus] = Field(None, description="Change kind (git mode only)")


def sort_key(node: Node) -> Tuple[bool, str]:
    """Directories first, then case-sensitive name order."""
    return (not node.is_dir, node.name)

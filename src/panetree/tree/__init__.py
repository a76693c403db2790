"""Tree building, ignore rules and flattening."""
from .builder import build_git_tree, get_git_changes, walk_tree
from .flatten import FlatEntry, flatten, horizontal_offset, scroll_start
from .ignore import DEFAULT_IGNORE, IgnoreRules, parse_ignore_file, should_ignore

__all__ = [
    "build_git_tree", "get_git_changes", "walk_tree",
    "FlatEntry", "flatten", "horizontal_offset", "scroll_start",
    "DEFAULT_IGNORE", "IgnoreRules", "parse_ignore_file", "should_ignore",
]

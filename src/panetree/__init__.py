"""Live file tree in a tmux side pane."""

__version__ = "0.1.0"

"""Exceptions raised by panetree."""


class PaneTreeError(Exception):
    """Base class for panetree errors."""


class MultiplexerNotFound(PaneTreeError):
    """Raised when no usable tmux session surrounds the caller."""

    def __init__(self, detail: str = "panetree requires tmux. Please run inside a tmux session."):
        self.detail = detail
        super().__init__(detail)

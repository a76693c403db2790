"""Data models for panetree."""
from .message import (
    Close, ControllerMessage, Ping, Pong, Ready, Refresh, SetCwd, ViewMessage,
    encode_message, parse_controller_message, parse_view_message,
)
from .node import GitStatus, Node
from .pane import Pane

__all__ = [
    "Close", "ControllerMessage", "Ping", "Pong", "Ready", "Refresh", "SetCwd", "ViewMessage",
    "encode_message", "parse_controller_message", "parse_view_message",
    "GitStatus", "Node", "Pane",
]

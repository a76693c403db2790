"""Control channel messages.

Each message is one JSON object on one line, tagged by its ``type`` field.
Controllers send :data:`ControllerMessage` values to a view; views answer
with :data:`ViewMessage` values. Lines with an unknown tag, or that are not
valid JSON at all, parse to ``None`` and are ignored by both ends.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


class Close(BaseModel):
    """Ask the view to exit."""
    type: Literal["close"] = "close"


class Ping(BaseModel):
    """Liveness probe, answered with :class:`Pong`."""
    type: Literal["ping"] = "ping"


class Refresh(BaseModel):
    """Rebuild the tree now."""
    type: Literal["refresh"] = "refresh"


class SetCwd(BaseModel):
    """Re-root the view at ``cwd``."""
    type: Literal["setCwd"] = "setCwd"
    cwd: str = Field(..., description="New root directory")


class Ready(BaseModel):
    """The view is serving and its tree is current."""
    type: Literal["ready"] = "ready"


class Pong(BaseModel):
    """Answer to :class:`Ping`."""
    type: Literal["pong"] = "pong"


ControllerMessage = Annotated[Union[Close, Ping, Refresh, SetCwd], Field(discriminator="type")]
ViewMessage = Annotated[Union[Ready, Pong], Field(discriminator="type")]

_controller_adapter = TypeAdapter(ControllerMessage)
_view_adapter = TypeAdapter(ViewMessage)


def encode_message(msg: BaseModel) -> bytes:
    """Serialize a message as one newline-terminated UTF-8 line."""
    return (msg.model_dump_json() + "\n").encode("utf-8")


def parse_controller_message(line: Union[str, bytes]) -> Optional[ControllerMessage]:
    """Parse one line sent by a controller, or ``None`` if it is not one."""
    try:
        return _controller_adapter.validate_json(line)
    except ValidationError:
        return None


def parse_view_message(line: Union[str, bytes]) -> Optional[ViewMessage]:
    """Parse one line sent by a view, or ``None`` if it is not one."""
    try:
        return _view_adapter.validate_json(line)
    except ValidationError:
        return None

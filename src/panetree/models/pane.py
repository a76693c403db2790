"""Pane model for panetree."""
from pydantic import BaseModel, Field


class Pane(BaseModel):
    """A tmux pane as reported by list-panes."""

    id: str = Field(..., description="Pane unique ID (%pane_id)")
    active: bool = Field(False, description="Is active pane in its window")

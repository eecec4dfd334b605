"""Prompt value object — the problem statement a session solves."""

from pydantic import BaseModel, Field


class Prompt(BaseModel, frozen=True):
    """Immutable problem statement.

    The optional image payload is forwarded to model backends during generation
    only; verification reads ``content`` alone.
    """

    content: str = Field(min_length=1)
    image_base64: str | None = None

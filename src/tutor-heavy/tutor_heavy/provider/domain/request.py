"""LLMRequest value object — one completion request sent to a model backend."""

from pydantic import BaseModel, Field


class LLMRequest(BaseModel, frozen=True):
    prompt: str = Field(min_length=1)
    temperature: float = Field(ge=0.0)
    seed: int
    max_output_tokens: int = Field(default=1024, ge=1)
    image_base64: str | None = None

"""Provider catalog entry model."""

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel, frozen=True):
    """One model backend reachable through LiteLLM."""

    name: str = Field(min_length=1)
    description: str = ""
    model: str = Field(min_length=1)
    api_base: str | None = None
    api_key: str | None = None

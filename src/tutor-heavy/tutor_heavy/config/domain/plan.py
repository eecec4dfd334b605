"""Run plan item model."""

from pydantic import BaseModel, Field


class RunPlanItem(BaseModel, frozen=True):
    """A single planned invocation: which provider, under which label and temperature.

    Optional items run only when the caller includes their provider.
    """

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    label: str = Field(min_length=1)
    temperature: float = Field(ge=0.0)
    optional: bool = False

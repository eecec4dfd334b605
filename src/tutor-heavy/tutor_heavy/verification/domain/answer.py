"""ModelOutput and VerifiedAnswer — the parsed and the scored form of one model answer."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ModelOutput(BaseModel):
    """The JSON object every model backend is instructed to return.

    Unknown keys are ignored. ``final`` is trimmed and must not be blank.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    final: str = Field(min_length=1)
    units: str | None = None
    short_reason: str
    check: str

    @field_validator("final", mode="before")
    @classmethod
    def _strip_final(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class VerifiedAnswer(BaseModel, frozen=True):
    """Normalized answer record plus the heuristic confidence score.

    ``signals`` lists one entry per heuristic check, in evaluation order.
    """

    final: str
    units: str | None = None
    short_reason: str
    check: str
    score: float
    signals: list[str] = Field(default_factory=list)

"""SessionResult — everything one solve request produced."""

from pydantic import BaseModel, Field

from tutor_heavy.arbitration.domain.decision import ArbiterDecision
from tutor_heavy.arbitration.domain.run import TutorRun
from tutor_heavy.verification.domain.prompt import Prompt


class SessionResult(BaseModel, frozen=True):
    """Immutable snapshot of a finished session.

    ``runs`` follows plan order and includes failure placeholders; the
    decision was derived from exactly these runs.
    """

    session_id: str = Field(min_length=1)
    prompt: Prompt
    runs: list[TutorRun] = Field(min_length=1)
    decision: ArbiterDecision
    elapsed_seconds: float = Field(ge=0.0)

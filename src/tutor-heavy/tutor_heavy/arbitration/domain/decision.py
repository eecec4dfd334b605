"""ArbiterDecision — the single answer selected from a set of runs."""

from pydantic import BaseModel

from tutor_heavy.arbitration.domain.run import TutorRun


class ArbiterDecision(BaseModel, frozen=True):
    """Immutable arbitration outcome.

    ``winner`` is always one of the runs passed to the arbiter. ``consensus``
    is True only when at least two runs agreed on the normalized answer.
    """

    winner: TutorRun
    consensus: bool
    reason: str

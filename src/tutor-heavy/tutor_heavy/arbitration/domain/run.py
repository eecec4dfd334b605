"""TutorRun — one model invocation's outcome, verified or failed."""

from pydantic import BaseModel, Field

from tutor_heavy.verification.domain.answer import VerifiedAnswer

FAILURE_SENTINEL = "error"
FAILURE_SCORE = -1.0
FAILURE_SIGNAL = "invocation-failed"


class TutorRun(BaseModel, frozen=True):
    """Immutable record of one run: its identity, provider label, and scored answer.

    A failed invocation is a regular run carrying ``FAILURE_SENTINEL`` as its
    final answer and ``FAILURE_SCORE`` as its score, so it still competes in
    arbitration.
    """

    id: str = Field(min_length=1)
    provider: str
    final: str
    units: str | None = None
    short_reason: str = ""
    check: str = ""
    score: float
    signals: list[str] = Field(default_factory=list)

    @property
    def is_failure(self) -> bool:
        return self.final == FAILURE_SENTINEL and self.score == FAILURE_SCORE

    @classmethod
    def from_verified(
        cls, run_id: str, provider: str, answer: VerifiedAnswer
    ) -> "TutorRun":
        return cls(
            id=run_id,
            provider=provider,
            final=answer.final,
            units=answer.units,
            short_reason=answer.short_reason,
            check=answer.check,
            score=answer.score,
            signals=list(answer.signals),
        )

    @classmethod
    def failure(cls, run_id: str, provider: str, reason: str) -> "TutorRun":
        """Build the placeholder run for an invocation that never produced a verified answer."""
        return cls(
            id=run_id,
            provider=provider,
            final=FAILURE_SENTINEL,
            short_reason=reason,
            score=FAILURE_SCORE,
            signals=[FAILURE_SIGNAL],
        )

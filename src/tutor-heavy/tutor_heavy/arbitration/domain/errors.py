"""Error types raised by the arbiter."""

from tutor_heavy.core.errors import TutorHeavyError


class EmptyInputError(TutorHeavyError):
    """Raised when arbitration is requested over an empty set of runs."""

    def __init__(self) -> None:
        super().__init__("Failed to pick a winner: no runs to choose from")

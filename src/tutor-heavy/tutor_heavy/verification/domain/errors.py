"""Error types raised while verifying model output."""

from tutor_heavy.core.errors import TutorHeavyError


class MalformedOutputError(TutorHeavyError):
    """Raised when no structurally valid answer object can be extracted from raw output."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to parse model output: {reason}")


class ExpressionError(TutorHeavyError):
    """Raised when an arithmetic expression cannot be evaluated to a number."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to evaluate expression: {reason}")

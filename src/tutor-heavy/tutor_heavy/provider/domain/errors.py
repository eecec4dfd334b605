"""Error types raised while preparing provider requests."""

from tutor_heavy.core.errors import TutorHeavyError


class EmptyPromptError(TutorHeavyError):
    """Raised when neither task text nor OCR text was supplied."""

    def __init__(self) -> None:
        super().__init__("Failed to build prompt: add task text or an image")

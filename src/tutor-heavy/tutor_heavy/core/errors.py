"""Base exception class for all tutor-heavy-specific errors."""


class TutorHeavyError(Exception):
    """Base class for all tutor-heavy errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable

"""Error types raised by provider infrastructure."""

from tutor_heavy.core.errors import TutorHeavyError


class ProviderInvocationError(TutorHeavyError):
    """Raised when a model backend cannot be invoked or returns no content."""

    def __init__(self, provider: str, reason: str, retriable: bool = False) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(
            f"Failed to invoke provider '{provider}': {reason}", retriable=retriable
        )


class ProviderNotConfiguredError(TutorHeavyError):
    """Raised when a runner is requested for a provider id missing from the catalog."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Failed to create runner: provider '{provider}' is not configured"
        )

"""ProviderObserver port — domain events emitted during model backend calls."""

from typing import Protocol


class ProviderObserver(Protocol):
    """Observer port for provider domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def completion_started(
        self, provider: str, model: str, temperature: float, seed: int
    ) -> None: ...

    def completion_completed(
        self, provider: str, duration_ms: int, output_chars: int
    ) -> None: ...

    def completion_failed(self, provider: str, reason: str) -> None: ...

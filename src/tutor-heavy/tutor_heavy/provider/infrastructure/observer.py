"""Structlog implementation of the ProviderObserver port."""

import structlog


class StructlogProviderObserver:
    """Delegates provider domain events to structlog.

    Satisfies the ProviderObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def completion_started(
        self, provider: str, model: str, temperature: float, seed: int
    ) -> None:
        self._log.info(
            "provider.completion_started",
            provider=provider,
            model=model,
            temperature=temperature,
            seed=seed,
        )

    def completion_completed(
        self, provider: str, duration_ms: int, output_chars: int
    ) -> None:
        self._log.info(
            "provider.completion_completed",
            provider=provider,
            duration_ms=duration_ms,
            output_chars=output_chars,
        )

    def completion_failed(self, provider: str, reason: str) -> None:
        self._log.error("provider.completion_failed", provider=provider, reason=reason)

"""ProviderRunner Protocol — structural interface for all model backends."""

from typing import Protocol

from tutor_heavy.provider.domain.request import LLMRequest


class ProviderRunner(Protocol):
    """Sends one request to a model backend and returns its raw text answer.

    The returned text is untrusted; verification happens downstream.
    """

    async def complete(self, request: LLMRequest) -> str: ...


class ProviderRunnerFactory(Protocol):
    """Constructs the ProviderRunner for a provider id from the catalog."""

    def create(self, provider_id: str) -> ProviderRunner: ...

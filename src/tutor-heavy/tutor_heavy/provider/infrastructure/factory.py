"""LiteLLMRunnerFactory — constructs LiteLLMRunner instances from the provider catalog."""

import litellm

from tutor_heavy.config.domain.config import ProviderId
from tutor_heavy.config.domain.provider import ProviderConfig
from tutor_heavy.provider.domain.observer import ProviderObserver
from tutor_heavy.provider.domain.runner import ProviderRunner
from tutor_heavy.provider.infrastructure.errors import ProviderNotConfiguredError
from tutor_heavy.provider.infrastructure.litellm import LiteLLMRunner


class LiteLLMRunnerFactory:
    """Creates one LiteLLMRunner per provider id, reusing it across plan items."""

    def __init__(
        self,
        providers: dict[ProviderId, ProviderConfig],
        observer: ProviderObserver,
    ) -> None:
        litellm.suppress_debug_info = True
        self._providers = providers
        self._observer = observer
        self._runners: dict[ProviderId, LiteLLMRunner] = {}

    def create(self, provider_id: str) -> ProviderRunner:
        """Return the runner for provider_id.

        Raises:
            ProviderNotConfiguredError: if provider_id is not in the catalog.
        """
        if provider_id not in self._providers:
            raise ProviderNotConfiguredError(provider=provider_id)
        runner = self._runners.get(provider_id)
        if runner is None:
            runner = LiteLLMRunner(
                provider_id=provider_id,
                config=self._providers[provider_id],
                observer=self._observer,
            )
            self._runners[provider_id] = runner
        return runner

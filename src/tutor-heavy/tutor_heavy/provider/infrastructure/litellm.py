"""LiteLLMRunner — model backend implementation using LiteLLM."""

import time
from typing import Any

import litellm

from tutor_heavy.config.domain.provider import ProviderConfig
from tutor_heavy.provider.domain.observer import ProviderObserver
from tutor_heavy.provider.domain.prompts import SYSTEM_PROMPT
from tutor_heavy.provider.domain.request import LLMRequest
from tutor_heavy.provider.infrastructure.errors import ProviderInvocationError

_RETRIABLE_ERRORS: tuple[type[Exception], ...] = (
    litellm.RateLimitError,
    litellm.Timeout,
    litellm.APIConnectionError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


class LiteLLMRunner:
    """ProviderRunner that delegates to one catalog provider via LiteLLM.

    One instance per provider id; it holds no per-request state and may serve
    concurrent requests.
    """

    def __init__(
        self,
        provider_id: str,
        config: ProviderConfig,
        observer: ProviderObserver,
    ) -> None:
        self._provider_id = provider_id
        self._config = config
        self._observer = observer

    async def complete(self, request: LLMRequest) -> str:
        """Request a JSON answer from the backend and return its raw text.

        Raises:
            ProviderInvocationError: if the call fails or the backend returns no
                content. Rate limits, timeouts and connection errors are marked
                retriable.
        """
        self._observer.completion_started(
            provider=self._provider_id,
            model=self._config.model,
            temperature=request.temperature,
            seed=request.seed,
        )

        kwargs: dict[str, Any] = {}
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key

        start = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=self._config.model,
                temperature=request.temperature,
                seed=request.seed,
                max_tokens=request.max_output_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": _user_content(request)},
                ],
                **kwargs,
            )
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            self._observer.completion_failed(provider=self._provider_id, reason=reason)
            raise ProviderInvocationError(
                provider=self._provider_id,
                reason=reason,
                retriable=isinstance(exc, _RETRIABLE_ERRORS),
            ) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        content = _extract_content(response)
        if not content:
            reason = "empty response"
            self._observer.completion_failed(provider=self._provider_id, reason=reason)
            raise ProviderInvocationError(provider=self._provider_id, reason=reason)

        self._observer.completion_completed(
            provider=self._provider_id,
            duration_ms=duration_ms,
            output_chars=len(content),
        )
        return content


def _user_content(request: LLMRequest) -> str | list[dict[str, Any]]:
    if not request.image_base64:
        return request.prompt
    return [
        {"type": "text", "text": request.prompt},
        {
            "type": "image_url",
            "image_url": {"url": f"data:image/png;base64,{request.image_base64}"},
        },
    ]


def _extract_content(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError):
        return ""
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)

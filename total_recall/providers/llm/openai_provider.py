"""OpenAI / Azure OpenAI chat-completion provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`, with
both a one-shot :meth:`complete` and a token-by-token :meth:`stream` used by
the HTTP search endpoint.
"""

from __future__ import annotations

from typing import AsyncIterator

import openai
import structlog

from total_recall.config.settings import Settings
from total_recall.interfaces.llm_provider import ILLMProvider
from total_recall.providers.openai_client import (
    build_async_client,
    has_credentials,
    provider_label,
)
from total_recall.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_TIMEOUT = openai.Timeout(60.0, connect=5.0)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    The rest of the app never imports ``openai`` directly; SDK errors are
    re-raised as :class:`LLMError`.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or build_async_client(settings, "completion", timeout=_TIMEOUT)
        self._model = settings.completion_deployment
        self._provider_label = provider_label(settings)

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a complete response via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=_messages(system_prompt, user_prompt),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> AsyncIterator[str]:
        """Yield content deltas as the model produces them."""
        pieces = 0
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=_messages(system_prompt, user_prompt),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
            async for chunk in response:
                # Azure sends content-filter frames with no choices.
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    pieces += 1
                    yield delta
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} stream error after {pieces} chunks: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_completion_stream",
            model=self._model,
            provider=self._provider_label,
            chunks=pieces,
        )

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return has_credentials(self._settings, "completion")


def _messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]

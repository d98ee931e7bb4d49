"""Shared construction of OpenAI / Azure OpenAI async clients.

Both the embedding and the completion adapters talk to the same SDK; the
only difference is which endpoint/key pair they use.  On Azure the
``model`` argument of every call is the *deployment* name.
"""

from __future__ import annotations

from typing import Literal

import openai

from total_recall.config.settings import Settings

Purpose = Literal["embedding", "completion"]


def build_async_client(
    settings: Settings,
    purpose: Purpose,
    timeout: openai.Timeout | float | None = None,
) -> openai.AsyncOpenAI:
    """Return an async client for *purpose* based on ``settings.ai_provider``.

    Azure uses separate endpoint/key pairs for embeddings and completions
    (``AZURE_EMBEDDING_*`` vs ``AZURE_OPENAI_*``).  Plain OpenAI uses one
    key for both and honours ``OPENAI_BASE_URL`` for compatible APIs.
    """
    client_kwargs: dict = {}
    if timeout is not None:
        client_kwargs["timeout"] = timeout

    if settings.ai_provider == "azure":
        if purpose == "embedding":
            endpoint, key = settings.azure_embedding_endpoint, settings.azure_embedding_key
        else:
            endpoint, key = settings.azure_openai_endpoint, settings.azure_openai_key
        return openai.AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=key,
            api_version=settings.azure_api_version,
            **client_kwargs,
        )

    client_kwargs["api_key"] = settings.openai_api_key
    if settings.openai_base_url:
        client_kwargs["base_url"] = settings.openai_base_url
    return openai.AsyncOpenAI(**client_kwargs)


def provider_label(settings: Settings) -> str:
    """Return the label used in logs and errors for the configured backend."""
    if settings.ai_provider == "azure":
        return "azure-openai"
    return "openai-compatible" if settings.openai_base_url else "openai"


def has_credentials(settings: Settings, purpose: Purpose) -> bool:
    """Return ``True`` when the endpoint/key for *purpose* are configured."""
    if settings.ai_provider == "azure":
        if purpose == "embedding":
            return bool(settings.azure_embedding_endpoint and settings.azure_embedding_key)
        return bool(settings.azure_openai_endpoint and settings.azure_openai_key)
    return bool(settings.openai_api_key)

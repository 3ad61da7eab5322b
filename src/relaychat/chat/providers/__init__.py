"""LLM provider registry - one long-lived client per backend."""

from __future__ import annotations

import threading
from typing import Callable

from ..errors import ProviderNotConfiguredError
from ..llm_provider import LLMProvider, ProviderName


def create_provider(provider: ProviderName, api_key: str) -> LLMProvider:
    """Create the adapter for ``provider`` with its SDK client.

    Raises:
        ProviderNotConfiguredError: If no API key is configured.
    """
    if not api_key:
        raise ProviderNotConfiguredError(provider.value)

    if provider == ProviderName.OPENAI:
        from .openai_provider import OpenAIProvider

        return OpenAIProvider(api_key=api_key)

    if provider == ProviderName.ANTHROPIC:
        from .anthropic_provider import AnthropicProvider

        return AnthropicProvider(api_key=api_key)

    from .google_provider import GoogleProvider

    return GoogleProvider(api_key=api_key)


def default_model_for(provider: ProviderName) -> str:
    from .anthropic_provider import AnthropicProvider
    from .google_provider import GoogleProvider
    from .openai_provider import OpenAIProvider

    return {
        ProviderName.OPENAI: OpenAIProvider.DEFAULT_MODEL,
        ProviderName.ANTHROPIC: AnthropicProvider.DEFAULT_MODEL,
        ProviderName.GOOGLE: GoogleProvider.DEFAULT_MODEL,
    }[provider]


class ProviderRegistry:
    """Process-wide provider handles, created lazily and reused read-only.

    The lock only guards first construction; adapters themselves hold no
    per-conversation state.
    """

    def __init__(
        self,
        api_keys: dict[ProviderName, str],
        factory: Callable[[ProviderName, str], LLMProvider] = create_provider,
    ) -> None:
        self._api_keys = dict(api_keys)
        self._factory = factory
        self._providers: dict[ProviderName, LLMProvider] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_providers(cls, providers: dict[ProviderName, LLMProvider]) -> ProviderRegistry:
        """Registry over pre-built adapters (tests, custom wiring)."""
        registry = cls({name: "preset" for name in providers})
        registry._providers.update(providers)
        return registry

    def is_configured(self, provider: ProviderName) -> bool:
        return provider in self._providers or bool(self._api_keys.get(provider))

    def get(self, provider: ProviderName) -> LLMProvider:
        existing = self._providers.get(provider)
        if existing is not None:
            return existing
        with self._lock:
            if provider not in self._providers:
                self._providers[provider] = self._factory(provider, self._api_keys.get(provider, ""))
            return self._providers[provider]


__all__ = ["ProviderRegistry", "create_provider", "default_model_for"]

"""Shared fakes for provider, generator and API tests."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

import pytest

from relaychat.chat.llm_provider import ChatMessage, GenerationOptions, ProviderName
from relaychat.chat.providers import ProviderRegistry
from relaychat.chat.upstream import guard_stream


class FakeProvider:
    """Scripted adapter: yields ``fragments``, then raises ``error`` if set."""

    def __init__(
        self,
        fragments: list[str] | tuple[str, ...] = ("Hel", "lo"),
        error: Exception | None = None,
        delay: float = 0.0,
        name: str = "openai",
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.delay = delay
        self._name = name
        self.stream_calls = 0
        self.complete_calls = 0
        self.pulled = 0
        self.closed = False
        self.last_messages: list[ChatMessage] | None = None
        self.last_options: GenerationOptions | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return "fake-model"

    @property
    def upstream_calls(self) -> int:
        return self.stream_calls + self.complete_calls

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> str:
        self.complete_calls += 1
        self.last_messages, self.last_options = messages, options
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return "".join(self.fragments)

    def stream_response(self, messages: list[ChatMessage], options: GenerationOptions) -> AsyncIterator[str]:
        self.stream_calls += 1
        self.last_messages, self.last_options = messages, options
        return guard_stream(self.name, self._generate())

    async def _generate(self) -> AsyncIterator[str]:
        try:
            for text in self.fragments:
                if self.delay:
                    await asyncio.sleep(self.delay)
                self.pulled += 1
                yield text
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_registry():
    def _make(**providers: FakeProvider) -> ProviderRegistry:
        return ProviderRegistry.from_providers({ProviderName(name): p for name, p in providers.items()})

    return _make


@pytest.fixture
def conversation() -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content="You are terse."),
        ChatMessage(role="user", content="Say hello"),
    ]

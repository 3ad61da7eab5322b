"""Adapter tests against fake SDK clients."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest

from relaychat.chat.errors import (
    ProviderNotConfiguredError,
    UpstreamRequestError,
    UpstreamStreamInterruptedError,
)
from relaychat.chat.llm_provider import ChatMessage, GenerationOptions, ProviderName
from relaychat.chat.providers import ProviderRegistry, create_provider, default_model_for
from relaychat.chat.providers.anthropic_provider import AnthropicProvider
from relaychat.chat.providers.google_provider import GoogleProvider
from relaychat.chat.providers.openai_provider import OpenAIProvider

SYSTEM_AND_USER = [ChatMessage("system", "X"), ChatMessage("user", "Y")]


async def _drain(stream) -> list[str]:
    return [text async for text in stream]


class FakeEventStream:
    """Async iterable of SDK events; optionally fails after ``fail_after`` items."""

    def __init__(self, items, fail_after: int | None = None, error: Exception | None = None) -> None:
        self._items = list(items)
        self._fail_after = fail_after
        self._error = error or RuntimeError("connection reset")
        self.closed = False

    async def __aiter__(self):
        for i, item in enumerate(self._items):
            if self._fail_after is not None and i == self._fail_after:
                raise self._error
            yield item

    async def close(self) -> None:
        self.closed = True


# --- OpenAI ---


def _openai_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, response=None, stream=None, error: Exception | None = None) -> None:
        self.response = response
        self.stream = stream
        self.error = error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            return self.stream
        return self.response


def _openai(completions: FakeCompletions) -> OpenAIProvider:
    return OpenAIProvider(client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))


def test_openai_complete_passes_messages_inline() -> None:
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Hello"))])
    completions = FakeCompletions(response=response)
    provider = _openai(completions)

    text = asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions(temperature=0, seed=7)))

    assert text == "Hello"
    call = completions.calls[0]
    assert call["model"] == "gpt-3.5-turbo"
    assert call["messages"] == [{"role": "system", "content": "X"}, {"role": "user", "content": "Y"}]
    assert call["max_tokens"] == 1024
    assert call["temperature"] == 0
    assert call["seed"] == 7


def test_openai_stream_filters_empty_and_choiceless_chunks() -> None:
    events = FakeEventStream(
        [
            _openai_chunk(None),
            _openai_chunk("Hel"),
            SimpleNamespace(choices=[]),
            _openai_chunk(""),
            _openai_chunk("lo"),
        ]
    )
    completions = FakeCompletions(stream=events)
    provider = _openai(completions)

    fragments = asyncio.run(_drain(provider.stream_response(SYSTEM_AND_USER, GenerationOptions(model="gpt-4o"))))

    assert fragments == ["Hel", "lo"]
    assert completions.calls[0]["stream"] is True
    assert completions.calls[0]["model"] == "gpt-4o"
    assert "seed" not in completions.calls[0]
    assert events.closed


def test_openai_stream_is_lazy() -> None:
    completions = FakeCompletions(stream=FakeEventStream([_openai_chunk("a")]))
    provider = _openai(completions)
    provider.stream_response(SYSTEM_AND_USER, GenerationOptions())
    assert completions.calls == []


def test_openai_rejection_before_output_is_request_error() -> None:
    provider = _openai(FakeCompletions(error=RuntimeError("401 invalid api key")))

    with pytest.raises(UpstreamRequestError, match="invalid api key") as excinfo:
        asyncio.run(_drain(provider.stream_response(SYSTEM_AND_USER, GenerationOptions())))
    assert excinfo.value.provider == "openai"

    with pytest.raises(UpstreamRequestError):
        asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions()))


def test_openai_failure_mid_stream_is_interrupted_error() -> None:
    events = FakeEventStream([_openai_chunk("Hel"), _openai_chunk("lo"), _openai_chunk("!")], fail_after=2)
    provider = _openai(FakeCompletions(stream=events))
    received: list[str] = []

    async def consume():
        async for text in provider.stream_response(SYSTEM_AND_USER, GenerationOptions()):
            received.append(text)

    with pytest.raises(UpstreamStreamInterruptedError) as excinfo:
        asyncio.run(consume())

    assert received == ["Hel", "lo"]
    assert excinfo.value.fragments_emitted == 2
    assert events.closed


# --- Anthropic ---


class FakeMessages:
    def __init__(self, response=None, events=None, error: Exception | None = None) -> None:
        self.response = response
        self.events = events
        self.error = error
        self.create_calls: list[dict] = []
        self.stream_calls: list[dict] = []
        self.stream_exited = False

    async def create(self, **kwargs):
        self.create_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response

    @asynccontextmanager
    async def _stream(self, kwargs):
        self.stream_calls.append(kwargs)
        if self.error is not None:
            raise self.error
        try:
            yield self.events
        finally:
            self.stream_exited = True

    def stream(self, **kwargs):
        return self._stream(kwargs)


def _anthropic(messages: FakeMessages) -> AnthropicProvider:
    return AnthropicProvider(client=SimpleNamespace(messages=messages))


def _text_delta(text):
    return SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text=text))


def test_anthropic_extracts_single_system_instruction() -> None:
    response = SimpleNamespace(
        content=[SimpleNamespace(type="tool_use", id="t1"), SimpleNamespace(type="text", text="Hello")]
    )
    messages = FakeMessages(response=response)
    provider = _anthropic(messages)

    text = asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions()))

    assert text == "Hello"
    call = messages.create_calls[0]
    assert call["system"] == "X"
    assert call["messages"] == [{"role": "user", "content": "Y"}]
    assert call["model"] == "claude-3-sonnet-20240229"
    assert call["max_tokens"] == 1024


def test_anthropic_omits_system_when_absent() -> None:
    messages = FakeMessages(response=SimpleNamespace(content=[]))
    provider = _anthropic(messages)

    text = asyncio.run(provider.complete([ChatMessage("user", "Y")], GenerationOptions()))

    assert text == ""
    assert "system" not in messages.create_calls[0]


def test_anthropic_ignores_seed() -> None:
    messages = FakeMessages(response=SimpleNamespace(content=[]))
    asyncio.run(_anthropic(messages).complete(SYSTEM_AND_USER, GenerationOptions(seed=3)))
    assert "seed" not in messages.create_calls[0]


def test_anthropic_stream_yields_only_text_deltas() -> None:
    events = FakeEventStream(
        [
            SimpleNamespace(type="message_start"),
            SimpleNamespace(type="content_block_start"),
            _text_delta("Hel"),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="input_json_delta", partial_json="{")),
            _text_delta("lo"),
            SimpleNamespace(type="message_stop"),
        ]
    )
    messages = FakeMessages(events=events)
    provider = _anthropic(messages)

    fragments = asyncio.run(_drain(provider.stream_response(SYSTEM_AND_USER, GenerationOptions())))

    assert fragments == ["Hel", "lo"]
    assert messages.stream_calls[0]["system"] == "X"
    assert messages.stream_calls[0]["messages"] == [{"role": "user", "content": "Y"}]
    assert messages.stream_exited


def test_anthropic_stream_rejected_before_output() -> None:
    provider = _anthropic(FakeMessages(error=RuntimeError("overloaded")))
    with pytest.raises(UpstreamRequestError, match="overloaded"):
        asyncio.run(_drain(provider.stream_response(SYSTEM_AND_USER, GenerationOptions())))


# --- Google ---


class FakeModels:
    def __init__(self, response=None, chunks=None, error: Exception | None = None) -> None:
        self.response = response
        self.chunks = chunks
        self.error = error
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response

    async def generate_content_stream(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.chunks


def _google(models: FakeModels) -> GoogleProvider:
    return GoogleProvider(client=SimpleNamespace(aio=SimpleNamespace(models=models)))


def test_google_passes_system_instruction_and_model_role() -> None:
    models = FakeModels(response=SimpleNamespace(text="Hello"))
    provider = _google(models)
    history = [
        ChatMessage("system", "X"),
        ChatMessage("user", "Y"),
        ChatMessage("assistant", "Z"),
        ChatMessage("user", "again"),
    ]

    text = asyncio.run(provider.complete(history, GenerationOptions(max_output_tokens=64, temperature=0.2)))

    assert text == "Hello"
    call = models.calls[0]
    assert call["model"] == "gemini-flash-latest"
    assert call["config"].system_instruction == "X"
    assert call["config"].max_output_tokens == 64
    assert call["config"].temperature == 0.2
    assert [c.role for c in call["contents"]] == ["user", "model", "user"]
    assert [c.parts[0].text for c in call["contents"]] == ["Y", "Z", "again"]


def test_google_single_turn_contract() -> None:
    models = FakeModels(response=SimpleNamespace(text="ok"))
    asyncio.run(_google(models).complete(SYSTEM_AND_USER, GenerationOptions()))
    call = models.calls[0]
    assert call["config"].system_instruction == "X"
    assert len(call["contents"]) == 1
    assert call["contents"][0].parts[0].text == "Y"


def test_google_stream_skips_textless_chunks() -> None:
    chunks = FakeEventStream([SimpleNamespace(text="Hel"), SimpleNamespace(text=None), SimpleNamespace(text="lo")])
    provider = _google(FakeModels(chunks=chunks))

    fragments = asyncio.run(_drain(provider.stream_response(SYSTEM_AND_USER, GenerationOptions())))

    assert fragments == ["Hel", "lo"]


def test_google_none_text_completes_empty() -> None:
    provider = _google(FakeModels(response=SimpleNamespace(text=None)))
    assert asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions())) == ""


def test_google_forwards_seed_only_when_set() -> None:
    models = FakeModels(response=SimpleNamespace(text="ok"))
    provider = _google(models)

    asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions(seed=11)))
    asyncio.run(provider.complete(SYSTEM_AND_USER, GenerationOptions()))

    assert models.calls[0]["config"].seed == 11
    assert models.calls[1]["config"].seed is None


# --- Registry ---


def test_create_provider_requires_api_key() -> None:
    with pytest.raises(ProviderNotConfiguredError, match="anthropic"):
        create_provider(ProviderName.ANTHROPIC, "")


def test_registry_builds_each_provider_once() -> None:
    built: list[ProviderName] = []

    def factory(name, key):
        built.append(name)
        return SimpleNamespace(name=name.value, key=key)

    registry = ProviderRegistry({ProviderName.OPENAI: "sk-test", ProviderName.GOOGLE: ""}, factory=factory)

    first = registry.get(ProviderName.OPENAI)
    second = registry.get(ProviderName.OPENAI)

    assert first is second
    assert built == [ProviderName.OPENAI]
    assert registry.is_configured(ProviderName.OPENAI)
    assert not registry.is_configured(ProviderName.GOOGLE)
    assert not registry.is_configured(ProviderName.ANTHROPIC)


def test_default_models() -> None:
    assert default_model_for(ProviderName.OPENAI) == "gpt-3.5-turbo"
    assert default_model_for(ProviderName.ANTHROPIC) == "claude-3-sonnet-20240229"
    assert default_model_for(ProviderName.GOOGLE) == "gemini-flash-latest"

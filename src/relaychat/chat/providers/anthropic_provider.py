"""Anthropic Claude provider with async streaming."""

from __future__ import annotations

from typing import Any, AsyncIterator

from ..llm_provider import ChatMessage, GenerationOptions, split_system_prompt
from ..upstream import call_upstream, guard_stream


class AnthropicProvider:
    """LLM provider using Anthropic's Claude messages API."""

    DEFAULT_MODEL = "claude-3-sonnet-20240229"

    def __init__(self, api_key: str | None = None, client: Any = None) -> None:
        if client is None:
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=api_key)
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def _request(self, messages: list[ChatMessage], options: GenerationOptions) -> dict[str, Any]:
        # Separate system message from conversation
        system_text, conversation = split_system_prompt(messages)
        request: dict[str, Any] = {
            "model": options.model_or(self.DEFAULT_MODEL),
            "max_tokens": options.max_output_tokens,
            "temperature": options.temperature,
            "messages": [{"role": m.role, "content": m.content} for m in conversation],
        }
        if system_text is not None:
            request["system"] = system_text
        return request

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> str:
        response = await call_upstream(
            self.name, self._client.messages.create(**self._request(messages, options))
        )
        for block in response.content:
            if block.type == "text":
                return block.text
        return ""

    def stream_response(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Stream response tokens from Claude."""
        return guard_stream(self.name, self._stream(messages, options))

    async def _stream(self, messages: list[ChatMessage], options: GenerationOptions) -> AsyncIterator[str]:
        async with self._client.messages.stream(**self._request(messages, options)) as stream:
            async for event in stream:
                # Only text deltas; tool input, message_start/stop etc. are skipped
                if event.type == "content_block_delta" and event.delta.type == "text_delta":
                    yield event.delta.text

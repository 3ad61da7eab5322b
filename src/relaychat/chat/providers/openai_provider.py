"""OpenAI provider with async streaming."""

from __future__ import annotations

from typing import Any, AsyncIterator

from ..llm_provider import ChatMessage, GenerationOptions
from ..upstream import call_upstream, guard_stream


class OpenAIProvider:
    """LLM provider using OpenAI's chat completions API."""

    DEFAULT_MODEL = "gpt-3.5-turbo"

    def __init__(self, api_key: str | None = None, client: Any = None) -> None:
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI(api_key=api_key)
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def _request(self, messages: list[ChatMessage], options: GenerationOptions) -> dict[str, Any]:
        # OpenAI takes the system message inline with the turns
        request: dict[str, Any] = {
            "model": options.model_or(self.DEFAULT_MODEL),
            "messages": [m.to_dict() for m in messages],
            "max_tokens": options.max_output_tokens,
            "temperature": options.temperature,
        }
        if options.seed is not None:
            request["seed"] = options.seed
        return request

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> str:
        response = await call_upstream(
            self.name, self._client.chat.completions.create(**self._request(messages, options))
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def stream_response(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Stream response tokens from OpenAI."""
        return guard_stream(self.name, self._stream(messages, options))

    async def _stream(self, messages: list[ChatMessage], options: GenerationOptions) -> AsyncIterator[str]:
        stream = await self._client.chat.completions.create(
            **self._request(messages, options), stream=True
        )
        try:
            async for chunk in stream:
                # Usage-only chunks carry no choices
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is not None and delta.content:
                    yield delta.content
        finally:
            await stream.close()

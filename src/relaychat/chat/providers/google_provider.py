"""Google Gemini provider with async streaming."""

from __future__ import annotations

from typing import Any, AsyncIterator

from ..llm_provider import ChatMessage, GenerationOptions, Role, split_system_prompt
from ..upstream import call_upstream, guard_stream


class GoogleProvider:
    """LLM provider using the Google Gen AI SDK (Gemini)."""

    DEFAULT_MODEL = "gemini-flash-latest"

    def __init__(self, api_key: str | None = None, client: Any = None) -> None:
        if client is None:
            from google import genai

            client = genai.Client(api_key=api_key)
        self._client = client

    @property
    def name(self) -> str:
        return "google"

    @property
    def default_model(self) -> str:
        return self.DEFAULT_MODEL

    def _request(self, messages: list[ChatMessage], options: GenerationOptions) -> dict[str, Any]:
        from google.genai import types

        system_text, conversation = split_system_prompt(messages)
        # Gemini calls the assistant role "model"
        contents = [
            types.Content(
                role="model" if m.role == Role.ASSISTANT.value else "user",
                parts=[types.Part(text=m.content)],
            )
            for m in conversation
        ]
        config = types.GenerateContentConfig(
            system_instruction=system_text,
            max_output_tokens=options.max_output_tokens,
            temperature=options.temperature,
            seed=options.seed,
        )
        return {
            "model": options.model_or(self.DEFAULT_MODEL),
            "contents": contents,
            "config": config,
        }

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> str:
        response = await call_upstream(
            self.name, self._client.aio.models.generate_content(**self._request(messages, options))
        )
        return response.text or ""

    def stream_response(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Stream response tokens from Gemini."""
        return guard_stream(self.name, self._stream(messages, options))

    async def _stream(self, messages: list[ChatMessage], options: GenerationOptions) -> AsyncIterator[str]:
        stream = await self._client.aio.models.generate_content_stream(
            **self._request(messages, options)
        )
        async for chunk in stream:
            # Chunks carrying only safety ratings or function calls have no text
            text = chunk.text
            if text:
                yield text

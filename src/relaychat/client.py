"""Async HTTP client for the chat endpoint with incremental reassembly."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Sequence

import httpx

from .chat.llm_provider import ChatMessage
from .chat.reassembler import AccumulatingMessage, reassemble

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class ChatRequestFailed(Exception):
    """The server refused the request before a stream was opened."""

    def __init__(self, status_code: int | None, error: str) -> None:
        self.status_code = status_code
        self.error = error
        super().__init__(f"{status_code or 'connection'}: {error}")

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class ChatClient:
    """Client for ``POST /api/chat``.

    ``stream_chat`` yields fragments while folding them into an
    AccumulatingMessage; a dropped connection leaves that message
    interrupted instead of raising.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: float = 90.0,
        max_malformed_frames: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )
        self._max_malformed = max_malformed_frames

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def stream_chat(
        self,
        messages: Sequence[ChatMessage],
        message: AccumulatingMessage,
        provider: str | None = None,
        model: str | None = None,
    ) -> AsyncIterator[str]:
        """Send the conversation and yield reply fragments as they arrive.

        Raises:
            ChatRequestFailed: On a non-2xx response or a failed connection.
        """
        payload: dict[str, Any] = {"messages": [m.to_dict() for m in messages]}
        if provider:
            payload["provider"] = provider
        if model:
            payload["model"] = model

        opened = False
        try:
            async with self._client.stream("POST", "/api/chat", json=payload) as response:
                if not response.is_success:
                    await response.aread()
                    raise ChatRequestFailed(response.status_code, _error_text(response))
                opened = True
                async for text in reassemble(response.aiter_bytes(), message, self._max_malformed):
                    yield text
        except httpx.TransportError as e:
            message.mark_interrupted()
            if opened:
                logger.warning("Chat stream dropped after %d chars: %s", len(message.content), e)
                return
            raise ChatRequestFailed(None, str(e)) from e

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        provider: str | None = None,
        model: str | None = None,
    ) -> AccumulatingMessage:
        """Send the conversation and return the reply once the stream ends."""
        message = AccumulatingMessage()
        async for _ in self.stream_chat(messages, message, provider=provider, model=model):
            pass
        return message


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.text

"""Unified generator - one complete/stream signature over every provider."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable

from .errors import StreamAlreadyConsumedError, StreamTimeoutError
from .llm_provider import ChatMessage, GenerationOptions, LLMProvider, ProviderName, validate_messages
from .providers import ProviderRegistry

logger = logging.getLogger(__name__)


class FragmentStream:
    """Cold, single-consumption async sequence of text fragments.

    The provider is not contacted until the first fragment is requested.
    Iterating a second time raises StreamAlreadyConsumedError. The
    wall-clock ceiling starts at the first pull and covers the whole stream.
    """

    def __init__(self, open_source: Callable[[], AsyncIterator[str]], timeout: float | None = None) -> None:
        self._open_source = open_source
        self._timeout = timeout
        self._source: AsyncIterator[str] | None = None
        self._deadline: float | None = None
        self._iterated = False
        self._finished = False
        self.fragments_emitted = 0

    @property
    def started(self) -> bool:
        return self._source is not None

    @property
    def finished(self) -> bool:
        return self._finished

    def __aiter__(self) -> FragmentStream:
        if self._iterated:
            raise StreamAlreadyConsumedError("Fragment stream can only be consumed once")
        self._iterated = True
        return self

    async def __anext__(self) -> str:
        if self._finished:
            raise StopAsyncIteration
        if self._source is None:
            # A failing opener leaves the stream finished, never retried
            self._finished = True
            self._source = self._open_source()
            self._finished = False
            if self._timeout is not None:
                self._deadline = asyncio.get_running_loop().time() + self._timeout

        try:
            async with asyncio.timeout_at(self._deadline):
                text = await self._source.__anext__()
        except StopAsyncIteration:
            self._finished = True
            raise
        except TimeoutError:
            self._finished = True
            await self._close_source()
            logger.warning("Stream exceeded %.1fs after %d fragment(s)", self._timeout, self.fragments_emitted)
            raise StreamTimeoutError(self._timeout) from None
        except BaseException:
            self._finished = True
            raise

        self.fragments_emitted += 1
        return text

    async def aclose(self) -> None:
        """Stop pulling and release the upstream stream."""
        self._iterated = True
        self._finished = True
        await self._close_source()

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> FragmentStream:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class UnifiedGenerator:
    """Dispatch chat requests to the adapter selected by ProviderName."""

    def __init__(self, registry: ProviderRegistry, stream_timeout: float | None = None) -> None:
        self._registry = registry
        self._stream_timeout = stream_timeout

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def _prepare(
        self, messages: object, provider: object, options: GenerationOptions | None
    ) -> tuple[LLMProvider, list[ChatMessage], GenerationOptions]:
        # Validation and selection happen before any adapter is touched
        checked = validate_messages(messages)
        name = ProviderName.parse(provider)
        adapter = self._registry.get(name)
        return adapter, checked, options or GenerationOptions()

    async def complete(
        self, messages: object, provider: object, options: GenerationOptions | None = None
    ) -> str:
        """Return the full response text from the selected provider."""
        adapter, checked, opts = self._prepare(messages, provider, options)
        try:
            async with asyncio.timeout(self._stream_timeout):
                return await adapter.complete(checked, opts)
        except StreamTimeoutError:
            raise
        except TimeoutError:
            raise StreamTimeoutError(self._stream_timeout) from None

    def stream(
        self, messages: object, provider: object, options: GenerationOptions | None = None
    ) -> FragmentStream:
        """Return a lazy fragment stream from the selected provider.

        Raises InvalidRequestError / UnsupportedProviderError immediately,
        without contacting the provider.
        """
        adapter, checked, opts = self._prepare(messages, provider, options)
        logger.debug("Streaming %d message(s) via %s", len(checked), adapter.name)
        return FragmentStream(lambda: adapter.stream_response(checked, opts), timeout=self._stream_timeout)

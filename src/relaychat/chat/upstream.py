"""Translate SDK failures into the upstream error taxonomy."""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, TypeVar

from .errors import RelayChatError, UpstreamRequestError, UpstreamStreamInterruptedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_upstream(provider: str, awaitable: Awaitable[T]) -> T:
    """Await a single SDK call, mapping any failure to UpstreamRequestError."""
    try:
        return await awaitable
    except RelayChatError:
        raise
    except Exception as e:
        logger.error("%s request failed: %s", provider, e)
        raise UpstreamRequestError(provider, e) from e


async def guard_stream(provider: str, fragments: AsyncIterator[str]) -> AsyncIterator[str]:
    """Wrap a raw adapter stream.

    Drops empty fragments. Failures before the first fragment become
    UpstreamRequestError; failures after it become
    UpstreamStreamInterruptedError. Closing this generator closes the
    underlying one.
    """
    emitted = 0
    try:
        async for text in fragments:
            if not text:
                continue
            emitted += 1
            yield text
    except RelayChatError:
        raise
    except Exception as e:
        if emitted == 0:
            logger.error("%s stream failed before first fragment: %s", provider, e)
            raise UpstreamRequestError(provider, e) from e
        logger.error("%s stream interrupted after %d fragment(s): %s", provider, emitted, e)
        raise UpstreamStreamInterruptedError(provider, emitted, e) from e
    finally:
        aclose = getattr(fragments, "aclose", None)
        if aclose is not None:
            await aclose()

"""Server-sent-event framing for fragment streams.

Each fragment travels as ``data: {"content": ...}\\n\\n``. A clean end of
stream is marked by ``data: [DONE]\\n\\n``. A failing source aborts the
stream without the sentinel, so receivers can tell an interrupted
generation from a finished one.
"""

from __future__ import annotations

import json
import logging
from typing import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
FRAME_TERMINATOR = "\n\n"
DONE_SENTINEL = "[DONE]"
DONE_FRAME = f"{DATA_PREFIX}{DONE_SENTINEL}{FRAME_TERMINATOR}".encode("utf-8")


def encode_fragment(text: str) -> bytes:
    """Frame one fragment. json.dumps escapes newlines, so a frame never contains a blank line."""
    return f"{DATA_PREFIX}{json.dumps({'content': text}, ensure_ascii=False)}{FRAME_TERMINATOR}".encode("utf-8")


async def frame_stream(fragments: AsyncIterable[str]) -> AsyncIterator[bytes]:
    """Yield one frame per non-empty fragment, then the DONE frame.

    Errors from ``fragments`` propagate after logging; no DONE frame is sent.
    """
    count = 0
    try:
        async for text in fragments:
            if not text:
                continue
            count += 1
            yield encode_fragment(text)
    except Exception:
        logger.exception("Stream aborted after %d frame(s)", count)
        raise
    finally:
        aclose = getattr(fragments, "aclose", None)
        if aclose is not None:
            await aclose()
    yield DONE_FRAME

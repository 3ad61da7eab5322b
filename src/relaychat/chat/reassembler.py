"""Client-side reassembly of framed fragment streams into a growing message."""

from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterable, AsyncIterator, Iterator

from .errors import MalformedFrameError
from .framing import DATA_PREFIX, DONE_SENTINEL, FRAME_TERMINATOR

logger = logging.getLogger(__name__)


class MessageState(str, Enum):
    STREAMING = "streaming"
    COMPLETE = "complete"
    INTERRUPTED = "interrupted"


@dataclass
class AccumulatingMessage:
    """Assistant message whose content grows until the stream ends."""

    role: str = "assistant"
    content: str = ""
    state: MessageState = MessageState.STREAMING
    errors: list[MalformedFrameError] = field(default_factory=list)

    @property
    def frozen(self) -> bool:
        return self.state is not MessageState.STREAMING

    @property
    def complete(self) -> bool:
        return self.state is MessageState.COMPLETE

    @property
    def interrupted(self) -> bool:
        return self.state is MessageState.INTERRUPTED

    def append(self, text: str) -> None:
        if self.frozen:
            raise ValueError(f"Cannot append to a {self.state.value} message")
        self.content += text

    def mark_complete(self) -> None:
        if not self.frozen:
            self.state = MessageState.COMPLETE

    def mark_interrupted(self) -> None:
        if not self.frozen:
            self.state = MessageState.INTERRUPTED


class StreamReassembler:
    """Incremental frame parser.

    Byte chunks may split frames anywhere, including inside a multi-byte
    UTF-8 sequence. A single malformed frame is recorded and skipped; with
    ``max_malformed_frames`` set, exceeding that count aborts the stream.
    """

    def __init__(self, message: AccumulatingMessage | None = None, max_malformed_frames: int | None = None) -> None:
        self.message = message if message is not None else AccumulatingMessage()
        self._max_malformed = max_malformed_frames
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a byte chunk. Returns the fragments appended by it."""
        appended: list[str] = []
        for text in self.iter_fragments(chunk):
            self.message.append(text)
            appended.append(text)
        return appended

    def iter_fragments(self, chunk: bytes) -> Iterator[str]:
        """Parse a byte chunk lazily, one frame at a time.

        Fragments are yielded but not appended; the caller appends each one
        before pulling the next frame. A DONE frame completes the message.
        """
        if self.message.frozen:
            return

        self._buffer += self._decoder.decode(chunk)
        *frames, self._buffer = self._buffer.split(FRAME_TERMINATOR)

        for frame in frames:
            if not frame.startswith(DATA_PREFIX):
                continue
            payload = frame[len(DATA_PREFIX):]
            if payload == DONE_SENTINEL:
                self.message.mark_complete()
                self._buffer = ""
                return
            text = self._parse_payload(frame, payload)
            if text is not None:
                yield text

    def finish(self) -> AccumulatingMessage:
        """Signal end of input. Without a DONE frame the message is interrupted."""
        self._decoder.reset()
        if not self.message.frozen:
            if self._buffer.strip():
                logger.debug("Discarding %d chars of unterminated frame", len(self._buffer))
            self.message.mark_interrupted()
        self._buffer = ""
        return self.message

    def _parse_payload(self, frame: str, payload: str) -> str | None:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            return self._record_malformed(MalformedFrameError(frame, f"invalid JSON: {e.msg}"))
        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            return self._record_malformed(MalformedFrameError(frame, "missing string 'content'"))
        return data["content"]

    def _record_malformed(self, error: MalformedFrameError) -> None:
        self.message.errors.append(error)
        logger.warning("Skipping malformed frame: %s", error)
        if self._max_malformed is not None and len(self.message.errors) > self._max_malformed:
            self.message.mark_interrupted()
            raise error
        return None


async def reassemble(
    chunks: AsyncIterable[bytes],
    message: AccumulatingMessage,
    max_malformed_frames: int | None = None,
) -> AsyncIterator[str]:
    """Drive a StreamReassembler over an async byte source.

    Yields each fragment after it has been appended to ``message``. When the
    generator ends, ``message`` is either complete (DONE seen) or
    interrupted. A transport error marks it interrupted and is re-raised.
    """
    reassembler = StreamReassembler(message, max_malformed_frames=max_malformed_frames)
    try:
        async for chunk in chunks:
            for text in reassembler.iter_fragments(chunk):
                message.append(text)
                yield text
            if message.complete:
                break
    except Exception:
        message.mark_interrupted()
        raise
    finally:
        reassembler.finish()

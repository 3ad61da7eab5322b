"""Chat endpoint - streams provider output as server-sent events."""

from __future__ import annotations

import logging
import uuid
from typing import Any, AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from ...chat.errors import InvalidRequestError, RelayChatError
from ...chat.framing import frame_stream
from ...chat.generator import FragmentStream, UnifiedGenerator
from ...chat.llm_provider import ChatMessage, GenerationOptions
from ..models import ChatRequest

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_generator(request: Request) -> UnifiedGenerator:
    return request.app.state.generator


@router.post("/api/chat")
async def chat(request: Request):
    # Auth runs before the body is read, so any body gets the same 401
    identity = request.app.state.authenticator.authenticate(request)
    if identity is None:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    try:
        chat_request = _parse_body(await _read_json(request))
        messages = [ChatMessage(role=m.role, content=m.content) for m in chat_request.messages]
        provider = chat_request.provider or request.app.state.settings.default_provider
        options = _build_options(chat_request)

        stream = get_generator(request).stream(messages, provider, options)
        logger.info(
            "chat.stream start rid=%s identity=%s provider=%s messages=%d",
            rid, identity, provider, len(messages),
        )
        first = await _prime(stream)
        logger.info("chat.stream first_fragment rid=%s empty=%s", rid, first is None)
    except RelayChatError as e:
        logger.info("chat.stream rejected rid=%s: %s", rid, e)
        return JSONResponse({"error": str(e)}, status_code=e.status_code)
    except Exception:
        logger.exception("Chat API error rid=%s", rid)
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    async def sse() -> AsyncIterator[bytes]:
        frames = 0
        try:
            async for frame in frame_stream(_resume(first, stream)):
                if await request.is_disconnected():
                    logger.info("chat.stream client disconnected rid=%s frames=%d", rid, frames)
                    break
                frames += 1
                yield frame
        finally:
            await stream.aclose()
        logger.info("chat.stream done rid=%s frames=%d", rid, frames)

    return StreamingResponse(sse(), media_type="text/event-stream", headers=SSE_HEADERS)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON")


def _parse_body(raw: Any) -> ChatRequest:
    if not isinstance(raw, dict) or not isinstance(raw.get("messages"), list):
        raise InvalidRequestError("Messages array is required")
    try:
        return ChatRequest.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first["loc"])
        raise InvalidRequestError(f"Invalid request field '{location}': {first['msg']}")


def _build_options(chat_request: ChatRequest) -> GenerationOptions:
    overrides: dict[str, Any] = {}
    if chat_request.max_output_tokens is not None:
        overrides["max_output_tokens"] = chat_request.max_output_tokens
    if chat_request.temperature is not None:
        overrides["temperature"] = chat_request.temperature
    return GenerationOptions(model=chat_request.model, **overrides)


async def _prime(stream: FragmentStream) -> str | None:
    """Pull the first fragment so pre-output failures become JSON errors."""
    try:
        return await anext(aiter(stream))
    except StopAsyncIteration:
        return None


async def _resume(first: str | None, stream: FragmentStream) -> AsyncIterator[str]:
    if first is None:
        return
    yield first
    while True:
        try:
            text = await anext(stream)
        except StopAsyncIteration:
            return
        yield text

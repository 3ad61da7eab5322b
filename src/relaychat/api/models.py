"""Pydantic models for API request/response types."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn]
    provider: str | None = None
    model: str | None = None
    max_output_tokens: int | None = None
    temperature: float | None = None


class ErrorResponse(BaseModel):
    error: str


class ProviderInfo(BaseModel):
    name: str
    default_model: str
    configured: bool


class ProvidersResponse(BaseModel):
    default: str
    providers: list[ProviderInfo]

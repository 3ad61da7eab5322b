"""LLM provider protocol, chat message model and generation options."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Protocol, runtime_checkable

from .errors import InvalidRequestError, UnsupportedProviderError

DEFAULT_MAX_OUTPUT_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.7


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ProviderName(str, Enum):
    """Provider selector. Letters A/B/C are accepted as aliases."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"

    @classmethod
    def parse(cls, value: object) -> ProviderName:
        if isinstance(value, ProviderName):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key == member.value:
                    return member
            alias = _LETTER_ALIASES.get(key)
            if alias is not None:
                return alias
        raise UnsupportedProviderError(value)


_LETTER_ALIASES = {
    "a": ProviderName.OPENAI,
    "b": ProviderName.ANTHROPIC,
    "c": ProviderName.GOOGLE,
}


@dataclass(frozen=True)
class ChatMessage:
    """A single chat message."""

    role: str  # "user", "assistant", "system"
    content: str

    @classmethod
    def from_dict(cls, data: Any) -> ChatMessage:
        if not isinstance(data, dict):
            raise InvalidRequestError("Each message must be an object with 'role' and 'content'")
        role = data.get("role")
        content = data.get("content")
        if role not in {r.value for r in Role}:
            raise InvalidRequestError(f"Invalid message role: {role!r}")
        if not isinstance(content, str):
            raise InvalidRequestError("Message content must be a string")
        return cls(role=role, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationOptions:
    """Per-request generation options. Never persisted."""

    model: str | None = None
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    seed: int | None = None  # honoured only where the backend supports it

    def __post_init__(self) -> None:
        if isinstance(self.max_output_tokens, bool) or not isinstance(self.max_output_tokens, int):
            raise InvalidRequestError("max_output_tokens must be an integer")
        if self.max_output_tokens <= 0:
            raise InvalidRequestError("max_output_tokens must be positive")
        if not 0.0 <= float(self.temperature) <= 2.0:
            raise InvalidRequestError("temperature must be between 0 and 2")

    def model_or(self, default: str) -> str:
        return self.model or default


def validate_messages(messages: object) -> list[ChatMessage]:
    """Check that ``messages`` is a non-empty ordered sequence of ChatMessage.

    Returns the messages as a list. Raises InvalidRequestError otherwise.
    """
    if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
        raise InvalidRequestError("Messages array is required")
    if not messages:
        raise InvalidRequestError("Messages array must not be empty")
    for msg in messages:
        if not isinstance(msg, ChatMessage):
            raise InvalidRequestError("Messages must be ChatMessage instances")
    return list(messages)


def split_system_prompt(messages: Sequence[ChatMessage]) -> tuple[str | None, list[ChatMessage]]:
    """Separate the system instruction from the conversation turns.

    The first system message wins; any later ones are dropped. User and
    assistant turns keep their original order.
    """
    system_text: str | None = None
    conversation: list[ChatMessage] = []
    for msg in messages:
        if msg.role == Role.SYSTEM.value:
            if system_text is None:
                system_text = msg.content
        else:
            conversation.append(msg)
    return system_text, conversation


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for LLM providers with blocking and async streaming generation."""

    @property
    def name(self) -> str:
        """Human-readable provider name (e.g. 'Claude', 'GPT-4o')."""
        ...

    @property
    def default_model(self) -> str:
        ...

    async def complete(self, messages: list[ChatMessage], options: GenerationOptions) -> str:
        """Return the full response text for the given message history."""
        ...

    def stream_response(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Stream response tokens for the given message history.

        Args:
            messages: List of ChatMessage (system, user, assistant).
            options: Model and sampling options.

        Yields:
            String tokens as they arrive.
        """
        ...

"""Environment-driven settings for the relaychat server and client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .chat.errors import UnsupportedProviderError
from .chat.llm_provider import ProviderName

DEFAULT_STREAM_TIMEOUT = 60.0


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    default_provider: ProviderName = ProviderName.OPENAI
    stream_timeout: float | None = DEFAULT_STREAM_TIMEOUT
    api_tokens: dict[str, str] = field(default_factory=dict)  # token -> identity
    cors_origins: tuple[str, ...] = ()
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables (call load_dotenv() first)."""
        provider_raw = os.getenv("RELAYCHAT_DEFAULT_PROVIDER", ProviderName.OPENAI.value)
        try:
            default_provider = ProviderName.parse(provider_raw)
        except UnsupportedProviderError:
            raise ValueError(f"RELAYCHAT_DEFAULT_PROVIDER has unknown provider: {provider_raw!r}")

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            google_api_key=os.getenv("GOOGLE_API_KEY", "") or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY", ""),
            default_provider=default_provider,
            stream_timeout=parse_timeout(os.getenv("RELAYCHAT_STREAM_TIMEOUT", "")),
            api_tokens=parse_api_tokens(os.getenv("RELAYCHAT_API_TOKENS", "")),
            cors_origins=tuple(o.strip() for o in os.getenv("RELAYCHAT_CORS_ORIGINS", "").split(",") if o.strip()),
            log_level=os.getenv("RELAYCHAT_LOG_LEVEL", "INFO"),
        )

    def api_key_for(self, provider: ProviderName) -> str:
        return {
            ProviderName.OPENAI: self.openai_api_key,
            ProviderName.ANTHROPIC: self.anthropic_api_key,
            ProviderName.GOOGLE: self.google_api_key,
        }[provider]


def parse_timeout(raw: str) -> float | None:
    """Parse RELAYCHAT_STREAM_TIMEOUT. Empty means default, 0 disables."""
    raw = raw.strip()
    if not raw:
        return DEFAULT_STREAM_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"RELAYCHAT_STREAM_TIMEOUT must be a number of seconds, got {raw!r}")
    if value < 0:
        raise ValueError("RELAYCHAT_STREAM_TIMEOUT must not be negative")
    return value or None


def parse_api_tokens(raw: str) -> dict[str, str]:
    """Parse "alice:tok1,bob:tok2" into {"tok1": "alice", "tok2": "bob"}.

    A bare token without an identity maps to itself.
    """
    tokens: dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        identity, sep, token = item.partition(":")
        if not sep:
            identity, token = item, item
        tokens[token.strip()] = identity.strip()
    return tokens

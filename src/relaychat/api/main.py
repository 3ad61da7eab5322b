"""RelayChat Web API - FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..chat.generator import UnifiedGenerator
from ..chat.llm_provider import ProviderName
from ..chat.providers import ProviderRegistry
from ..config import Settings
from .routes import chat, providers
from .services.auth import Authenticator, BearerTokenAuthenticator

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    registry: ProviderRegistry | None = None,
    authenticator: Authenticator | None = None,
) -> FastAPI:
    """Build the application. Arguments default to environment-driven wiring."""
    settings = settings or Settings.from_env()
    if registry is None:
        registry = ProviderRegistry({name: settings.api_key_for(name) for name in ProviderName})
    if authenticator is None:
        authenticator = BearerTokenAuthenticator(settings.api_tokens)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configured = [name.value for name in ProviderName if registry.is_configured(name)]
        logger.info(
            "RelayChat started (default provider: %s, configured: %s)",
            settings.default_provider.value,
            ", ".join(configured) or "none",
        )
        yield

    app = FastAPI(title="RelayChat API", lifespan=lifespan)
    app.state.settings = settings
    app.state.generator = UnifiedGenerator(registry, stream_timeout=settings.stream_timeout)
    app.state.authenticator = authenticator

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(providers.router)
    app.include_router(chat.router)
    return app

"""Health and provider discovery endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from ...chat.llm_provider import ProviderName
from ...chat.providers import default_model_for
from ..models import ProviderInfo, ProvidersResponse

router = APIRouter(prefix="/api", tags=["providers"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/providers")
def list_providers(request: Request) -> ProvidersResponse:
    registry = request.app.state.generator.registry
    return ProvidersResponse(
        default=request.app.state.settings.default_provider.value,
        providers=[
            ProviderInfo(
                name=name.value,
                default_model=default_model_for(name),
                configured=registry.is_configured(name),
            )
            for name in ProviderName
        ],
    )

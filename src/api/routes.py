"""FastAPI routes exposing the call routing service."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_config_store
from api.pbx_routes import router as pbx_router
from api.schemas import HealthResponse
from config.settings import get_settings
from store.base import ConfigStore

router = APIRouter()
router.include_router(pbx_router)


@router.get("/health", response_model=HealthResponse)
async def health(store: ConfigStore = Depends(get_config_store)) -> HealthResponse:
    settings = get_settings()
    return HealthResponse(environment=settings.environment, config_store=store.name)

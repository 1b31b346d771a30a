"""Entry point for the PBX call routing service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.dependencies import get_config_store
from api.routes import router as api_router
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = app.dependency_overrides.get(get_config_store, get_config_store)()
    LOGGER.info("Routing config store: %s", store.name)
    yield


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="PBX Call Routing",
    description="Twilio Voice webhooks for config-driven call transfer and sequential ring groups.",
    lifespan=lifespan,
)
app.include_router(api_router, prefix="/api")

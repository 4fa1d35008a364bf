# studioboard/main.py
import sys
import asyncio

# Event loop compatível no Windows (safe em outros SOs também)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studioboard.core.config import settings
from studioboard.core.log import configure_logging
from studioboard.api.v1.router import api_router
from studioboard.db.base import Base
from studioboard.db.session import AsyncSessionLocal, engine
from studioboard.integrations.gemini_client import GeminiClient
from studioboard.provider.base import DataProvider
from studioboard.provider.sql import SqlProvider
from studioboard.services.workspace import WorkspaceRegistry

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]


def _normalize_origins(value) -> list[str]:
    """Aceita lista, JSON string ou CSV e devolve lista de origens."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(o).strip() for o in value if str(o).strip()]
    if isinstance(value, str):
        try:
            as_json = json.loads(value)
        except ValueError:
            as_json = None
        if isinstance(as_json, (list, tuple)):
            return [str(o).strip() for o in as_json if str(o).strip()]
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(value).strip()]


def create_application(
    provider: Optional[DataProvider] = None,
    gemini: Optional[GeminiClient] = None,
) -> FastAPI:
    """Monta o app. Sem provedor explícito usa o banco configurado em DATABASE_URL."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)
        data = provider
        if data is None:
            # em dev as tabelas são criadas na subida
            if (settings.ENVIRONMENT or "").lower().strip() == "dev":
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            data = SqlProvider(AsyncSessionLocal)

        app.state.provider = data
        app.state.workspaces = WorkspaceRegistry(data, settings.MASTER_EMAIL)
        app.state.gemini = gemini or GeminiClient()
        logger.info(f"StudioBoard iniciado (ambiente={settings.ENVIRONMENT})")
        yield
        app.state.workspaces.shutdown()
        await data.close()

    app = FastAPI(title="StudioBoard - Painel de Produção de Vídeo", lifespan=lifespan)

    # --- CORS (antes dos routers) ---
    origins = _normalize_origins(getattr(settings, "CORS_ORIGINS", None)) or DEFAULT_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_application()

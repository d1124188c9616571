"""FastAPI application: entry point."""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.errors import install_error_handlers
from app.routes import analytics, health, profiles, tips
from config import Settings, get_settings
from migrations.migrate import migrate

logger: logging.Logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = get_settings()
    logger.info("DB: %s", settings.database.db_info_for_logging())
    if not settings.indexer.is_configured:
        logger.warning("BITQUERY_API_KEY not set: verification and on-chain analytics disabled")

    migrate()
    yield


def create_app() -> FastAPI:
    settings: Settings = get_settings()
    app: FastAPI = FastAPI(
        title="Creator Tip Jar",
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Idempotent-Replay", "X-Tip-Verification"],
    )

    install_error_handlers(app)

    app.include_router(health.router)
    app.include_router(tips.router)
    app.include_router(analytics.router)
    app.include_router(profiles.router)

    return app


app: FastAPI = create_app()


def start() -> None:
    """Entry point for tipjar-api."""
    backend_root: Path = Path(__file__).resolve().parent.parent
    os.chdir(backend_root)

    for candidate in (backend_root / ".env", backend_root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)

    logging.basicConfig(
        level=logging.DEBUG if get_settings().debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    reload: bool = os.environ.get("TIPJAR_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("TIPJAR_PORT", "8000")),
        reload=reload,
    )

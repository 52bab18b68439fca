from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from coin_sync import __version__
from coin_sync.config import get_cors_origins, get_sync_config, load_env_file
from coin_sync.db.db_conn import DbConn
from coin_sync.log import get_logger
from coin_sync.sync.service import SyncService
from coin_sync.web.routes import coins

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    owns_db = app.state.db is None
    if owns_db:
        app.state.db = DbConn()

    service: Optional[SyncService] = app.state.sync_service
    if service is None and app.state.sync_enabled:
        service = SyncService(app.state.db)
        app.state.sync_service = service
    if service is not None:
        service.start()
    else:
        logger.info("Recurring CoinGecko sync disabled")

    try:
        yield
    finally:
        if service is not None:
            service.stop()
        if owns_db:
            app.state.db.dispose()
            app.state.db = None


def create_app(
    db: Optional[DbConn] = None,
    sync_service: Optional[SyncService] = None,
    sync_enabled: Optional[bool] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The store handle and the sync service are built in the lifespan hook
    unless passed in; the first sync cycle runs as soon as the app is ready.
    """
    load_env_file()

    app = FastAPI(
        title="CoinGecko Snapshot API",
        version=__version__,
        description="Latest top-100 CoinGecko markets snapshot, refreshed every 15 minutes.",
        lifespan=lifespan,
    )
    app.state.db = db
    app.state.sync_service = sync_service
    app.state.sync_enabled = bool(get_sync_config()["SYNC_ENABLED"]) if sync_enabled is None else sync_enabled

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/ping", response_class=PlainTextResponse)
    def ping() -> str:
        return "pong"

    app.include_router(coins.router)

    return app


app = create_app()

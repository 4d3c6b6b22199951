"""FastAPI application: read API plus the background APR scheduler."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router
from src.core.config import Settings, settings
from src.core.database import dispose_engine
from src.pipelines.scheduler import AprScheduler
from src.services.store import AprStore

log = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 30.0


async def import_networks(store: AprStore, app_settings: Settings) -> None:
    """Upsert every configured network by title. Failures are fatal at startup."""
    for network in app_settings.networks:
        await store.upsert_network(
            network.title,
            network.analytics_subgraph_url,
            network.subgraph_farming_url,
            network.api_key,
        )
        log.info(f"Imported network {network.title}")


def create_app(
    app_settings: Settings | None = None,
    *,
    store: AprStore | None = None,
    start_scheduler: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app.

    Args:
        app_settings: Defaults to the module-level settings singleton.
        store: Store override (tests pass an in-memory fake).
        start_scheduler: When False the scheduler is built but never ticks.
        transport: Optional httpx transport for the subgraph clients.
    """
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store: AprStore = app.state.store
        await import_networks(app_store, cfg)

        scheduler = AprScheduler(app_store, cfg.apr_update_minutes, transport=transport)
        app.state.scheduler = scheduler
        if start_scheduler:
            scheduler.start()
        try:
            yield
        finally:
            await scheduler.stop(timeout=SHUTDOWN_TIMEOUT_SECONDS)
            await dispose_engine()
            log.info("Server exited")

    app = FastAPI(title=cfg.APP_NAME, lifespan=lifespan)
    app.state.store = store or AprStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=12 * 60 * 60,
    )
    app.include_router(router)
    return app

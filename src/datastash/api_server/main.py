# src/datastash/api_server/main.py
"""
FastAPI application for the datastash Data API.

The application is built by :func:`create_app`. Its lifespan handler
loads every persisted record into the memory tier before the server
accepts requests, so a durable record is never invisible to readers, and
runs a background task that purges expired memory entries.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request

from .. import __version__
from ..config import AppConfig, load_config
from ..storage.manager import StorageManager
from .routes import data_router

logger = logging.getLogger(__name__)


async def cache_sweeper_loop(storage: StorageManager, interval: float) -> None:
    """Background task that periodically purges expired memory entries."""
    try:
        while True:
            await asyncio.sleep(interval)
            purged = storage.cache.purge_expired()
            if purged:
                logger.debug(f"Cache sweeper purged {purged} expired records")
    except asyncio.CancelledError:
        logger.info("Cache sweeper task cancelled")
        raise


def create_app(config: Optional[AppConfig] = None, storage: Optional[StorageManager] = None) -> FastAPI:
    """
    Build the Data API application.

    Args:
        config: Application configuration; loaded with load_config() if omitted.
        storage: Pre-built StorageManager (tests inject one); built from
            ``config`` if omitted. It is initialized at startup unless it
            already is.

    Returns:
        The FastAPI application. Startup fails if reconciliation fails.
    """
    app_config = config if config is not None else load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API Server starting up...")
        manager = storage if storage is not None else StorageManager(app_config)
        if not manager.initialized:
            # Reconciliation errors propagate and abort startup
            await manager.initialize()
        app.state.storage = manager

        sweeper = asyncio.create_task(cache_sweeper_loop(manager, manager.cleanup_interval))
        logger.info("API Server startup complete")

        yield

        logger.info("API Server shutting down...")
        if not sweeper.done():
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
        app.state.storage = None
        logger.info("API Server shutdown complete")

    app = FastAPI(
        title="datastash API",
        description="Stores JSON datasets under short-lived UIDs, with optional durable persistence",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.storage = None

    app.include_router(data_router, tags=["data"])

    @app.get("/health")
    async def health_check(request: Request) -> Dict[str, Any]:
        """Health check endpoint for monitoring."""
        manager: Optional[StorageManager] = getattr(request.app.state, "storage", None)
        if manager is None or not manager.initialized:
            return {"status": "starting", "storage": None}
        return {"status": "healthy", "storage": await manager.health()}

    return app

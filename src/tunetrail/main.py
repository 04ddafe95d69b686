"""Main FastAPI application."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tunetrail.analytics.router import router as analytics_router
from tunetrail.constants import APP_DESCRIPTION, APP_TITLE, APP_VERSION, Routes, ServiceName
from tunetrail.dependencies import db_manager, task_runner
from tunetrail.history.router import router as history_router
from tunetrail.logging import configure_logging
from tunetrail.middleware import RequestIDMiddleware
from tunetrail.settings import get_settings
from tunetrail.sync.router import router as sync_router
from tunetrail.uploads.router import router as uploads_router

logger = logging.getLogger(__name__)


class TuneTrailApp:
    """Application container: configures middleware, routers, and lifespan."""

    app: FastAPI

    def __init__(self) -> None:
        configure_logging(ServiceName.API, get_settings().LOG_LEVEL)
        self.app = FastAPI(
            title=APP_TITLE,
            description=APP_DESCRIPTION,
            version=APP_VERSION,
            lifespan=self._lifespan,
        )
        self._setup_middleware()
        self._setup_routers()

    @staticmethod
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Application lifespan: optionally create the schema, drain uploads on shutdown."""
        if get_settings().DB_CREATE_SCHEMA:
            logger.info("Creating database schema")
            await db_manager.create_all()
        try:
            yield
        finally:
            await task_runner.shutdown()
            await db_manager.dispose()

    def _setup_middleware(self) -> None:
        settings = get_settings()

        # Request-ID (generates/propagates X-Request-ID)
        self.app.add_middleware(RequestIDMiddleware)

        # CORS
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_routers(self) -> None:
        self.app.include_router(uploads_router, prefix=Routes.UPLOADS.prefix, tags=[Routes.UPLOADS.tag])
        self.app.include_router(analytics_router, prefix=Routes.ANALYTICS.prefix, tags=[Routes.ANALYTICS.tag])
        self.app.include_router(sync_router, prefix=Routes.SYNC.prefix, tags=[Routes.SYNC.tag])
        self.app.include_router(history_router, prefix=Routes.HISTORY.prefix, tags=[Routes.HISTORY.tag])

        @self.app.get(Routes.HEALTH)
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "healthy"}

        @self.app.get("/")
        async def root() -> dict[str, str]:
            """Root endpoint."""
            return {"message": APP_TITLE, "version": APP_VERSION}


_application = TuneTrailApp()
app: FastAPI = _application.app

"""FastAPI application factory.

Main entry point for the Study Hub Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyhub import __version__
from studyhub.services import Services
from studyhub.web.routes import (
    exams_router,
    health_router,
    materials_router,
    progress_router,
    sync_router,
    viewer_router,
)

logger = structlog.get_logger(__name__)


def create_app(services: Services) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Service container shared by every request

    Returns:
        Configured FastAPI app instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "api_startup",
            materials_cached=len(services.store.get_all("materials")),
            online=services.connectivity.is_online,
        )
        yield
        await services.shutdown()
        logger.info("api_shutdown")

    app = FastAPI(
        title="Study Hub API",
        description="Offline-first study materials, reading progress and exams",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(materials_router)
    app.include_router(progress_router)
    app.include_router(sync_router)
    app.include_router(viewer_router)
    app.include_router(exams_router)

    return app

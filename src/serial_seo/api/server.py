"""
FastAPI server for the pre-rendering and sitemap services
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.logger import get_logger
from ..core.settings import Settings, get_settings
from ..core.store import ContentStore
from .endpoints import register_endpoints

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan"""
    settings: Settings = app.state.settings
    logger.info(f"SEO service started for {settings.site.site_url}")

    yield

    app.state.store.engine.dispose()
    logger.info("SEO service stopped")


def create_app(settings: Optional[Settings] = None, store: Optional[ContentStore] = None) -> FastAPI:
    """
    Create FastAPI application

    Args:
        settings: Application settings; loaded from the environment if omitted
        store: Content store; built from ``settings.database_url`` if omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    store = store or ContentStore(settings.database_url, echo=settings.database_echo)

    app = FastAPI(
        title="Serial SEO",
        description="Crawler pre-rendering and sitemap service for a TV serial SPA",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Range", "Accept-Ranges"],
    )

    app.state.settings = settings
    app.state.store = store

    register_endpoints(app)

    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None,
               config_path: Optional[Path] = None, reload: bool = False):
    """
    Run the API server

    Args:
        host: Host to bind to (defaults to settings)
        port: Port to bind to (defaults to settings)
        config_path: Optional YAML configuration file
        reload: Enable auto-reload for development
    """
    settings = get_settings(config_path)
    app = create_app(settings)

    host = host or settings.host
    port = port or settings.port
    logger.info(f"Starting API server on {host}:{port}")

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        reload=reload,
    )

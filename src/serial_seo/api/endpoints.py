"""
API endpoints

Crawler pre-rendering (/seo-render), sitemaps (/sitemap), the video proxy
and a health probe. Handlers are synchronous; FastAPI runs them in its
thread pool alongside the blocking database driver.
"""

from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from .. import __version__
from ..core.exceptions import DataStoreError
from ..core.logger import get_logger
from ..core.settings import Settings
from ..core.store import ContentStore
from ..seo.bots import is_bot
from ..seo.renderer import SeoRenderer
from ..sitemap.generator import SitemapGenerator
from ..sitemap.xml import error_document
from .models import ErrorResponse, HealthResponse, NotBotResponse
from .video_proxy import PROXY_CORS_HEADERS, proxy_video

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def get_store(request: Request) -> ContentStore:
    """Dependency to get the content store"""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    """Dependency to get the application settings"""
    return request.app.state.settings


def _cache_control(settings: Settings) -> str:
    return f"public, max-age={settings.site.cache_max_age}"


def register_endpoints(app: FastAPI):
    """Register all API endpoints"""

    @app.options("/seo-render")
    @app.options("/sitemap")
    def preflight():
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.options("/video-proxy")
    def video_proxy_preflight():
        return Response(status_code=200, headers=PROXY_CORS_HEADERS)

    @app.api_route("/seo-render", methods=["GET", "POST"])
    def seo_render(
        request: Request,
        path: Optional[str] = Query("/", description="SPA path to render"),
        store: ContentStore = Depends(get_store),
        settings: Settings = Depends(get_app_settings),
    ):
        """Pre-rendered HTML for crawlers, a JSON pass-through for browsers"""
        user_agent = request.headers.get("user-agent", "")

        if not is_bot(user_agent):
            return JSONResponse(NotBotResponse().model_dump(), headers=CORS_HEADERS)

        logger.info(f"Bot detected: {user_agent}", extra={"user_agent": user_agent, "path": path})

        try:
            document = SeoRenderer(store, settings.site).render(path or "/")
        except Exception as e:
            logger.exception(f"SEO render failed for {path}", extra={"path": path})
            message = getattr(e, "message", None) or str(e) or "Unknown error"
            return JSONResponse(
                ErrorResponse(error=message).model_dump(),
                status_code=500,
                headers=CORS_HEADERS,
            )

        return HTMLResponse(
            document,
            headers={**CORS_HEADERS, "Cache-Control": _cache_control(settings)},
        )

    @app.get("/sitemap")
    def sitemap(
        type: Optional[str] = Query("index", description="index, pages, shows, categories or episodes"),
        page: Optional[str] = Query("1", description="Episode sitemap page, 1-based"),
        store: ContentStore = Depends(get_store),
        settings: Settings = Depends(get_app_settings),
    ):
        """Sitemap index or one child sitemap"""
        try:
            xml = SitemapGenerator(store, settings.site).generate(type, page)
        except Exception as e:
            logger.exception("Sitemap generation failed", extra={"sitemap_type": type, "page": page})
            message = getattr(e, "message", None) or str(e) or "Unknown error"
            return Response(
                error_document(message),
                status_code=500,
                media_type="application/xml",
                headers=CORS_HEADERS,
            )

        return Response(
            xml,
            media_type="application/xml; charset=utf-8",
            headers={**CORS_HEADERS, "Cache-Control": _cache_control(settings)},
        )

    @app.get("/video-proxy")
    def video_proxy(
        url: Optional[str] = Query(None, description="Remote video URL"),
        range_header: Optional[str] = Header(None, alias="range"),
        settings: Settings = Depends(get_app_settings),
    ):
        """Stream a remote video with Range support"""
        return proxy_video(url, range_header, cache_max_age=settings.site.cache_max_age)

    @app.get("/health", response_model=HealthResponse)
    def get_health(store: ContentStore = Depends(get_store)):
        """Get service health status"""
        try:
            store.get_site_settings()
            database = "ok"
        except DataStoreError as e:
            logger.warning(f"Health check could not reach the content store: {e}")
            database = "unavailable"

        return HealthResponse(
            status="ok" if database == "ok" else "degraded",
            version=__version__,
            database=database,
        )

"""
Streaming video proxy

Relays third-party video files through the service so the player can
seek (Range requests) without cross-origin failures.
"""

from typing import Dict, Optional

import requests
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ..core.logger import get_logger
from .models import ProxyErrorResponse

logger = get_logger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PROXY_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, range",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Expose-Headers": "Content-Length, Content-Range, Accept-Ranges",
}

CHUNK_SIZE = 64 * 1024
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 60


def _error(status_code: int, error: str, status: Optional[int] = None) -> JSONResponse:
    body = ProxyErrorResponse(error=error, status=status).model_dump(exclude_none=True)
    return JSONResponse(body, status_code=status_code, headers=PROXY_CORS_HEADERS)


def proxy_video(video_url: Optional[str], range_header: Optional[str] = None,
                cache_max_age: int = 3600, session: Optional[requests.Session] = None):
    """
    Stream a remote video

    Args:
        video_url: Remote file URL
        range_header: Incoming Range header, forwarded unchanged
        cache_max_age: Cache-Control max-age of the proxied response
        session: Optional requests session

    Returns:
        StreamingResponse on success, JSONResponse describing the failure
        otherwise
    """
    if not video_url:
        logger.error("No video URL provided")
        return _error(400, "Video URL is required")

    logger.info(f"Proxying video from: {video_url}")

    headers: Dict[str, str] = {"User-Agent": BROWSER_USER_AGENT}
    if range_header:
        headers["Range"] = range_header

    http = session or requests
    try:
        upstream = http.get(
            video_url,
            headers=headers,
            stream=True,
            allow_redirects=True,
            timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
        )
    except requests.RequestException as e:
        logger.error(f"Video proxy error: {e}")
        return _error(500, str(e))

    if not upstream.ok and upstream.status_code != 206:
        logger.error(f"Failed to fetch video: {upstream.status_code} {upstream.reason}")
        upstream.close()
        return _error(upstream.status_code, "Failed to fetch video", status=upstream.status_code)

    content_type = upstream.headers.get("Content-Type") or "video/mp4"
    response_headers = {
        **PROXY_CORS_HEADERS,
        "Accept-Ranges": upstream.headers.get("Accept-Ranges") or "bytes",
        "Cache-Control": f"public, max-age={cache_max_age}",
    }
    for name in ("Content-Length", "Content-Range"):
        value = upstream.headers.get(name)
        if value:
            response_headers[name] = value

    return StreamingResponse(
        upstream.iter_content(chunk_size=CHUNK_SIZE),
        status_code=upstream.status_code,
        media_type=content_type if "video" in content_type else "video/mp4",
        headers=response_headers,
        background=BackgroundTask(upstream.close),
    )

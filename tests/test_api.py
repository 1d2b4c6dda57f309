"""
Endpoint tests for the FastAPI application
"""

import xml.etree.ElementTree as ET
from unittest.mock import MagicMock, patch

import pytest
import requests

from serial_seo.core.exceptions import DataStoreError

SITE = "https://www.btspro24.com"
GOOGLEBOT_UA = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
BROWSER_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


# ========================================
# seo-render
# ========================================

class TestSeoRender:

    def test_browser_gets_json(self, client):
        response = client.get("/seo-render", params={"path": "/show/amar-ami"}, headers={"User-Agent": BROWSER_UA})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"isBot": False, "message": "Not a bot, serve SPA normally"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_missing_user_agent_is_not_a_bot(self, client):
        response = client.get("/seo-render", params={"path": "/"}, headers={"User-Agent": ""})
        assert response.json()["isBot"] is False

    def test_bot_gets_html(self, client):
        response = client.get("/seo-render", params={"path": "/show/amar-ami"}, headers={"User-Agent": GOOGLEBOT_UA})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/html; charset=utf-8"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.headers["access-control-allow-origin"] == "*"
        assert "Amar Ami TV Serial Online" in response.text
        assert f'<link rel="canonical" href="{SITE}/show/amar-ami">' in response.text

    def test_post_method(self, client):
        response = client.post("/seo-render", params={"path": "/free-episodes"}, headers={"User-Agent": GOOGLEBOT_UA})

        assert response.status_code == 200
        assert "Free Episodes" in response.text

    def test_default_path_is_home(self, client):
        response = client.get("/seo-render", headers={"User-Agent": GOOGLEBOT_UA})
        assert f'<link rel="canonical" href="{SITE}/">' in response.text

    def test_unknown_entity_is_still_200(self, client):
        response = client.get("/seo-render", params={"path": "/watch/amar-ami/2099-01-01"},
                              headers={"User-Agent": GOOGLEBOT_UA})

        assert response.status_code == 200
        assert "<title>BTSPRO24</title>" in response.text

    def test_store_failure_is_500_json(self, client, store):
        with patch.object(store, "get_site_settings", side_effect=DataStoreError("database unavailable")):
            response = client.get("/seo-render", params={"path": "/"}, headers={"User-Agent": GOOGLEBOT_UA})

        assert response.status_code == 500
        assert response.json() == {"error": "database unavailable"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_options(self, client):
        response = client.options("/seo-render")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"


# ========================================
# sitemap
# ========================================

class TestSitemap:

    def test_default_is_index(self, client):
        response = client.get("/sitemap")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/xml; charset=utf-8"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert "<sitemapindex" in response.text

    @pytest.mark.parametrize("sitemap_type,marker", [
        ("pages", f"{SITE}/free-episodes"),
        ("shows", f"{SITE}/show/amar-ami"),
        ("categories", f"{SITE}/section/popular"),
        ("episodes", f"{SITE}/watch/amar-ami/2024-05-01"),
    ])
    def test_types(self, client, sitemap_type, marker):
        response = client.get("/sitemap", params={"type": sitemap_type})

        assert response.status_code == 200
        assert marker in response.text
        ET.fromstring(response.content)

    def test_unknown_type_and_bad_page_are_defaulted(self, client):
        assert "<sitemapindex" in client.get("/sitemap", params={"type": "nope"}).text

        response = client.get("/sitemap", params={"type": "episodes", "page": "abc"})
        assert response.status_code == 200
        assert f"{SITE}/watch/amar-ami/2024-05-01" in response.text

    def test_store_failure_is_500_xml(self, client, store):
        with patch.object(store, "count_active_episodes", side_effect=DataStoreError("query failed")):
            response = client.get("/sitemap")

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text == '<?xml version="1.0" encoding="UTF-8"?><error>query failed</error>'

    def test_options(self, client):
        response = client.options("/sitemap")
        assert response.status_code == 200
        assert response.content == b""


# ========================================
# video-proxy
# ========================================

def _upstream(status_code=200, headers=None, chunks=(b"abc", b"def")):
    upstream = MagicMock()
    upstream.status_code = status_code
    upstream.ok = status_code < 400
    upstream.reason = "Reason"
    upstream.headers = headers or {}
    upstream.iter_content.return_value = iter(chunks)
    return upstream


class TestVideoProxy:

    def test_missing_url(self, client):
        response = client.get("/video-proxy")

        assert response.status_code == 400
        assert response.json() == {"error": "Video URL is required"}

    def test_streams_video(self, client):
        upstream = _upstream(headers={"Content-Type": "video/mp4", "Content-Length": "6"})

        with patch("serial_seo.api.video_proxy.requests.get", return_value=upstream) as mock_get:
            response = client.get("/video-proxy", params={"url": "https://videos.example.com/a.mp4"})

        assert response.status_code == 200
        assert response.content == b"abcdef"
        assert response.headers["content-type"] == "video/mp4"
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert response.headers["access-control-allow-origin"] == "*"

        args, kwargs = mock_get.call_args
        assert args == ("https://videos.example.com/a.mp4",)
        assert kwargs["stream"] is True
        assert "Range" not in kwargs["headers"]
        upstream.close.assert_called()

    def test_forwards_range(self, client):
        upstream = _upstream(
            status_code=206,
            headers={"Content-Type": "application/octet-stream", "Content-Range": "bytes 0-5/100"},
        )

        with patch("serial_seo.api.video_proxy.requests.get", return_value=upstream) as mock_get:
            response = client.get("/video-proxy", params={"url": "https://videos.example.com/a.mp4"},
                                  headers={"Range": "bytes=0-5"})

        assert response.status_code == 206
        assert response.headers["content-type"] == "video/mp4"
        assert response.headers["content-range"] == "bytes 0-5/100"
        assert mock_get.call_args.kwargs["headers"]["Range"] == "bytes=0-5"

    def test_upstream_error(self, client):
        upstream = _upstream(status_code=404)

        with patch("serial_seo.api.video_proxy.requests.get", return_value=upstream):
            response = client.get("/video-proxy", params={"url": "https://videos.example.com/missing.mp4"})

        assert response.status_code == 404
        assert response.json() == {"error": "Failed to fetch video", "status": 404}
        upstream.close.assert_called_once()

    def test_transport_error(self, client):
        with patch("serial_seo.api.video_proxy.requests.get",
                   side_effect=requests.ConnectionError("connection refused")):
            response = client.get("/video-proxy", params={"url": "https://videos.example.com/a.mp4"})

        assert response.status_code == 500
        assert response.json() == {"error": "connection refused"}

    def test_options(self, client):
        response = client.options("/video-proxy")

        assert response.status_code == 200
        assert "range" in response.headers["access-control-allow-headers"]


# ========================================
# health
# ========================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["database"] == "ok"

    def test_degraded(self, client, store):
        with patch.object(store, "get_site_settings", side_effect=DataStoreError("down")):
            response = client.get("/health")

        assert response.json() == {"status": "degraded", "version": "1.0.0", "database": "unavailable"}

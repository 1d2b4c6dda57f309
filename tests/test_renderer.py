"""
Tests for fetchers and the end-to-end render pipeline
"""

import json
import re
from unittest.mock import patch

import pytest

from serial_seo.core.exceptions import DataStoreError
from serial_seo.core.models import SiteSettings
from serial_seo.core.settings import SiteDefaults
from serial_seo.seo.fetchers import (
    CollectionPage, ShowPage, WatchPage, extract_first_image, fetch_page,
)
from serial_seo.seo.renderer import SeoRenderer, build_site_context
from serial_seo.seo.routes import Home, resolve_path

SITE = "https://www.btspro24.com"


def _ld_json(document: str) -> dict:
    scripts = re.findall(r'<script type="application/ld\+json">(.*?)</script>', document, re.S)
    assert len(scripts) == 1
    return json.loads(scripts[0])


@pytest.fixture
def renderer(store, site_defaults):
    return SeoRenderer(store, site_defaults)


# ========================================
# Fetchers
# ========================================

class TestFetchers:

    def test_show_with_category_and_episodes(self, store):
        record = fetch_page(store, resolve_path("/show/amar-ami"))

        assert isinstance(record, ShowPage)
        assert record.category.slug == "star-jalsha"
        assert [e.id for e in record.episodes] == ["ep-3", "ep-2", "ep-1"]

    def test_watch_by_each_token_kind(self, store):
        by_date = fetch_page(store, resolve_path("/watch/amar-ami/2024-05-02"))
        by_number = fetch_page(store, resolve_path("/watch/amar-ami/episode-2"))
        by_id = fetch_page(store, resolve_path("/watch/amar-ami/ep-2"))

        assert isinstance(by_date, WatchPage)
        assert by_date.episode.id == by_number.episode.id == by_id.episode.id == "ep-2"
        assert by_date.previous.id == "ep-1"
        assert by_date.next.id == "ep-3"

    def test_not_found_returns_none(self, store):
        assert fetch_page(store, resolve_path("/show/hidden-show")) is None
        assert fetch_page(store, resolve_path("/watch/amar-ami/2030-01-01")) is None
        assert fetch_page(store, resolve_path("/category/old-channel")) is None
        assert fetch_page(store, resolve_path("/draft-post")) is None
        assert fetch_page(store, Home(fallback=True)) is None

    def test_section_members(self, store):
        record = fetch_page(store, resolve_path("/category/section/popular"))
        assert isinstance(record, CollectionPage)
        assert [s.slug for s in record.shows] == ["kotha", "amar-ami"]

    def test_free_episodes_skip_inactive_shows(self, store):
        record = fetch_page(store, resolve_path("/free-episodes"))
        assert {(e.id, s.slug) for e, s in record.episodes} == {("ep-3", "amar-ami"), ("ep-4", "kotha")}

    def test_post_image_from_content(self, store):
        record = fetch_page(store, resolve_path("/top-serials-2024"))
        assert record.image_url == "https://cdn.example.com/post.jpg"
        assert record.category_name == "Star Jalsha"

    def test_related_lookup_failure_degrades(self, store):
        with patch.object(store, "list_show_episodes", side_effect=DataStoreError("boom", query="show_episodes")):
            record = fetch_page(store, resolve_path("/show/amar-ami"))

        assert record.episodes == []
        assert record.category.slug == "star-jalsha"

    def test_primary_lookup_failure_propagates(self, store):
        with patch.object(store, "get_show_by_slug", side_effect=DataStoreError("boom", query="show_by_slug")):
            with pytest.raises(DataStoreError):
                fetch_page(store, resolve_path("/show/amar-ami"))

    def test_extract_first_image(self):
        assert extract_first_image('<p>x</p><IMG class="a" src=\'https://x/a.png\'>') == "https://x/a.png"
        assert extract_first_image("<p>no image</p>") is None
        assert extract_first_image(None) is None


# ========================================
# Site context
# ========================================

class TestSiteContext:

    def test_defaults_without_row(self):
        context = build_site_context(SiteDefaults(site_url=f"{SITE}/"), None)

        assert context.site_url == SITE
        assert context.site_title == "BTSPRO24"
        assert context.default_og_image == f"{SITE}/og-image.png"
        assert context.logo_url == f"{SITE}/logo.png"

    def test_row_overrides(self):
        row = SiteSettings(site_title="My Site", site_description="", site_keywords="a, b",
                           logo_url="https://cdn.example.com/logo.png")
        context = build_site_context(SiteDefaults(site_url=SITE), row)

        assert context.site_title == "My Site"
        assert context.site_description == SiteDefaults().site_description
        assert context.keywords == "a, b"
        assert context.logo_url == "https://cdn.example.com/logo.png"

    def test_data_uri_logo_is_ignored(self):
        row = SiteSettings(logo_url="data:image/png;base64,AAAA")
        assert build_site_context(SiteDefaults(site_url=SITE), row).logo_url == f"{SITE}/logo.png"


# ========================================
# Render pipeline
# ========================================

class TestSeoRenderer:

    def test_home(self, renderer):
        document = renderer.render("/")

        assert "<title>BTSPRO24 - Download Bengali TV Serials &amp; Movies HD</title>" in document
        assert f'<link rel="canonical" href="{SITE}/">' in document
        assert '<meta name="keywords" content="bangla serial, star jalsha">' in document
        assert "Hidden Show" not in document

    def test_watch_page(self, renderer):
        document = renderer.render("/watch/amar-ami/2024-05-02")
        graph = _ld_json(document)["@graph"]

        assert [node["@type"] for node in graph] == ["VideoObject", "TVEpisode", "BreadcrumbList"]
        assert 'rel="prev"' in document
        assert 'rel="next"' in document
        assert '<meta property="og:type" content="video.episode">' in document

    def test_show_page_escapes_description(self, renderer):
        document = renderer.render("/show/kotha")

        assert "<b>Bold</b>" not in document
        assert "&lt;b&gt;Bold&lt;/b&gt; &amp; stuff" in document
        assert "Kotha TV Serial Online" in document
        assert f'<meta property="og:image" content="{SITE}/og-image.png">' in document

    def test_missing_entity_uses_defaults(self, renderer):
        document = renderer.render("/show/does-not-exist")

        assert "<title>BTSPRO24</title>" in document
        assert '<meta name="description" content="Bengali serials hub">' in document
        assert f'<link rel="canonical" href="{SITE}/show/does-not-exist">' in document

    def test_reserved_path_uses_defaults(self, renderer):
        document = renderer.render("/search")
        assert "<title>BTSPRO24</title>" in document

    def test_trailing_slash_and_query_are_ignored(self, renderer):
        assert renderer.render("/show/amar-ami/") == renderer.render("/show/amar-ami?utm=1")

    def test_store_failure_raises(self, renderer, store):
        with patch.object(store, "get_site_settings", side_effect=DataStoreError("down", query="site_settings")):
            with pytest.raises(DataStoreError):
                renderer.render("/")

"""
Pytest configuration and shared fixtures for serial-seo tests
"""
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from serial_seo.api.server import create_app
from serial_seo.core.models import (
    ContentCategory, ContentSection, Episode, Post, SectionShow, Show,
    SiteSettings,
)
from serial_seo.core.settings import Settings, SiteDefaults
from serial_seo.core.store import ContentStore
from serial_seo.seo.html import SiteContext


SITE_URL = "https://www.btspro24.com"


# ========================================
# Settings Fixtures
# ========================================

@pytest.fixture
def site_defaults():
    """Site defaults with the production origin"""
    return SiteDefaults(site_url=SITE_URL)


@pytest.fixture
def settings(tmp_path, site_defaults):
    """Settings pointing at a temporary SQLite database"""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'content.db'}",
        log_dir=tmp_path / "logs",
        log_format="text",
        site=site_defaults,
    )


@pytest.fixture
def site_context():
    """Site context as built from defaults plus the settings row"""
    return SiteContext(
        site_url=SITE_URL,
        site_title="BTSPRO24",
        site_description="Bengali serials hub",
        default_og_image=f"{SITE_URL}/og-image.png",
        logo_url=f"{SITE_URL}/logo.png",
        year=2024,
    )


# ========================================
# Content Store Fixtures
# ========================================

def _seed(store: ContentStore):
    """Populate a small catalog: active and inactive rows of every table"""
    rows = [
        SiteSettings(id="main", site_title="BTSPRO24", site_description="Bengali serials hub",
                     site_keywords="bangla serial, star jalsha"),

        ContentCategory(id="cat-1", slug="star-jalsha", name="Star Jalsha",
                        description="Star Jalsha serials", image_url="https://cdn.example.com/sj.png",
                        display_order=1, updated_at=datetime(2024, 5, 1, 8, 0, 0, tzinfo=timezone.utc)),
        ContentCategory(id="cat-2", slug="zee-bangla", name="Zee Bangla",
                        image_url="data:image/png;base64,AAAA", display_order=2,
                        updated_at=datetime(2024, 4, 1, 8, 0, 0, tzinfo=timezone.utc)),
        ContentCategory(id="cat-3", slug="old-channel", name="Old Channel", is_active=False,
                        display_order=0, updated_at=datetime(2025, 1, 1, 8, 0, 0, tzinfo=timezone.utc)),

        Show(id="show-1", slug="amar-ami", title="Amar Ami", description="A family drama.",
             poster_url="https://cdn.example.com/amar-ami.jpg", category_id="cat-1",
             is_featured=True, display_order=1, updated_at=datetime(2024, 6, 1, 10, 0, 0, tzinfo=timezone.utc)),
        Show(id="show-2", slug="kotha", title="Kotha", description="<b>Bold</b> & stuff",
             poster_url="data:image/png;base64,AAAA", category_id="cat-2",
             display_order=2, updated_at=datetime(2024, 5, 20, 10, 0, 0, tzinfo=timezone.utc)),
        Show(id="show-3", slug="hidden-show", title="Hidden Show", is_active=False,
             category_id="cat-1", updated_at=datetime(2025, 2, 1, 10, 0, 0, tzinfo=timezone.utc)),

        Episode(id="ep-1", show_id="show-1", title="Episode 1", episode_number=1,
                air_date=date(2024, 5, 1), thumbnail_url="https://cdn.example.com/ep1.jpg",
                watch_url="https://www.youtube.com/watch?v=abc123",
                created_at=datetime(2024, 5, 1, 6, 0, 0, tzinfo=timezone.utc), updated_at=datetime(2024, 5, 1, 6, 0, 0, tzinfo=timezone.utc)),
        Episode(id="ep-2", show_id="show-1", title="Episode 2", episode_number=2,
                air_date=date(2024, 5, 2), thumbnail_url="https://cdn.example.com/ep2.jpg",
                watch_url="https://drive.google.com/file/d/FILE_ID/view?usp=sharing",
                created_at=datetime(2024, 5, 2, 6, 0, 0, tzinfo=timezone.utc), updated_at=datetime(2024, 5, 2, 6, 0, 0, tzinfo=timezone.utc)),
        Episode(id="ep-3", show_id="show-1", title="Episode 3", episode_number=3,
                is_free=True, created_at=datetime(2024, 5, 3, 6, 0, 0, tzinfo=timezone.utc),
                updated_at=datetime(2024, 5, 3, 6, 0, 0, tzinfo=timezone.utc)),
        Episode(id="ep-4", show_id="show-2", title="Pilot", episode_number=1,
                air_date=date(2024, 4, 1), thumbnail_url="data:image/png;base64,AAAA",
                watch_url="https://videos.example.com/k1.mp4", is_free=True,
                created_at=datetime(2024, 4, 1, 6, 0, 0, tzinfo=timezone.utc), updated_at=datetime(2024, 4, 1, 6, 0, 0, tzinfo=timezone.utc)),
        Episode(id="ep-5", show_id="show-3", title="Hidden Episode", episode_number=1,
                air_date=date(2024, 7, 1), created_at=datetime(2024, 7, 1, 6, 0, 0, tzinfo=timezone.utc),
                updated_at=datetime(2024, 7, 1, 6, 0, 0, tzinfo=timezone.utc)),
        Episode(id="ep-6", show_id="show-1", title="Removed Episode", episode_number=4,
                is_active=False, updated_at=datetime(2025, 1, 1, 6, 0, 0, tzinfo=timezone.utc)),

        ContentSection(id="sec-1", slug="popular", title="Popular Shows", display_order=1,
                       created_at=datetime(2024, 3, 1, 0, 0, 0, tzinfo=timezone.utc)),
        ContentSection(id="sec-2", slug="archived", title="Archived", display_order=2, is_active=False),
        SectionShow(id="ss-1", section_id="sec-1", show_id="show-2", display_order=1),
        SectionShow(id="ss-2", section_id="sec-1", show_id="show-1", display_order=2),
        SectionShow(id="ss-3", section_id="sec-1", show_id="show-3", display_order=3),

        Post(id="post-1", slug="top-serials-2024", title="Top Serials of 2024",
             content='<p>Our picks &amp; more.</p><img src="https://cdn.example.com/post.jpg"><p>Read on</p>',
             status="published", tags=["serial", "bangla"], category_id="cat-1",
             created_at=datetime(2024, 6, 10, 9, 0, 0, tzinfo=timezone.utc), updated_at=datetime(2024, 6, 11, 9, 0, 0, tzinfo=timezone.utc)),
        Post(id="post-2", slug="draft-post", title="Draft", status="draft"),
    ]

    with store.get_session() as session:
        for row in rows:
            session.add(row)
        session.commit()


@pytest.fixture
def store(settings):
    """Seeded content store on a temporary SQLite file"""
    content_store = ContentStore(settings.database_url)
    content_store.init_db()
    _seed(content_store)
    yield content_store
    content_store.engine.dispose()


@pytest.fixture
def empty_store(tmp_path):
    """Content store with tables but no rows"""
    content_store = ContentStore(f"sqlite:///{tmp_path / 'empty.db'}")
    content_store.init_db()
    yield content_store
    content_store.engine.dispose()


# ========================================
# API Fixtures
# ========================================

@pytest.fixture
def client(settings, store):
    """FastAPI test client over the seeded store"""
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client

"""SQLModel table models for the content store.

The service only reads these tables; rows are created and edited by the
admin panel. Column names mirror the hosted database so the same models
work against it and against a local SQLite copy.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostStatus(str, Enum):
    """Publication state of a blog post."""
    DRAFT = "draft"
    PUBLISHED = "published"
    TRASH = "trash"


class SectionType(str, Enum):
    """Card layout of a home page section."""
    POSTER = "poster"
    THUMBNAIL = "thumbnail"


class ContentCategory(SQLModel, table=True):
    """TV channel / category."""
    __tablename__ = "content_categories"

    id: str = Field(default_factory=_new_id, primary_key=True)
    slug: str = Field(unique=True, index=True)
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_order: Optional[int] = Field(default=0, index=True)
    is_active: Optional[bool] = Field(default=True, index=True)

    created_at: Optional[datetime] = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = Field(default_factory=_utcnow)


class Show(SQLModel, table=True):
    """A TV serial."""
    __tablename__ = "shows"

    id: str = Field(default_factory=_new_id, primary_key=True)
    slug: str = Field(unique=True, index=True)  # URL-safe
    title: str
    description: Optional[str] = None
    poster_url: Optional[str] = None  # 2:3
    thumbnail_url: Optional[str] = None  # 16:9
    badge_type: Optional[str] = None
    category_id: Optional[str] = Field(default=None, foreign_key="content_categories.id", index=True)
    display_order: Optional[int] = Field(default=0)
    is_active: Optional[bool] = Field(default=True, index=True)
    is_featured: Optional[bool] = Field(default=False, index=True)

    created_at: Optional[datetime] = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = Field(default_factory=_utcnow, index=True)


class Episode(SQLModel, table=True):
    """A single episode of a show."""
    __tablename__ = "episodes"

    id: str = Field(default_factory=_new_id, primary_key=True)
    show_id: str = Field(foreign_key="shows.id", index=True)
    title: str
    episode_number: Optional[int] = Field(default=None, index=True)
    season_number: Optional[int] = None
    air_date: Optional[date] = Field(default=None, index=True)
    thumbnail_url: Optional[str] = None
    watch_url: Optional[str] = None  # raw third-party video link
    is_active: Optional[bool] = Field(default=True, index=True)
    is_free: Optional[bool] = Field(default=False, index=True)

    created_at: Optional[datetime] = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = Field(default_factory=_utcnow, index=True)

    @property
    def slug(self) -> str:
        """Path token for /watch/<show>/<token>: air date, else episode-<n>."""
        if self.air_date:
            return self.air_date.isoformat()
        if self.episode_number is not None:
            return f"episode-{self.episode_number}"
        return self.id


class ContentSection(SQLModel, table=True):
    """Curated home page row of shows."""
    __tablename__ = "content_sections"

    id: str = Field(default_factory=_new_id, primary_key=True)
    slug: str = Field(unique=True, index=True)
    title: str
    section_type: Optional[str] = Field(default=SectionType.POSTER.value)
    show_more_link: Optional[str] = None
    display_order: Optional[int] = Field(default=0, index=True)
    is_active: Optional[bool] = Field(default=True, index=True)

    created_at: Optional[datetime] = Field(default_factory=_utcnow)


class SectionShow(SQLModel, table=True):
    """Ordered section membership."""
    __tablename__ = "section_shows"

    id: str = Field(default_factory=_new_id, primary_key=True)
    section_id: str = Field(foreign_key="content_sections.id", index=True)
    show_id: str = Field(foreign_key="shows.id", index=True)
    display_order: Optional[int] = Field(default=0)


class Post(SQLModel, table=True):
    """Blog post."""
    __tablename__ = "posts"

    id: str = Field(default_factory=_new_id, primary_key=True)
    slug: str = Field(unique=True, index=True)
    title: str
    content: Optional[str] = None  # raw HTML
    excerpt: Optional[str] = None
    featured_image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    status: str = Field(default=PostStatus.DRAFT.value, index=True)
    tags: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    category_id: Optional[str] = Field(default=None, foreign_key="content_categories.id")
    author_id: Optional[str] = None
    view_count: Optional[int] = Field(default=0)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SiteSettings(SQLModel, table=True):
    """Singleton configuration row (id = "main")."""
    __tablename__ = "site_settings"

    id: str = Field(default="main", primary_key=True)
    site_title: Optional[str] = None
    site_description: Optional[str] = None
    site_keywords: Optional[str] = None
    logo_url: Optional[str] = None

    # Ads and analytics (read by the SPA, carried for completeness)
    ads_enabled: Optional[bool] = Field(default=False)
    ad_code_head: Optional[str] = None
    ad_code_body: Optional[str] = None
    ad_code_in_article: Optional[str] = None
    google_adsense_id: Optional[str] = None
    google_analytics_id: Optional[str] = None

    latest_episodes_enabled: bool = Field(default=True)
    latest_episodes_limit: int = Field(default=20)

    updated_at: Optional[datetime] = Field(default_factory=_utcnow)

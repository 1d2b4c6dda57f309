"""
Sitemap generation

Builds the sitemap index and the four child sitemaps (static pages, shows,
categories with sections, paginated episodes) from the content store.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Optional, Type

from sqlmodel import SQLModel

from ..core.exceptions import DataStoreError
from ..core.logger import get_logger
from ..core.models import ContentCategory, Episode, Show
from ..core.settings import SiteDefaults
from ..core.store import ContentStore
from .xml import (
    ImageEntry, SitemapIndex, URLSet, VideoEntry, convert_to_embed_url,
    format_lastmod, is_valid_image_url,
)

logger = get_logger(__name__)

SITEMAP_TYPES = ("index", "pages", "shows", "categories", "episodes")

# (path, changefreq, priority)
STATIC_PAGES = (
    ("/", "daily", 1.0),
    ("/free-episodes", "daily", 0.9),
    ("/search", "weekly", 0.7),
)

SHOW_CHANGEFREQ, SHOW_PRIORITY = "daily", 0.9
CATEGORY_CHANGEFREQ, CATEGORY_PRIORITY = "weekly", 0.8
SECTION_CHANGEFREQ, SECTION_PRIORITY = "weekly", 0.7
EPISODE_CHANGEFREQ, EPISODE_PRIORITY = "monthly", 0.6

MAX_SQL_OFFSET = 2 ** 63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_type(value: Optional[str]) -> str:
    """Unknown or missing sitemap types fall back to the index."""
    value = (value or "").strip().lower()
    return value if value in SITEMAP_TYPES else "index"


def parse_page(value, page_size: int = 1) -> int:
    """
    1-based page number

    Anything unparseable, below 1, or whose row offset does not fit a
    64-bit SQL integer becomes 1.
    """
    try:
        page = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    if page < 1 or (page - 1) * page_size > MAX_SQL_OFFSET:
        return 1
    return page


def episode_page_count(active_episodes: int, page_size: int) -> int:
    return max(1, math.ceil(active_episodes / page_size))


class SitemapGenerator:
    """
    Generate sitemap XML documents

    Args:
        store: Content store
        site: Site defaults (origin, OG image, page size)
        clock: Returns the current time; injectable for tests
    """

    def __init__(self, store: ContentStore, site: SiteDefaults,
                 clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.site = site
        self.site_url = site.site_url.rstrip("/")
        self.page_size = site.episodes_per_sitemap
        self.clock = clock

    def generate(self, sitemap_type: Optional[str] = "index", page=1) -> str:
        """Dispatch on sitemap type and return the XML document."""
        kind = normalize_type(sitemap_type)

        if kind == "pages":
            xml = self.generate_pages()
        elif kind == "shows":
            xml = self.generate_shows()
        elif kind == "categories":
            xml = self.generate_categories()
        elif kind == "episodes":
            xml = self.generate_episodes(parse_page(page, self.page_size))
        else:
            xml = self.generate_index()

        logger.info(f"Sitemap generated: type={kind}", extra={"sitemap_type": kind, "page": page})
        return xml

    def _latest_modified(self, model: Type[SQLModel]) -> str:
        """Newest updated_at among active rows, or now."""
        try:
            latest = self.store.latest_updated_at(model)
        except DataStoreError as e:
            logger.warning(f"lastmod lookup failed for {model.__tablename__}, using now: {e}")
            latest = None

        if latest is None:
            return self.clock().isoformat()
        if latest.tzinfo is None:
            latest = latest.replace(tzinfo=timezone.utc)
        return latest.isoformat()

    def generate_index(self) -> str:
        """Sitemap index with one entry per child sitemap."""
        pages = episode_page_count(self.store.count_active_episodes(), self.page_size)

        index = SitemapIndex(stylesheet_url=f"{self.site_url}/sitemap.xsl")
        index.add_sitemap(f"{self.site_url}/sitemap-pages.xml", self.clock().isoformat())
        index.add_sitemap(f"{self.site_url}/sitemap-shows.xml", self._latest_modified(Show))
        index.add_sitemap(f"{self.site_url}/sitemap-categories.xml", self._latest_modified(ContentCategory))

        episode_lastmod = self._latest_modified(Episode)
        for number in range(1, pages + 1):
            index.add_sitemap(f"{self.site_url}/sitemap-episodes-{number}.xml", episode_lastmod)

        return index.to_xml()

    def generate_pages(self) -> str:
        today = self.clock().date()
        urlset = URLSet()
        for path, changefreq, priority in STATIC_PAGES:
            urlset.add_url(f"{self.site_url}{path}", today.isoformat(), changefreq, priority)
        return urlset.to_xml()

    def generate_shows(self) -> str:
        today = self.clock().date()
        urlset = URLSet()

        for show in self.store.list_active_shows():
            image = None
            image_url = next((url for url in (show.poster_url, show.thumbnail_url) if is_valid_image_url(url)), None)
            if image_url:
                image = ImageEntry(
                    loc=image_url,
                    title=f"{show.title} Poster",
                    caption=f"{show.title} - Bengali TV Serial",
                )
            urlset.add_url(
                f"{self.site_url}/show/{show.slug}",
                format_lastmod(show.updated_at, today),
                SHOW_CHANGEFREQ, SHOW_PRIORITY,
                image=image,
            )

        return urlset.to_xml()

    def generate_categories(self) -> str:
        """Active categories, then active sections, each in display order."""
        today = self.clock().date()
        urlset = URLSet()

        for category in self.store.list_active_categories():
            image = None
            if is_valid_image_url(category.image_url):
                image = ImageEntry(loc=category.image_url, title=f"{category.name} Logo")
            urlset.add_url(
                f"{self.site_url}/category/{category.slug}",
                format_lastmod(category.updated_at, today),
                CATEGORY_CHANGEFREQ, CATEGORY_PRIORITY,
                image=image,
            )

        for section in self.store.list_active_sections():
            urlset.add_url(
                f"{self.site_url}/section/{section.slug}",
                format_lastmod(section.created_at, today),
                SECTION_CHANGEFREQ, SECTION_PRIORITY,
            )

        return urlset.to_xml()

    def generate_episodes(self, page: int = 1) -> str:
        """
        One page of the episode sitemap

        Args:
            page: 1-based page number; rows ``(page-1)*size`` to
                ``page*size-1`` ordered by updated_at descending

        Returns:
            URL set with video and image extensions where the episode has
            genuine http(s) media URLs
        """
        page = parse_page(page, self.page_size)
        today = self.clock().date()
        default_thumbnail = f"{self.site_url}{self.site.og_image_path}"

        episodes = self.store.list_episodes_page((page - 1) * self.page_size, self.page_size)
        shows = self.store.get_shows_by_ids(episode.show_id for episode in episodes)

        urlset = URLSet(include_video=True)
        for episode in episodes:
            show = shows.get(episode.show_id)
            if show is None:
                continue

            video = None
            if is_valid_image_url(episode.watch_url):
                number = f" Episode {episode.episode_number}" if episode.episode_number is not None else ""
                video = VideoEntry(
                    thumbnail_loc=episode.thumbnail_url if is_valid_image_url(episode.thumbnail_url) else default_thumbnail,
                    title=f"{show.title} - {episode.title}",
                    description=f"Watch {show.title} {episode.title}{number}. Bengali TV Serial download in HD quality.",
                    player_loc=convert_to_embed_url(episode.watch_url),
                    publication_date=f"{episode.air_date.isoformat()}T00:00:00+00:00" if episode.air_date else None,
                )

            image = None
            if is_valid_image_url(episode.thumbnail_url):
                image = ImageEntry(loc=episode.thumbnail_url, title=f"{show.title} {episode.title}")

            urlset.add_url(
                f"{self.site_url}/watch/{show.slug}/{episode.slug}",
                format_lastmod(episode.updated_at, today),
                EPISODE_CHANGEFREQ, EPISODE_PRIORITY,
                video=video,
                image=image,
            )

        return urlset.to_xml()

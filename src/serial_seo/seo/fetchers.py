"""
Entity fetchers for pre-rendered pages

One fetch function per page intent. Each returns a plain page record, or
None when the primary entity does not exist or is inactive. Failures of
the primary lookup propagate as DataStoreError; related lookups (category
name, adjacent episodes, lists) degrade to empty values with a warning.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, TypeVar, Union

from ..core.exceptions import DataStoreError
from ..core.logger import get_logger
from ..core.models import ContentCategory, ContentSection, Episode, Post, Show
from ..core.store import ContentStore
from .routes import (
    CategoryIntent, FreeEpisodes, Home, PageIntent, PostIntent,
    SectionIntent, ShowIntent, TokenKind, WatchIntent,
)

logger = get_logger(__name__)

T = TypeVar("T")

SHOW_EPISODE_LIMIT = 100
HOME_LATEST_LIMIT = 20
HOME_FEATURED_LIMIT = 20
HOME_SECTION_LIMIT = 10
FREE_EPISODE_LIMIT = 50

_FIRST_IMG = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


@dataclass
class HomePage:
    categories: List[ContentCategory] = field(default_factory=list)
    latest_episodes: List[Tuple[Episode, Show]] = field(default_factory=list)
    featured_shows: List[Show] = field(default_factory=list)
    sections: List[ContentSection] = field(default_factory=list)


@dataclass
class ShowPage:
    show: Show
    category: Optional[ContentCategory] = None
    episodes: List[Episode] = field(default_factory=list)


@dataclass
class WatchPage:
    show: Show
    episode: Episode
    previous: Optional[Episode] = None
    next: Optional[Episode] = None


@dataclass
class CollectionPage:
    """Category or section listing."""
    kind: str  # "category" | "section"
    slug: str
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    shows: List[Show] = field(default_factory=list)


@dataclass
class FreeEpisodesPage:
    episodes: List[Tuple[Episode, Show]] = field(default_factory=list)


@dataclass
class PostPage:
    post: Post
    category_name: Optional[str] = None
    image_url: Optional[str] = None


PageRecord = Union[HomePage, ShowPage, WatchPage, CollectionPage, FreeEpisodesPage, PostPage]


def extract_first_image(content: Optional[str]) -> Optional[str]:
    """First <img src> in raw post HTML."""
    if not content:
        return None
    match = _FIRST_IMG.search(content)
    return match.group(1) if match else None


def _optional(label: str, fetch: Callable[[], T], default: T) -> T:
    """Run a related lookup, degrading to ``default`` on store failure."""
    try:
        return fetch()
    except DataStoreError as e:
        logger.warning(f"Related lookup '{label}' failed, using default: {e}")
        return default


def _join_shows(store: ContentStore, episodes: List[Episode]) -> List[Tuple[Episode, Show]]:
    """Pair episodes with their active shows, dropping orphans."""
    shows = _optional("episode_shows", lambda: store.get_shows_by_ids(ep.show_id for ep in episodes), {})
    return [(ep, shows[ep.show_id]) for ep in episodes if ep.show_id in shows]


def fetch_home(store: ContentStore) -> HomePage:
    latest = _optional("latest_episodes", lambda: store.list_latest_episodes(HOME_LATEST_LIMIT), [])
    return HomePage(
        categories=_optional("categories", store.list_active_categories, []),
        latest_episodes=_join_shows(store, latest),
        featured_shows=_optional("featured_shows", lambda: store.list_featured_shows(HOME_FEATURED_LIMIT), []),
        sections=_optional("sections", lambda: store.list_active_sections(HOME_SECTION_LIMIT), []),
    )


def fetch_show(store: ContentStore, slug: str) -> Optional[ShowPage]:
    show = store.get_show_by_slug(slug)
    if not show:
        return None

    def load_category() -> Optional[ContentCategory]:
        if not show.category_id:
            return None
        return _optional("show_category", lambda: store.get_category(show.category_id), None)

    def load_episodes() -> List[Episode]:
        return _optional("show_episodes", lambda: store.list_show_episodes(show.id, SHOW_EPISODE_LIMIT), [])

    # Independent lookups; both must finish before rendering
    with ThreadPoolExecutor(max_workers=2) as executor:
        category_future = executor.submit(load_category)
        episodes_future = executor.submit(load_episodes)
        category = category_future.result()
        episodes = episodes_future.result()

    return ShowPage(show=show, category=category, episodes=episodes)


def fetch_watch(store: ContentStore, intent: WatchIntent) -> Optional[WatchPage]:
    show = store.get_show_by_slug(intent.show_slug)
    if not show:
        return None

    token = intent.episode
    if token.kind == TokenKind.AIR_DATE:
        episode = store.find_episode(show.id, air_date=token.air_date)
    elif token.kind == TokenKind.EPISODE_NUMBER:
        episode = store.find_episode(show.id, episode_number=token.episode_number)
    else:
        episode = store.find_episode(show.id, episode_id=token.raw)

    if not episode:
        return None

    previous, following = _optional(
        "adjacent_episodes",
        lambda: store.get_adjacent_episodes(show.id, episode.episode_number),
        (None, None),
    )
    return WatchPage(show=show, episode=episode, previous=previous, next=following)


def fetch_category(store: ContentStore, slug: str) -> Optional[CollectionPage]:
    category = store.get_category_by_slug(slug)
    if not category:
        return None

    return CollectionPage(
        kind="category",
        slug=category.slug,
        name=category.name,
        description=category.description,
        image_url=category.image_url,
        shows=_optional("category_shows", lambda: store.list_category_shows(category.id), []),
    )


def fetch_section(store: ContentStore, slug: str) -> Optional[CollectionPage]:
    section = store.get_section_by_slug(slug)
    if not section:
        return None

    return CollectionPage(
        kind="section",
        slug=section.slug,
        name=section.title,
        shows=_optional("section_shows", lambda: store.list_section_shows(section.id), []),
    )


def fetch_free_episodes(store: ContentStore) -> FreeEpisodesPage:
    episodes = store.list_free_episodes(FREE_EPISODE_LIMIT)
    return FreeEpisodesPage(episodes=_join_shows(store, episodes))


def fetch_post(store: ContentStore, slug: str) -> Optional[PostPage]:
    post = store.get_published_post(slug)
    if not post:
        return None

    category_name = None
    if post.category_id:
        category = _optional("post_category", lambda: store.get_category(post.category_id), None)
        category_name = category.name if category else None

    return PostPage(
        post=post,
        category_name=category_name,
        image_url=post.featured_image_url or extract_first_image(post.content),
    )


def fetch_page(store: ContentStore, intent: PageIntent) -> Optional[PageRecord]:
    """
    Dispatch an intent to its fetcher

    Returns:
        A page record, or None for fallback intents and missing entities
    """
    if isinstance(intent, Home):
        return None if intent.fallback else fetch_home(store)
    if isinstance(intent, ShowIntent):
        return fetch_show(store, intent.slug)
    if isinstance(intent, WatchIntent):
        return fetch_watch(store, intent)
    if isinstance(intent, CategoryIntent):
        return fetch_category(store, intent.slug)
    if isinstance(intent, SectionIntent):
        return fetch_section(store, intent.slug)
    if isinstance(intent, FreeEpisodes):
        return fetch_free_episodes(store)
    if isinstance(intent, PostIntent):
        return fetch_post(store, intent.slug)

    raise TypeError(f"Unknown page intent: {intent!r}")

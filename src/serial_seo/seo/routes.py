"""
Route resolution for pre-rendered pages

Maps a URL path to a typed page intent. Rules are evaluated in order and
the first one that matches wins; anything unmatched becomes a fallback
Home intent that renders site-wide defaults.
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union


# Single-segment paths owned by the SPA router, never treated as post slugs
RESERVED_SLUGS = frozenset({
    "search",
    "posts",
    "admin",
    "show",
    "watch",
    "category",
    "section",
    "post",
    "free-episodes",
    "sitemap.xml",
    "robots.txt",
})

_DATE_TOKEN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NUMBER_TOKEN = re.compile(r"^episode-(\d+)$")


class TokenKind(str, Enum):
    """How an episode token identifies its row."""
    AIR_DATE = "air_date"
    EPISODE_NUMBER = "episode_number"
    LEGACY_ID = "legacy_id"


@dataclass(frozen=True)
class EpisodeToken:
    """Parsed second segment of /watch/<show>/<token>."""
    raw: str
    kind: TokenKind
    air_date: Optional[date] = None
    episode_number: Optional[int] = None

    @classmethod
    def parse(cls, token: str) -> "EpisodeToken":
        if _DATE_TOKEN.match(token):
            try:
                return cls(raw=token, kind=TokenKind.AIR_DATE, air_date=date.fromisoformat(token))
            except ValueError:
                # Looks like a date but is not one (2024-13-40)
                return cls(raw=token, kind=TokenKind.LEGACY_ID)

        match = _NUMBER_TOKEN.match(token)
        if match:
            return cls(raw=token, kind=TokenKind.EPISODE_NUMBER, episode_number=int(match.group(1)))

        return cls(raw=token, kind=TokenKind.LEGACY_ID)


@dataclass(frozen=True)
class Home:
    """Home page, or site defaults when ``fallback`` is set."""
    fallback: bool = False


@dataclass(frozen=True)
class ShowIntent:
    slug: str


@dataclass(frozen=True)
class WatchIntent:
    show_slug: str
    episode: EpisodeToken


@dataclass(frozen=True)
class CategoryIntent:
    slug: str


@dataclass(frozen=True)
class SectionIntent:
    slug: str


@dataclass(frozen=True)
class FreeEpisodes:
    pass


@dataclass(frozen=True)
class PostIntent:
    slug: str


PageIntent = Union[Home, ShowIntent, WatchIntent, CategoryIntent, SectionIntent, FreeEpisodes, PostIntent]

Rule = Tuple[Callable[[str], bool], Callable[[str], Optional[PageIntent]]]


def normalize_path(path: Optional[str]) -> str:
    """Strip query/fragment and trailing slashes; always starts with '/'."""
    if not path:
        return "/"

    path = path.split("#", 1)[0].split("?", 1)[0].strip()
    if not path.startswith("/"):
        path = "/" + path

    stripped = path.rstrip("/")
    return stripped or "/"


def _segments(rest: str) -> List[str]:
    return [part for part in rest.split("/") if part]


def _single(rest: str) -> Optional[str]:
    parts = _segments(rest)
    return parts[0] if len(parts) == 1 else None


def _show(path: str) -> Optional[PageIntent]:
    slug = _single(path[len("/show/"):])
    return ShowIntent(slug) if slug else None


def _watch(path: str) -> Optional[PageIntent]:
    parts = _segments(path[len("/watch/"):])
    if len(parts) != 2:
        return None
    return WatchIntent(show_slug=parts[0], episode=EpisodeToken.parse(parts[1]))


def _category(path: str) -> Optional[PageIntent]:
    rest = path[len("/category/"):]
    if rest == "section" or rest.startswith("section/"):
        slug = _single(rest[len("section/"):])
        return SectionIntent(slug) if slug else None

    slug = _single(rest)
    return CategoryIntent(slug) if slug else None


def _section(path: str) -> Optional[PageIntent]:
    slug = _single(path[len("/section/"):])
    return SectionIntent(slug) if slug else None


def _post(path: str) -> Optional[PageIntent]:
    if path.startswith("/post/"):
        slug = _single(path[len("/post/"):])
    else:
        slug = path[1:]
        # Multi-segment unknown paths are not posts
        if "/" in slug:
            return None

    if not slug or slug in RESERVED_SLUGS:
        return None
    return PostIntent(slug)


# Order matters: specific prefixes before the post catch-all
ROUTE_RULES: List[Rule] = [
    (lambda p: p == "/", lambda p: Home()),
    (lambda p: p.startswith("/show/"), _show),
    (lambda p: p.startswith("/watch/"), _watch),
    (lambda p: p.startswith("/category/"), _category),
    (lambda p: p.startswith("/section/"), _section),
    (lambda p: p == "/free-episodes", lambda p: FreeEpisodes()),
    (lambda p: True, _post),
]


def resolve_path(path: Optional[str]) -> PageIntent:
    """
    Resolve a URL path to a page intent

    Args:
        path: Raw path such as ``/watch/amar-ami/2024-05-01``

    Returns:
        The intent of the first matching rule. A rule whose predicate
        matches but whose path shape is wrong ends resolution with the
        fallback Home intent.
    """
    normalized = normalize_path(path)

    for predicate, build in ROUTE_RULES:
        if predicate(normalized):
            return build(normalized) or Home(fallback=True)

    return Home(fallback=True)


def intent_name(intent: PageIntent) -> str:
    """Short label for logs."""
    if isinstance(intent, Home):
        return "fallback" if intent.fallback else "home"
    return {
        ShowIntent: "show",
        WatchIntent: "watch",
        CategoryIntent: "category",
        SectionIntent: "section",
        FreeEpisodes: "free_episodes",
        PostIntent: "post",
    }[type(intent)]

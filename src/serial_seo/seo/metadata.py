"""
Metadata and structured-data synthesis

Turns a resolved intent plus its fetched page record into a PageMetadata:
title, description, Open Graph image, canonical URL, JSON-LD graph and a
microdata-annotated body fragment. A missing record always yields the
site-wide defaults, never an error.
"""

import html
import re
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple, Union

from ..core.models import Episode, Show
from . import jsonld
from .fetchers import (
    CollectionPage, FreeEpisodesPage, HomePage, PageRecord, PostPage,
    ShowPage, WatchPage,
)
from .html import PageMetadata, SiteContext, breadcrumb_nav, escape_html
from .routes import (
    CategoryIntent, FreeEpisodes, Home, PageIntent, PostIntent,
    SectionIntent, ShowIntent, WatchIntent, normalize_path,
)

META_DESCRIPTION_LIMIT = 320
POST_EXCERPT_LIMIT = 500
SHOW_DESCRIPTION_LIMIT = 120
CARD_DESCRIPTION_LIMIT = 100
HOME_ITEMLIST_LIMIT = 10
SEASON_EPISODE_LIMIT = 20

_TAG = re.compile(r"<[^>]*>")
_SPACE = re.compile(r"\s+")


def truncate(text: Optional[str], limit: int, suffix: str = "") -> str:
    """Cut text to ``limit`` characters, appending ``suffix`` when cut."""
    if not text:
        return ""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + suffix


def strip_html(content: Optional[str], limit: int = POST_EXCERPT_LIMIT) -> str:
    """Plain-text excerpt of raw HTML."""
    if not content:
        return ""
    text = _SPACE.sub(" ", _TAG.sub(" ", content)).strip()
    return html.unescape(text)[:limit]


def first_text(*values: Optional[str]) -> str:
    """First non-blank value."""
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def first_url(*values: Optional[str]) -> Optional[str]:
    """First absolute http(s) URL; data URIs and blanks are skipped."""
    for value in values:
        if value and value.startswith(("http://", "https://")):
            return value
    return None


def isoformat(value: Union[date, datetime, None]) -> Optional[str]:
    """ISO 8601 text; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value.isoformat()


class MetadataSynthesizer:
    """
    Builds page metadata for each intent

    The site context is injected per request so fixtures can drive it
    directly in tests.
    """

    def __init__(self, site: SiteContext):
        self.site = site
        self.site_url = site.site_url.rstrip("/")

    # URLs
    def url(self, path: str) -> str:
        return f"{self.site_url}{path}"

    def show_url(self, show: Show) -> str:
        return self.url(f"/show/{show.slug}")

    def watch_url(self, show: Show, episode: Episode) -> str:
        return self.url(f"/watch/{show.slug}/{episode.slug}")

    def canonical_url(self, path: str) -> str:
        return self.url(normalize_path(path))

    # Shared nodes
    def _organization(self, with_id: bool = False) -> jsonld.Node:
        return jsonld.organization(
            self.site.site_title,
            url=self.site_url,
            logo_url=self.site.logo_url,
            node_id=f"{self.site_url}/#organization" if with_id else None,
            same_as=[] if with_id else None,
        )

    def _publisher(self) -> jsonld.Node:
        return jsonld.organization(self.site.site_title, logo_url=self.site.logo_url)

    def _finish(self, title: str, description: str, og_image: Optional[str], canonical: str,
                graph: jsonld.Node, body: str, og_type: str = "website") -> PageMetadata:
        return PageMetadata(
            title=first_text(title, self.site.site_title),
            description=truncate(first_text(description, self.site.site_description), META_DESCRIPTION_LIMIT, "..."),
            og_image=first_text(og_image, self.site.default_og_image),
            canonical_url=canonical,
            json_ld=graph,
            body_html=body,
            og_type=og_type,
            keywords=self.site.keywords,
        )

    # Entry point
    def synthesize(self, intent: PageIntent, record: Optional[PageRecord], path: str) -> PageMetadata:
        """
        Build metadata for a resolved request

        Args:
            intent: Resolved page intent
            record: Fetched page record, or None when not found
            path: Requested path, used for the canonical URL

        Returns:
            PageMetadata ready for assembly
        """
        canonical = self.canonical_url(path)

        if isinstance(intent, Home) and not intent.fallback and isinstance(record, HomePage):
            return self.home(record, canonical)
        if isinstance(intent, ShowIntent) and isinstance(record, ShowPage):
            return self.show(record, canonical)
        if isinstance(intent, WatchIntent) and isinstance(record, WatchPage):
            return self.watch(record, canonical)
        if isinstance(intent, (CategoryIntent, SectionIntent)) and isinstance(record, CollectionPage):
            return self.collection(record, canonical)
        if isinstance(intent, FreeEpisodes) and isinstance(record, FreeEpisodesPage):
            return self.free_episodes(record, canonical)
        if isinstance(intent, PostIntent) and isinstance(record, PostPage):
            return self.post(record, canonical)

        return self.defaults(canonical)

    def defaults(self, canonical: str) -> PageMetadata:
        """Site-wide metadata for fallback paths and missing entities."""
        site = self.site
        body = (
            f'<header><h1>{escape_html(site.site_title)}</h1>'
            f'<p>{escape_html(site.site_description)}</p></header>'
            f'<p><a href="{escape_html(self.site_url)}/">Home</a></p>'
        )
        graph = jsonld.graph(
            jsonld.website(self.site_url, site.site_title, site.site_description),
            self._organization(with_id=True),
        )
        return self._finish(site.site_title, site.site_description, None, canonical, graph, body)

    def home(self, page: HomePage, canonical: str) -> PageMetadata:
        site = self.site
        title = f"{site.site_title} - Download Bengali TV Serials & Movies HD"
        description = (
            "Watch and download Star Jalsha, Zee Bangla, Colors Bangla, Sun Bangla TV serials "
            f"and movies in HD quality. {site.site_description}"
        )
        og_image = site.default_og_image

        body = [
            f'<header><h1>{escape_html(site.site_title)} - বাংলা টিভি সিরিয়াল ও মুভি ডাউনলোড</h1>'
            f'<p>{escape_html(description)}</p></header>',
            self._category_nav(page),
            self._latest_episodes(page.latest_episodes),
            self._featured_shows(page.featured_shows),
        ]
        for section in page.sections:
            section_url = self.url(f"/section/{section.slug}")
            body.append(
                f'<section aria-label="{escape_html(section.title)}"><h2>'
                f'<a href="{escape_html(section_url)}" title="View All {escape_html(section.title)}">'
                f'{escape_html(section.title)}</a></h2></section>'
            )

        featured = [
            jsonld.list_item(i, item=jsonld.tv_series_stub(show.title, self.show_url(show), first_url(show.poster_url)))
            for i, show in enumerate(page.featured_shows[:HOME_ITEMLIST_LIMIT], start=1)
        ]
        graph = jsonld.graph(
            jsonld.website(self.site_url, site.site_title, description),
            self._organization(with_id=True),
            jsonld.webpage(self.site_url, f"{self.site_url}/", title, description, og_image),
            jsonld.item_list(featured, name="Featured Bengali TV Shows", total=len(page.featured_shows)),
        )
        return self._finish(title, description, og_image, canonical, graph, "".join(body))

    def _category_nav(self, page: HomePage) -> str:
        items = []
        for i, category in enumerate(page.categories, start=1):
            name = escape_html(category.name)
            image = (
                f'<img src="{escape_html(category.image_url)}" alt="{name} Logo" title="{name}" loading="lazy" />'
                if category.image_url else ""
            )
            items.append(
                '<li itemprop="itemListElement" itemscope itemtype="https://schema.org/ListItem">'
                f'<a itemprop="url" href="{escape_html(self.url(f"/category/{category.slug}"))}" title="Watch {name} Serials">'
                f'{image}<span itemprop="name">{name}</span></a>'
                f'<meta itemprop="position" content="{i}" /></li>'
            )
        return (
            '<nav aria-label="Categories"><h2>TV Channels | টিভি চ্যানেল</h2>'
            '<ul class="categories" itemscope itemtype="https://schema.org/ItemList">'
            + "".join(items) + "</ul></nav>"
        )

    def _latest_episodes(self, entries: List[Tuple[Episode, Show]]) -> str:
        items = []
        for i, (episode, show) in enumerate(entries, start=1):
            show_title = escape_html(show.title)
            episode_title = escape_html(episode.title)
            image = (
                f'<img itemprop="image" src="{escape_html(episode.thumbnail_url)}" alt="{show_title} {episode_title}" '
                f'title="{show_title} Episode {escape_html(episode.episode_number)}" loading="lazy" />'
                if episode.thumbnail_url else ""
            )
            items.append(
                '<article itemprop="itemListElement" itemscope itemtype="https://schema.org/TVEpisode">'
                f'<a href="{escape_html(self.watch_url(show, episode))}" title="Watch {show_title} {episode_title}">'
                f'<figure>{image}</figure>'
                f'<h3 itemprop="name">{show_title} - {episode_title}</h3>'
                f'{self._air_date(episode)}</a>'
                f'<meta itemprop="position" content="{i}" /></article>'
            )
        return (
            '<section aria-label="Latest Episodes"><h2>Latest Episodes | সর্বশেষ এপিসোড</h2>'
            '<div class="episodes" itemscope itemtype="https://schema.org/ItemList">'
            + "".join(items) + "</div></section>"
        )

    def _featured_shows(self, shows: List[Show]) -> str:
        items = []
        for i, show in enumerate(shows, start=1):
            show_title = escape_html(show.title)
            image = (
                f'<img itemprop="image" src="{escape_html(show.poster_url)}" alt="{show_title} TV Serial" '
                f'title="{show_title} Poster" loading="lazy" />'
                if show.poster_url else ""
            )
            summary = (
                f'<p itemprop="description">{escape_html(truncate(show.description, CARD_DESCRIPTION_LIMIT))}...</p>'
                if show.description else ""
            )
            items.append(
                '<article itemprop="itemListElement" itemscope itemtype="https://schema.org/TVSeries">'
                f'<a href="{escape_html(self.show_url(show))}" title="Watch {show_title} All Episodes">'
                f'<figure class="poster">{image}</figure>'
                f'<h3 itemprop="name">{show_title}</h3>{summary}</a>'
                f'<meta itemprop="position" content="{i}" /></article>'
            )
        return (
            '<section aria-label="Featured Shows"><h2>Featured Shows | জনপ্রিয় সিরিয়াল</h2>'
            '<div class="shows" itemscope itemtype="https://schema.org/ItemList">'
            + "".join(items) + "</div></section>"
        )

    @staticmethod
    def _air_date(episode: Episode) -> str:
        if not episode.air_date:
            return ""
        aired = escape_html(episode.air_date.isoformat())
        return f'<time itemprop="datePublished" datetime="{aired}">{aired}</time>'

    def show(self, page: ShowPage, canonical: str) -> PageMetadata:
        show = page.show
        site_title = self.site.site_title
        category_name = page.category.name if page.category else ""

        title = f"{show.title} TV Serial Online - Watch Latest Show Episodes & Download HD | {site_title}"
        if show.description:
            summary = truncate(show.description, SHOW_DESCRIPTION_LIMIT)
        else:
            summary = f"Download {show.title} all episodes free."
            if category_name:
                summary += f" {category_name} serial."
        description = (
            f"Watch {show.title} Latest Episodes Online in full HD on {site_title}. Enjoy {show.title} "
            f"best trending moments, video clips, promos & more. {summary}"
        )
        og_image = first_url(show.poster_url, show.thumbnail_url) or self.site.default_og_image

        crumbs: List[Tuple[str, Optional[str]]] = [("Home", self.site_url)]
        if page.category:
            crumbs.append((page.category.name, self.url(f"/category/{page.category.slug}")))
        crumbs.append((show.title, canonical))

        episode_items = []
        season_nodes = []
        for episode in page.episodes:
            url = self.watch_url(show, episode)
            episode_items.append(
                '<li itemscope itemtype="https://schema.org/TVEpisode">'
                f'<a itemprop="url" href="{escape_html(url)}">'
                f'<span itemprop="episodeNumber">{escape_html(episode.episode_number)}</span>: '
                f'<span itemprop="name">{escape_html(episode.title)}</span>'
                f'{self._air_date(episode)}</a></li>'
            )
            if len(season_nodes) < SEASON_EPISODE_LIMIT:
                season_nodes.append(jsonld.tv_episode(
                    episode.title, url,
                    episode_number=episode.episode_number,
                    date_published=isoformat(episode.air_date),
                ))

        show_title = escape_html(show.title)
        poster = (
            f'<img itemprop="image" src="{escape_html(show.poster_url)}" alt="{show_title} poster" />'
            if show.poster_url else ""
        )
        genre = f'<p>Category: <span itemprop="genre">{escape_html(category_name)}</span></p>' if category_name else ""
        body = (
            breadcrumb_nav(crumbs)
            + '<article itemscope itemtype="https://schema.org/TVSeries">'
            f'<h1 itemprop="name">{show_title}</h1>{poster}'
            f'<p itemprop="description">{escape_html(show.description)}</p>{genre}'
            f'<section><h2>Episodes ({len(page.episodes)} total)</h2><ul>{"".join(episode_items)}</ul></section>'
            '</article>'
        )

        graph = jsonld.graph(
            jsonld.tv_series(
                show.title, canonical,
                description=first_text(show.description, description),
                image=og_image,
                genre=category_name or None,
                number_of_episodes=len(page.episodes),
                season=jsonld.tv_season(season_nodes, total=len(page.episodes)),
            ),
            jsonld.breadcrumb_list(crumbs),
        )
        return self._finish(title, description, og_image, canonical, graph, body)

    def watch(self, page: WatchPage, canonical: str) -> PageMetadata:
        show, episode = page.show, page.episode
        site_title = self.site.site_title
        show_url = self.show_url(show)

        title = f"{show.title} {episode.title} - Watch & Download HD Episode Online | {site_title}"
        aired = f" aired on {episode.air_date.isoformat()}" if episode.air_date else ""
        number = f" {episode.episode_number}" if episode.episode_number is not None else ""
        description = (
            f"Watch {show.title} {episode.title} full episode online in HD quality. "
            f"Episode{number}{aired}. Free Bengali TV serial download on {site_title}."
        )
        og_image = first_url(episode.thumbnail_url, show.poster_url, show.thumbnail_url) or self.site.default_og_image

        crumbs: List[Tuple[str, Optional[str]]] = [
            ("Home", self.site_url),
            (show.title, show_url),
            (episode.title, canonical),
        ]

        show_title = escape_html(show.title)
        episode_title = escape_html(episode.title)
        thumbnail = (
            f'<img itemprop="image" src="{escape_html(episode.thumbnail_url)}" alt="{show_title} {episode_title}" '
            f'title="Watch {show_title} Episode {escape_html(episode.episode_number)}" />'
            if episode.thumbnail_url else ""
        )
        air_date = f"<p>Air Date: {self._air_date(episode)}</p>" if episode.air_date else ""

        navigation = []
        if page.previous:
            navigation.append(
                f'<a href="{escape_html(self.watch_url(show, page.previous))}" rel="prev" title="Previous Episode">'
                f'&larr; {escape_html(page.previous.title)}</a>'
            )
        if page.next:
            navigation.append(
                f'<a href="{escape_html(self.watch_url(show, page.next))}" rel="next" title="Next Episode">'
                f'{escape_html(page.next.title)} &rarr;</a>'
            )

        body = (
            breadcrumb_nav(crumbs)
            + '<article itemscope itemtype="https://schema.org/TVEpisode">'
            f'<h1 itemprop="name">{show_title} - {episode_title}</h1>'
            f'<figure>{thumbnail}</figure>'
            '<div class="meta">'
            f'<p>Show: <a itemprop="partOfSeries" itemscope itemtype="https://schema.org/TVSeries" href="{escape_html(show_url)}">'
            f'<span itemprop="name">{show_title}</span></a></p>'
            f'<p>Episode: <span itemprop="episodeNumber">{escape_html(episode.episode_number)}</span></p>'
            f'{air_date}</div>'
            f'<nav class="episode-nav">{"".join(navigation)}</nav>'
            '<section class="download">'
            f'<h2>Download {show_title} {episode_title}</h2>'
            '<p>Download this episode in HD 480p, 720p, 1080p quality.</p>'
            '</section></article>'
        )

        series = jsonld.series_ref(show.title, show_url)
        video_id = f"{canonical}#video"
        graph = jsonld.graph(
            jsonld.video_object(
                f"{show.title} {episode.title}", canonical,
                description=description,
                thumbnail_url=og_image,
                upload_date=isoformat(episode.created_at) or isoformat(episode.air_date) or isoformat(episode.updated_at),
                publisher=self._publisher(),
                part_of_series=series,
            ),
            jsonld.tv_episode(
                episode.title, canonical,
                episode_number=episode.episode_number,
                date_published=isoformat(episode.air_date),
                image=og_image,
                node_id=f"{canonical}#episode",
                video_id=video_id,
                part_of_series=series,
            ),
            jsonld.breadcrumb_list(crumbs),
        )
        return self._finish(title, description, og_image, canonical, graph, body, og_type="video.episode")

    def collection(self, page: CollectionPage, canonical: str) -> PageMetadata:
        site_title = self.site.site_title
        title = f"{page.name} - {site_title}"
        fallback = f"Browse {page.name} shows and serials on {site_title}."
        description = first_text(page.description, fallback) if page.kind == "category" else fallback
        og_image = first_url(page.image_url) or self.site.default_og_image

        crumbs: List[Tuple[str, Optional[str]]] = [("Home", self.site_url), (page.name, canonical)]

        items = []
        list_nodes = []
        for i, show in enumerate(page.shows, start=1):
            url = self.show_url(show)
            items.append(
                '<li itemprop="itemListElement" itemscope itemtype="https://schema.org/ListItem">'
                f'<a itemprop="url" href="{escape_html(url)}"><span itemprop="name">{escape_html(show.title)}</span></a>'
                f'<meta itemprop="position" content="{i}" /></li>'
            )
            list_nodes.append(jsonld.list_item(i, name=show.title, url=url))

        name = escape_html(page.name)
        shows_html = f'<ul itemscope itemtype="https://schema.org/ItemList">{"".join(items)}</ul>'
        if page.kind == "category":
            image = f'<img src="{escape_html(page.image_url)}" alt="{name}" />' if page.image_url else ""
            content = (
                f'<article><h1>{name}</h1>{image}'
                f'<p>{escape_html(page.description)}</p>{shows_html}</article>'
            )
        else:
            content = f"<h1>{name}</h1>{shows_html}"

        graph = jsonld.graph(
            jsonld.collection_page(
                page.name, canonical,
                description=page.description if page.kind == "category" else None,
                image=first_url(page.image_url),
                main_entity=jsonld.item_list(list_nodes),
            ),
            jsonld.breadcrumb_list(crumbs),
        )
        return self._finish(title, description, og_image, canonical, graph, breadcrumb_nav(crumbs) + content)

    def free_episodes(self, page: FreeEpisodesPage, canonical: str) -> PageMetadata:
        title = f"Free Episodes | ফ্রি এপিসোড - {self.site.site_title}"
        description = (
            "Watch free Bengali TV serial episodes online. Download Star Jalsha, Zee Bangla, "
            "Colors Bangla serials for free."
        )
        crumbs: List[Tuple[str, Optional[str]]] = [("Home", self.site_url), ("Free Episodes", canonical)]

        items = []
        list_nodes = []
        for i, (episode, show) in enumerate(page.episodes, start=1):
            url = self.watch_url(show, episode)
            name = f"{show.title} - {episode.title}"
            items.append(
                '<li itemprop="itemListElement" itemscope itemtype="https://schema.org/ListItem">'
                f'<a itemprop="url" href="{escape_html(url)}"><span itemprop="name">{escape_html(name)}</span></a>'
                f'<meta itemprop="position" content="{i}" /></li>'
            )
            list_nodes.append(jsonld.list_item(i, name=name, url=url))

        body = (
            breadcrumb_nav(crumbs)
            + "<h1>Free Episodes | ফ্রি এপিসোড</h1>"
            f'<ul itemscope itemtype="https://schema.org/ItemList">{"".join(items)}</ul>'
        )
        graph = jsonld.graph(
            jsonld.collection_page(
                "Free Episodes", canonical,
                description=description,
                main_entity=jsonld.item_list(list_nodes),
            ),
            jsonld.breadcrumb_list(crumbs),
        )
        return self._finish(title, description, None, canonical, graph, body)

    def post(self, page: PostPage, canonical: str) -> PageMetadata:
        post = page.post
        site_title = self.site.site_title

        title = first_text(post.meta_title, f"{post.title} - {site_title}")
        description = first_text(post.meta_description, post.excerpt, f"{post.title} - Download and watch on {site_title}")
        og_image = first_url(page.image_url) or self.site.default_og_image
        published = isoformat(post.created_at)
        modified = isoformat(post.updated_at)
        tags = [tag for tag in (post.tags or []) if tag]

        crumbs: List[Tuple[str, Optional[str]]] = [("Home", self.site_url)]
        if page.category_name:
            crumbs.append((page.category_name, None))
        crumbs.append((post.title, canonical))

        headline = escape_html(post.title)
        featured = (
            f'<img itemprop="image" src="{escape_html(post.featured_image_url)}" alt="{headline}" />'
            if post.featured_image_url else ""
        )
        excerpt = f'<p itemprop="description">{escape_html(post.excerpt)}</p>' if post.excerpt else ""
        dates = ""
        if published:
            dates += f'<time itemprop="datePublished" datetime="{escape_html(published)}">{post.created_at:%m/%d/%Y}</time>'
        if modified:
            dates += f'<time itemprop="dateModified" datetime="{escape_html(modified)}"></time>'
        tag_html = (
            '<div class="tags">' + "".join(f"<span>{escape_html(tag)}</span>" for tag in tags) + "</div>"
            if tags else ""
        )

        body = (
            breadcrumb_nav(crumbs)
            + '<article itemscope itemtype="https://schema.org/Article">'
            f'<h1 itemprop="headline">{headline}</h1>{featured}{excerpt}'
            f'<div itemprop="articleBody"><p>{escape_html(strip_html(post.content))}...</p></div>'
            f'<div class="meta">{dates}'
            '<span itemprop="author" itemscope itemtype="https://schema.org/Organization">'
            f'<meta itemprop="name" content="{escape_html(site_title)}" /></span></div>'
            f'{tag_html}</article>'
        )

        graph = jsonld.graph(
            jsonld.article(
                canonical, post.title,
                description=first_text(post.meta_description, post.excerpt),
                publisher=self._publisher(),
                author=jsonld.organization(site_title, url=self.site_url),
                image=og_image,
                date_published=published,
                date_modified=modified,
                keywords=tags,
            ),
            jsonld.breadcrumb_list(crumbs),
        )
        return self._finish(title, description, og_image, canonical, graph, body, og_type="article")

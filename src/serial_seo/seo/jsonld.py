"""
Schema.org JSON-LD builders

One small function per schema.org type. Builders return plain dicts and
drop keys whose value is None, so optional properties are omitted rather
than serialized as null. ``graph`` composes nodes into a single document.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

CONTEXT = "https://schema.org"

# Nominal duration of a TV serial episode
EPISODE_DURATION = "PT22M"

Node = Dict[str, Any]


def _compact(node: Node) -> Node:
    return {key: value for key, value in node.items() if value is not None}


def graph(*nodes: Optional[Node]) -> Node:
    """Wrap nodes in a single ``@graph`` document."""
    return {
        "@context": CONTEXT,
        "@graph": [node for node in nodes if node],
    }


def image_object(url: str) -> Node:
    return {"@type": "ImageObject", "url": url}


def organization(name: str, url: Optional[str] = None, logo_url: Optional[str] = None,
                 node_id: Optional[str] = None, same_as: Optional[List[str]] = None) -> Node:
    return _compact({
        "@type": "Organization",
        "@id": node_id,
        "name": name,
        "url": url,
        "logo": image_object(logo_url) if logo_url else None,
        "sameAs": same_as,
    })


def website(site_url: str, name: str, description: str, languages: Sequence[str] = ("bn", "en")) -> Node:
    """WebSite node with a SearchAction pointing at the internal search route."""
    return {
        "@type": "WebSite",
        "@id": f"{site_url}/#website",
        "name": name,
        "url": site_url,
        "description": description,
        "inLanguage": list(languages),
        "potentialAction": {
            "@type": "SearchAction",
            "target": {
                "@type": "EntryPoint",
                "urlTemplate": f"{site_url}/search?q={{search_term_string}}",
            },
            "query-input": "required name=search_term_string",
        },
    }


def webpage(site_url: str, url: str, name: str, description: str, image_url: Optional[str] = None) -> Node:
    return _compact({
        "@type": "WebPage",
        "@id": f"{url}#webpage",
        "url": url,
        "name": name,
        "description": description,
        "isPartOf": {"@id": f"{site_url}/#website"},
        "about": {"@id": f"{site_url}/#organization"},
        "primaryImageOfPage": image_object(image_url) if image_url else None,
    })


def list_item(position: int, name: Optional[str] = None, url: Optional[str] = None,
              item: Optional[Node] = None) -> Node:
    return _compact({
        "@type": "ListItem",
        "position": position,
        "name": name,
        "url": url,
        "item": item,
    })


def item_list(items: List[Node], name: Optional[str] = None, total: Optional[int] = None) -> Node:
    return _compact({
        "@type": "ItemList",
        "name": name,
        "numberOfItems": len(items) if total is None else total,
        "itemListElement": items,
    })


def breadcrumb_list(crumbs: Sequence[Tuple[str, Optional[str]]]) -> Node:
    """
    BreadcrumbList from (name, url) pairs

    A crumb without a URL is emitted without an ``item`` property.
    """
    return {
        "@type": "BreadcrumbList",
        "itemListElement": [
            _compact({"@type": "ListItem", "position": i, "name": name, "item": url})
            for i, (name, url) in enumerate(crumbs, start=1)
        ],
    }


def series_ref(name: str, url: str) -> Node:
    return {"@type": "TVSeries", "name": name, "url": url}


def tv_series_stub(name: str, url: str, image: Optional[str] = None) -> Node:
    """Minimal TVSeries used inside list items."""
    return _compact({"@type": "TVSeries", "name": name, "url": url, "image": image})


def tv_episode(name: str, url: str, episode_number: Optional[int] = None,
               date_published: Optional[str] = None, image: Optional[str] = None,
               node_id: Optional[str] = None, video_id: Optional[str] = None,
               part_of_series: Optional[Node] = None) -> Node:
    return _compact({
        "@type": "TVEpisode",
        "@id": node_id,
        "name": name,
        "episodeNumber": episode_number,
        "datePublished": date_published,
        "image": image,
        "url": url,
        "video": {"@id": video_id} if video_id else None,
        "partOfSeries": part_of_series,
    })


def tv_season(episodes: List[Node], season_number: int = 1, total: Optional[int] = None) -> Node:
    return {
        "@type": "TVSeason",
        "seasonNumber": season_number,
        "numberOfEpisodes": len(episodes) if total is None else total,
        "episode": episodes,
    }


def tv_series(name: str, url: str, description: str, image: Optional[str] = None,
              genre: Optional[str] = None, number_of_episodes: int = 0,
              season: Optional[Node] = None) -> Node:
    return _compact({
        "@type": "TVSeries",
        "@id": f"{url}#tvseries",
        "name": name,
        "description": description,
        "image": image,
        "url": url,
        "genre": genre,
        "numberOfEpisodes": number_of_episodes,
        "containsSeason": season,
    })


def video_object(name: str, url: str, description: str, thumbnail_url: str,
                 upload_date: Optional[str], publisher: Node,
                 part_of_series: Optional[Node] = None) -> Node:
    """VideoObject for a watch page; the page itself is the embed target."""
    return _compact({
        "@type": "VideoObject",
        "@id": f"{url}#video",
        "name": name,
        "description": description,
        "thumbnailUrl": thumbnail_url,
        "uploadDate": upload_date,
        "duration": EPISODE_DURATION,
        "contentUrl": url,
        "embedUrl": url,
        "publisher": publisher,
        "partOfSeries": part_of_series,
    })


def article(url: str, headline: str, description: str, publisher: Node, author: Node,
            image: Optional[str] = None, date_published: Optional[str] = None,
            date_modified: Optional[str] = None, keywords: Optional[List[str]] = None) -> Node:
    return _compact({
        "@type": "Article",
        "@id": f"{url}#article",
        "headline": headline,
        "description": description,
        "image": image,
        "datePublished": date_published,
        "dateModified": date_modified or date_published,
        "author": author,
        "publisher": publisher,
        "mainEntityOfPage": {"@type": "WebPage", "@id": url},
        "keywords": ", ".join(keywords) if keywords else None,
    })


def collection_page(name: str, url: str, description: Optional[str] = None,
                    image: Optional[str] = None, main_entity: Optional[Node] = None) -> Node:
    return _compact({
        "@type": "CollectionPage",
        "name": name,
        "description": description,
        "image": image,
        "url": url,
        "mainEntity": main_entity,
    })

"""
Sitemap XML documents

``SitemapIndex`` and ``URLSet`` collect entries and serialize them with
string composition. Every interpolated value goes through ``escape_xml``
so titles and URLs with markup characters still yield well-formed XML.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NS = "http://www.google.com/schemas/sitemap-video/1.1"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_YOUTUBE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([\w-]+)")
_DRIVE = re.compile(r"drive\.google\.com/file/d/([\w-]+)")
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def escape_xml(value: Any) -> str:
    """Escape the five XML special characters and drop characters XML 1.0 forbids."""
    if value is None:
        return ""

    return (_INVALID_XML_CHARS.sub("", str(value))
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;"))


def is_valid_image_url(url: Optional[str]) -> bool:
    """True only for http(s) URLs; data URIs and empty values are rejected."""
    if not url:
        return False
    return url.startswith("http://") or url.startswith("https://")


def convert_to_embed_url(url: str) -> str:
    """
    Rewrite a watch link into an embeddable player URL

    YouTube watch and youtu.be links become /embed/<id>, Google Drive file
    links become /file/d/<id>/preview, anything else is returned unchanged.
    """
    match = _YOUTUBE.search(url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    match = _DRIVE.search(url)
    if match:
        return f"https://drive.google.com/file/d/{match.group(1)}/preview"

    return url


def format_lastmod(value: Union[date, datetime, str, None], fallback: date) -> str:
    """Date part (YYYY-MM-DD) of a timestamp, or the fallback date."""
    if value is None:
        return fallback.isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value.split("T", 1)[0]


@dataclass
class ImageEntry:
    loc: str
    title: Optional[str] = None
    caption: Optional[str] = None

    def to_xml(self) -> str:
        lines = ["    <image:image>", f"      <image:loc>{escape_xml(self.loc)}</image:loc>"]
        if self.title:
            lines.append(f"      <image:title>{escape_xml(self.title)}</image:title>")
        if self.caption:
            lines.append(f"      <image:caption>{escape_xml(self.caption)}</image:caption>")
        lines.append("    </image:image>")
        return "\n".join(lines)


@dataclass
class VideoEntry:
    thumbnail_loc: str
    title: str
    description: str
    player_loc: str
    publication_date: Optional[str] = None
    family_friendly: str = "yes"
    requires_subscription: str = "no"
    live: str = "no"

    def to_xml(self) -> str:
        lines = [
            "    <video:video>",
            f"      <video:thumbnail_loc>{escape_xml(self.thumbnail_loc)}</video:thumbnail_loc>",
            f"      <video:title>{escape_xml(self.title)}</video:title>",
            f"      <video:description>{escape_xml(self.description)}</video:description>",
            f"      <video:player_loc>{escape_xml(self.player_loc)}</video:player_loc>",
        ]
        if self.publication_date:
            lines.append(f"      <video:publication_date>{escape_xml(self.publication_date)}</video:publication_date>")
        lines += [
            f"      <video:family_friendly>{self.family_friendly}</video:family_friendly>",
            f"      <video:requires_subscription>{self.requires_subscription}</video:requires_subscription>",
            f"      <video:live>{self.live}</video:live>",
            "    </video:video>",
        ]
        return "\n".join(lines)


@dataclass
class URLSet:
    """<urlset> document with optional image and video extensions"""
    include_video: bool = False
    urls: List[Dict[str, Any]] = field(default_factory=list)

    def add_url(self, loc: str, lastmod: str, changefreq: str, priority: float,
                video: Optional[VideoEntry] = None, image: Optional[ImageEntry] = None) -> None:
        """Add URL to sitemap"""
        self.urls.append({
            "loc": loc,
            "lastmod": lastmod,
            "changefreq": changefreq,
            "priority": f"{priority:.1f}",
            "video": video,
            "image": image,
        })

    def __len__(self) -> int:
        return len(self.urls)

    def to_xml(self) -> str:
        """Convert sitemap to XML string"""
        namespaces = [f'xmlns="{SITEMAP_NS}"', f'xmlns:image="{IMAGE_NS}"']
        if self.include_video:
            namespaces.append(f'xmlns:video="{VIDEO_NS}"')

        parts = [XML_DECLARATION, "<urlset " + "\n        ".join(namespaces) + ">"]
        for url in self.urls:
            parts += [
                "  <url>",
                f"    <loc>{escape_xml(url['loc'])}</loc>",
                f"    <lastmod>{escape_xml(url['lastmod'])}</lastmod>",
                f"    <changefreq>{url['changefreq']}</changefreq>",
                f"    <priority>{url['priority']}</priority>",
            ]
            if url["video"]:
                parts.append(url["video"].to_xml())
            if url["image"]:
                parts.append(url["image"].to_xml())
            parts.append("  </url>")
        parts.append("</urlset>")

        return "\n".join(parts)


@dataclass
class SitemapIndex:
    """<sitemapindex> document listing child sitemaps"""
    stylesheet_url: Optional[str] = None
    sitemaps: List[Dict[str, str]] = field(default_factory=list)

    def add_sitemap(self, loc: str, lastmod: str) -> None:
        self.sitemaps.append({"loc": loc, "lastmod": lastmod})

    def __len__(self) -> int:
        return len(self.sitemaps)

    def to_xml(self) -> str:
        parts = [XML_DECLARATION]
        if self.stylesheet_url:
            parts.append(f'<?xml-stylesheet type="text/xsl" href="{escape_xml(self.stylesheet_url)}"?>')
        parts.append(f'<sitemapindex xmlns="{SITEMAP_NS}">')
        for sitemap in self.sitemaps:
            parts += [
                "  <sitemap>",
                f"    <loc>{escape_xml(sitemap['loc'])}</loc>",
                f"    <lastmod>{escape_xml(sitemap['lastmod'])}</lastmod>",
                "  </sitemap>",
            ]
        parts.append("</sitemapindex>")

        return "\n".join(parts)


def error_document(message: str) -> str:
    """Body of a failed sitemap response."""
    return f"{XML_DECLARATION}<error>{escape_xml(message)}</error>"

"""HTML escaping and document assembly for pre-rendered pages."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple


def escape_html(text: Any) -> str:
    """Escape text for element content and double-quoted attributes."""
    if text is None:
        return ""

    return (str(text)
            .replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&#x27;"))


def json_for_script(data: Dict[str, Any]) -> str:
    """Serialize JSON-LD so it cannot terminate its <script> element."""
    return (json.dumps(data, ensure_ascii=False, separators=(",", ":"))
            .replace("<", "\\u003c")
            .replace(">", "\\u003e")
            .replace("&", "\\u0026"))


@dataclass
class PageMetadata:
    """Everything needed to assemble one pre-rendered document"""
    title: str
    description: str
    og_image: str
    canonical_url: str
    json_ld: Dict[str, Any]
    body_html: str = ""
    og_type: str = "website"
    keywords: Optional[str] = None


@dataclass
class SiteContext:
    """Per-request site configuration passed into the synthesizer"""
    site_url: str
    site_title: str
    site_description: str
    default_og_image: str
    logo_url: str
    language: str = "bn"
    keywords: Optional[str] = None
    year: int = field(default_factory=lambda: datetime.now().year)


def breadcrumb_nav(crumbs: Sequence[Tuple[str, Optional[str]]]) -> str:
    """Microdata breadcrumb; the last crumb (or any without URL) is plain text."""
    items: List[str] = []
    for position, (name, url) in enumerate(crumbs, start=1):
        if url and position < len(crumbs):
            label = f'<a itemprop="item" href="{escape_html(url)}"><span itemprop="name">{escape_html(name)}</span></a>'
        else:
            label = f'<span itemprop="name">{escape_html(name)}</span>'
        items.append(
            '<li itemprop="itemListElement" itemscope itemtype="https://schema.org/ListItem">'
            f'{label}<meta itemprop="position" content="{position}" /></li>'
        )

    return (
        '<nav aria-label="Breadcrumb">'
        '<ol itemscope itemtype="https://schema.org/BreadcrumbList">'
        + "".join(items)
        + "</ol></nav>"
    )


def render_document(page: PageMetadata, site: SiteContext) -> str:
    """
    Render the complete HTML document

    Args:
        page: Synthesized metadata and body fragment
        site: Site context (language, title, footer year)

    Returns:
        HTML string; every dynamic value in the head is escaped here and
        the body fragment arrives already escaped
    """
    title = escape_html(page.title)
    description = escape_html(page.description)
    canonical = escape_html(page.canonical_url)
    image = escape_html(page.og_image)
    site_title = escape_html(site.site_title)

    meta_tags = [
        '<meta charset="UTF-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f'<title>{title}</title>',
        f'<meta name="description" content="{description}">',
    ]
    if page.keywords:
        meta_tags.append(f'<meta name="keywords" content="{escape_html(page.keywords)}">')
    meta_tags += [
        '<meta name="robots" content="index, follow">',
        f'<link rel="canonical" href="{canonical}">',

        # Open Graph
        f'<meta property="og:title" content="{title}">',
        f'<meta property="og:description" content="{description}">',
        f'<meta property="og:url" content="{canonical}">',
        f'<meta property="og:image" content="{image}">',
        f'<meta property="og:type" content="{escape_html(page.og_type)}">',
        f'<meta property="og:site_name" content="{site_title}">',

        # Twitter
        '<meta name="twitter:card" content="summary_large_image">',
        f'<meta name="twitter:title" content="{title}">',
        f'<meta name="twitter:description" content="{description}">',
        f'<meta name="twitter:image" content="{image}">',

        f'<script type="application/ld+json">{json_for_script(page.json_ld)}</script>',
    ]

    head = "\n  ".join(meta_tags)

    return f'''<!DOCTYPE html>
<html lang="{escape_html(site.language)}">
<head>
  {head}
</head>
<body>
  <main>
    {page.body_html}
  </main>
  <footer>
    <p>&copy; {site.year} {site_title}. All Rights Reserved.</p>
  </footer>
</body>
</html>'''

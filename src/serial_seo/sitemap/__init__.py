"""XML sitemap index and child sitemaps."""

from .generator import SitemapGenerator, normalize_type, parse_page

__all__ = ['SitemapGenerator', 'normalize_type', 'parse_page']

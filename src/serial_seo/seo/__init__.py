"""Crawler detection, route resolution and pre-rendered documents."""

from .bots import is_bot
from .renderer import NOT_BOT_RESPONSE, SeoRenderer, build_site_context
from .routes import resolve_path

__all__ = ['is_bot', 'resolve_path', 'SeoRenderer', 'build_site_context', 'NOT_BOT_RESPONSE']

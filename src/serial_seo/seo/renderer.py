"""
Pre-render pipeline

resolve path -> read site settings -> fetch entities -> synthesize
metadata -> assemble document. Bot classification happens before this in
the caller.
"""

import time
from typing import Optional

from ..core.exceptions import RenderError
from ..core.logger import get_logger
from ..core.models import SiteSettings
from ..core.settings import SiteDefaults
from ..core.store import ContentStore
from .fetchers import fetch_page
from .html import SiteContext, render_document
from .metadata import MetadataSynthesizer, first_text
from .routes import intent_name, normalize_path, resolve_path

logger = get_logger(__name__)

NOT_BOT_RESPONSE = {"isBot": False, "message": "Not a bot, serve SPA normally"}


def build_site_context(defaults: SiteDefaults, row: Optional[SiteSettings]) -> SiteContext:
    """Overlay the settings row on the configured site defaults."""
    site_url = defaults.site_url.rstrip("/")
    title = defaults.site_title
    description = defaults.site_description
    logo_url = f"{site_url}{defaults.logo_path}"
    keywords = None

    if row is not None:
        title = first_text(row.site_title, title)
        description = first_text(row.site_description, description)
        if row.logo_url and row.logo_url.startswith(("http://", "https://")):
            logo_url = row.logo_url
        keywords = row.site_keywords or None

    return SiteContext(
        site_url=site_url,
        site_title=title,
        site_description=description,
        default_og_image=f"{site_url}{defaults.og_image_path}",
        logo_url=logo_url,
        language=defaults.language,
        keywords=keywords,
    )


class SeoRenderer:
    """Renders crawler-facing HTML documents for SPA paths"""

    def __init__(self, store: ContentStore, site: SiteDefaults):
        self.store = store
        self.site = site

    def site_context(self) -> SiteContext:
        return build_site_context(self.site, self.store.get_site_settings())

    def render(self, path: Optional[str]) -> str:
        """
        Render the document for a path

        Args:
            path: SPA path, e.g. ``/show/amar-ami``; empty means ``/``

        Returns:
            Complete HTML document

        Raises:
            DataStoreError: If a primary lookup fails
            RenderError: If the document cannot be composed
        """
        start = time.time()
        path = normalize_path(path)
        intent = resolve_path(path)
        name = intent_name(intent)

        context = self.site_context()
        record = fetch_page(self.store, intent)
        if record is None:
            logger.info(f"No content for {path}, using site defaults", extra={"path": path, "intent": name})

        try:
            page = MetadataSynthesizer(context).synthesize(intent, record, path)
            document = render_document(page, context)
        except (TypeError, ValueError, AttributeError) as e:
            raise RenderError(f"Failed to render page: {e}", path=path) from e

        duration_ms = int((time.time() - start) * 1000)
        logger.info(
            f"Rendered {path} as {name}",
            extra={"path": path, "intent": name, "duration_ms": duration_ms},
        )
        return document

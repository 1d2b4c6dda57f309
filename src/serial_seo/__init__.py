"""serial-seo: crawler pre-rendering and sitemaps for the TV serial catalog."""

__version__ = "1.0.0"

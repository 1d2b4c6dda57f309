"""Configuration, logging, errors and the content store."""

from .exceptions import ConfigurationError, DataStoreError, RenderError, SerialSeoError
from .logger import get_logger, setup_logging
from .settings import Settings, SiteDefaults, get_settings, reload_settings
from .store import ContentStore

__all__ = [
    'SerialSeoError',
    'ConfigurationError',
    'DataStoreError',
    'RenderError',
    'get_logger',
    'setup_logging',
    'Settings',
    'SiteDefaults',
    'get_settings',
    'reload_settings',
    'ContentStore',
]

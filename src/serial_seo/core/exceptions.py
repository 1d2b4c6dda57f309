"""
Exception classes for the SEO rendering service

Not-found content is never an exception here: lookups return None and the
synthesizer substitutes site defaults. These classes cover the failures
that must reach the top-level handlers.
"""

from typing import Optional, Dict, Any


class SerialSeoError(Exception):
    """Base exception for all service errors"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(SerialSeoError):
    """Raised when there are configuration-related issues"""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if config_key:
            context['config_key'] = config_key
        super().__init__(message, context)
        self.config_key = config_key


class DataStoreError(SerialSeoError):
    """Raised when a content store query fails"""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if query:
            context['query'] = query
        super().__init__(message, context)
        self.query = query


class RenderError(SerialSeoError):
    """Raised when a document cannot be composed"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if path:
            context['path'] = path
        super().__init__(message, context)
        self.path = path

"""
HTTP surface for the pre-rendering and sitemap services
"""

from .server import create_app, run_server
from .endpoints import register_endpoints

__all__ = ['create_app', 'run_server', 'register_endpoints']

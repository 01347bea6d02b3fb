"""Themepreview - offline preview renderer for platform theme templates.

Renders page and content templates against static JSON fixtures, emulating
the platform's layout inheritance and content API.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .rendering.engine import RenderEngine

__all__ = ["RenderEngine", "__version__"]

"""
Notepress - a small static site generator for a personal notes site.

Notepress reads articles with a leading comment metadata block, ranking and
quote lists from plain-text notes, and image albums, then renders every page
through a single Jinja2 template into a static HTML site.
"""

__version__ = "1.0.0"

from .core import Notepress
from .articles import ArticleProcessor
from .gallery import GalleryProcessor

__all__ = ['Notepress', 'ArticleProcessor', 'GalleryProcessor']

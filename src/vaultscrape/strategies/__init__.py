"""
Interchangeable scrape strategies: static HTML fetch and browser rendering.
"""

from .protocols import ScrapeStrategy
from .rendered import RenderingStrategy
from .static import StaticStrategy

__all__ = ["RenderingStrategy", "ScrapeStrategy", "StaticStrategy"]

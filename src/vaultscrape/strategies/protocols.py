"""
Protocols for pluggable scrape strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import ScrapedRecord, Strategy


@runtime_checkable
class ScrapeStrategy(Protocol):
    """Turns a normalized URL into a ``ScrapedRecord``."""

    name: Strategy

    async def scrape(self, url: str) -> ScrapedRecord:
        """Fetch and extract a single page.

        Args:
            url: Normalized absolute URL

        Returns:
            A record tagged with this strategy's ``name``

        Raises:
            ScraperError: with the failure category. Strategies never retry.
        """
        ...

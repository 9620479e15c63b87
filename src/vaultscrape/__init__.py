"""
VaultScrape: resilient single-page scraping for knowledge vaults.

Turns an arbitrary URL into a validated ``ScrapedRecord`` via a static
fetch, falling back to a headless browser when configured, behind a
robots.txt gate, a rate limiter, bounded retries and a result cache.
"""

from .errors import ErrorCategory, InvalidURLError, RobotsDisallowedError, ScraperError
from .models import ImageRef, PageMetadata, ScrapedRecord, ScrapeOutcome, Strategy

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ErrorCategory",
    "ImageRef",
    "InvalidURLError",
    "PageMetadata",
    "RobotsDisallowedError",
    "ScrapeOutcome",
    "ScrapedRecord",
    "ScraperError",
    "Strategy",
]

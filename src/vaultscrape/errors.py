"""
Typed scrape failures.

Every failure raised by the scraping core is a ``ScraperError`` carrying the
failure category, the offending URL and the moment it was raised.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Failure categories attached to every ``ScraperError``."""

    INVALID = "invalid"  # Malformed URL or filename, HTTP 404
    NETWORK = "network"  # Transport failure
    TIMEOUT = "timeout"  # Navigation or fetch exceeded its bound
    BLOCKED = "blocked"  # HTTP 403/429
    PROCESSING = "processing"  # Extraction failed on malformed HTML
    SECURITY = "security"  # Path traversal in a derived filename
    ROBOTS = "robots"  # Disallowed by robots.txt


class ScraperError(Exception):
    """Base error for the scraping core."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.PROCESSING,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = ErrorCategory(category)
        self.url = url
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "category": self.category.value,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value!r}, url={self.url!r})"


class InvalidURLError(ScraperError):
    """Input could not be turned into a fetchable absolute URL. Never retried."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.INVALID, url)


class RobotsDisallowedError(ScraperError):
    """robots.txt disallows the target path."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Blocked by robots.txt: {url}", ErrorCategory.ROBOTS, url)


class PathTraversalError(ScraperError):
    """A derived filename tried to escape its directory."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid file name (possible path traversal): {name}", ErrorCategory.SECURITY, name)

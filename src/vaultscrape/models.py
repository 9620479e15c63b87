"""
Data models produced by the scraping core.

``ScrapedRecord`` is the only artifact handed to downstream collaborators
(note writer, tag/link builder). Records are frozen; layer changes on top
with ``dataclasses.replace`` rather than mutating a returned record.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .errors import ErrorCategory, ScraperError

UNTITLED = "Untitled"


def _freeze(value: Any) -> Any:
    """Read-only view of a JSON value: objects become mapping proxies, arrays tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class Strategy(str, Enum):
    """Execution path that produced a record."""

    STATIC = "static"
    RENDERED = "rendered"


@dataclass(slots=True, frozen=True)
class ImageRef:
    """An image discovered on the page."""

    src: str
    alt: str = ""
    srcset: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.src:
            raise ValueError("Image src must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "alt": self.alt, "srcset": self.srcset}


@dataclass(slots=True, frozen=True)
class PageMetadata:
    """Page-level metadata. Description and author are empty strings when absent."""

    description: str = ""
    author: str = ""
    canonical: Optional[str] = None
    robots_directive: Optional[str] = None
    open_graph: Mapping[str, str] = field(default_factory=dict)
    twitter_card: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "open_graph", MappingProxyType(dict(self.open_graph)))
        object.__setattr__(self, "twitter_card", MappingProxyType(dict(self.twitter_card)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "author": self.author,
            "canonical": self.canonical,
            "robotsDirective": self.robots_directive,
            "openGraph": dict(self.open_graph),
            "twitterCard": dict(self.twitter_card),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PageMetadata:
        return cls(
            description=data.get("description") or "",
            author=data.get("author") or "",
            canonical=data.get("canonical"),
            robots_directive=data.get("robotsDirective"),
            open_graph=dict(data.get("openGraph") or {}),
            twitter_card=dict(data.get("twitterCard") or {}),
        )


@dataclass(frozen=True)
class ScrapedRecord:
    """Structured, validated content extracted from a single page."""

    url: str
    title: str
    raw_content: str
    plain_text: str
    metadata: PageMetadata
    images: Tuple[ImageRef, ...]
    structured_data: Tuple[Any, ...]
    strategy: Strategy
    byte_size: int = 0
    processing_time_ms: float = 0.0
    status_code: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.title:
            object.__setattr__(self, "title", UNTITLED)
        object.__setattr__(self, "structured_data", _freeze(tuple(self.structured_data)))

    def with_observability(self, processing_time_ms: float, byte_size: Optional[int] = None) -> ScrapedRecord:
        """Return a copy decorated with timing and, optionally, size fields."""
        return replace(
            self,
            processing_time_ms=processing_time_ms,
            byte_size=self.byte_size if byte_size is None else byte_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON interchange layout used by caches and collaborators."""
        return {
            "url": self.url,
            "title": self.title,
            "rawContent": self.raw_content,
            "plainText": self.plain_text,
            "metadata": self.metadata.to_dict(),
            "images": [image.to_dict() for image in self.images],
            "structuredData": _thaw(self.structured_data),
            "strategy": self.strategy.value,
            "byteSize": self.byte_size,
            "processingTimeMs": self.processing_time_ms,
            "statusCode": self.status_code,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScrapedRecord:
        return cls(
            url=data["url"],
            title=data.get("title") or UNTITLED,
            raw_content=data.get("rawContent") or "",
            plain_text=data.get("plainText") or "",
            metadata=PageMetadata.from_dict(data.get("metadata") or {}),
            images=tuple(
                ImageRef(src=image["src"], alt=image.get("alt") or "", srcset=image.get("srcset"))
                for image in data.get("images") or []
                if image.get("src")
            ),
            structured_data=tuple(data.get("structuredData") or []),
            strategy=Strategy(data.get("strategy", Strategy.STATIC.value)),
            byte_size=int(data.get("byteSize") or 0),
            processing_time_ms=float(data.get("processingTimeMs") or 0.0),
            status_code=data.get("statusCode"),
        )


@dataclass
class CacheEntry:
    """Cache bookkeeping around a record. Mutated only by the owning cache."""

    data: ScrapedRecord
    created_at: float
    last_access_at: float
    access_count: int = 0

    def is_expired(self, now: float, ttl_ms: Optional[float]) -> bool:
        return ttl_ms is not None and (now - self.created_at) * 1000 > ttl_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data.to_dict(),
            "createdAt": self.created_at,
            "lastAccessAt": self.last_access_at,
            "accessCount": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CacheEntry:
        created_at = float(data["createdAt"])
        return cls(
            data=ScrapedRecord.from_dict(data["data"]),
            created_at=created_at,
            last_access_at=float(data.get("lastAccessAt", created_at)),
            access_count=int(data.get("accessCount", 0)),
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of the content validation heuristics."""

    valid: bool
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScrapeOutcome:
    """Exactly one outcome per processed URL in bulk mode."""

    url: str
    success: bool
    record: Optional[ScrapedRecord] = None
    error: Optional[str] = None
    category: Optional[ErrorCategory] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def succeeded(cls, url: str, record: ScrapedRecord) -> ScrapeOutcome:
        return cls(url=url, success=True, record=record)

    @classmethod
    def failed(cls, url: str, error: BaseException) -> ScrapeOutcome:
        category = error.category if isinstance(error, ScraperError) else ErrorCategory.PROCESSING
        return cls(url=url, success=False, error=str(error), category=category)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.record is not None:
            payload["title"] = self.record.title
            payload["record"] = self.record.to_dict()
        if self.error is not None:
            payload["error"] = self.error
            payload["category"] = self.category.value if self.category else None
        return payload


def unique_images(images: Sequence[ImageRef]) -> Tuple[ImageRef, ...]:
    """De-duplicate images by ``src`` keeping first occurrence order."""
    seen: set[str] = set()
    result = []
    for image in images:
        if image.src in seen:
            continue
        seen.add(image.src)
        result.append(image)
    return tuple(result)

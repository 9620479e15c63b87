"""Progress events emitted once per processed URL."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine, Dict, Optional, Tuple

from .models import ScrapeOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    url: str
    success: bool
    title: Optional[str] = None
    tags: Tuple[str, ...] = ()
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_outcome(cls, outcome: ScrapeOutcome) -> ProgressEvent:
        return cls(
            url=outcome.url,
            success=outcome.success,
            title=outcome.record.title if outcome.record is not None else None,
            error=outcome.error,
            timestamp=outcome.timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "url": self.url,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.title is not None:
            payload["title"] = self.title
        if self.tags:
            payload["tags"] = list(self.tags)
        if self.error is not None:
            payload["error"] = self.error
        return payload


# Callback invoked after each URL completes.
EventCallback = Callable[[ProgressEvent], Coroutine[Any, Any, None]]


async def emit_event(on_event: Optional[EventCallback], event: ProgressEvent) -> None:
    """Deliver ``event`` if a callback is registered. Listener failures are logged only."""
    if on_event is None:
        return
    logger.debug("progress event emitted for %s", event.url)
    try:
        await on_event(event)
    except Exception:
        logger.exception("progress listener failed for %s", event.url)

"""
Heuristic checks that a scraped record holds real page content.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..models import UNTITLED, ScrapedRecord, ValidationResult

MIN_CONTENT_LENGTH = 100

BLOCKED_MARKERS: Sequence[str] = (
    "Access Denied",
    "403 Forbidden",
    "You don't have permission",
    "Not Found",
)


def validate_content(record: Optional[ScrapedRecord]) -> ValidationResult:
    """Flag missing titles, near-empty bodies and access-restriction pages."""
    if record is None:
        return ValidationResult(valid=False, issues=("No scraped data",))

    issues: List[str] = []

    title = (record.title or "").strip()
    if not title or title.lower() == UNTITLED.lower():
        issues.append("Missing meaningful title")

    html = record.raw_content or ""
    text = (record.plain_text or "").strip()
    if len(html) + len(text) < MIN_CONTENT_LENGTH:
        issues.append(f"Content too short (less than {MIN_CONTENT_LENGTH} characters)")

    if any(marker in html or marker in text for marker in BLOCKED_MARKERS):
        issues.append("Possible access restriction detected")

    return ValidationResult(valid=not issues, issues=tuple(issues))

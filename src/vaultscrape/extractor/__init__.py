"""
Content extraction shared by every scrape strategy.
"""

from .content import (
    CONTENT_SELECTORS,
    LiveMetadata,
    build_record,
    extract_author,
    extract_description,
    extract_images,
    extract_main_content,
    extract_metadata,
    extract_plain_text,
    extract_title,
    parse_html,
)
from .structured_data import extract_json_ld, prefixed_meta_map
from .validation import validate_content

__all__ = [
    "CONTENT_SELECTORS",
    "LiveMetadata",
    "build_record",
    "extract_author",
    "extract_description",
    "extract_images",
    "extract_json_ld",
    "extract_main_content",
    "extract_metadata",
    "extract_plain_text",
    "extract_title",
    "parse_html",
    "prefixed_meta_map",
    "validate_content",
]

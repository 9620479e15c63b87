"""
URL normalization and filename sanitization.
"""

from __future__ import annotations

import os
import re
from typing import Any
from urllib.parse import urlsplit

from ..errors import InvalidURLError, PathTraversalError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_UNSAFE_CHARS_RE = re.compile(r'[\x00\r\n<>:"|?*]')
_SLASHES_RE = re.compile(r"[\\/]+")
_WHITESPACE_RE = re.compile(r"\s+")

MAX_FILE_NAME_LENGTH = 100


def normalize_url(raw: Any) -> str:
    """
    Validate and canonicalize an input string into an absolute URL.

    Leading/trailing whitespace is trimmed and ``https://`` is prepended when
    the input has no http(s) scheme. The result is idempotent: normalizing an
    already normalized URL returns it unchanged.

    Raises:
        InvalidURLError: if the input is empty or does not parse as a URL.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidURLError("URL must be a non-empty string", url=raw if isinstance(raw, str) else None)

    candidate = raw.strip()
    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        # Accessing .port validates the port component
        parts.port
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL format: {raw}", url=raw) from e

    if not parts.hostname or any(ch.isspace() for ch in candidate):
        raise InvalidURLError(f"Invalid URL format: {raw}", url=raw)

    return candidate


def sanitize_file_name(name: str) -> str:
    """
    Turn an arbitrary title into a safe, lowercase file name.

    Raises:
        PathTraversalError: if the cleaned name could still escape its directory.
    """
    cleaned = _UNSAFE_CHARS_RE.sub("", name)
    cleaned = _SLASHES_RE.sub("-", cleaned)
    cleaned = _WHITESPACE_RE.sub("-", cleaned.strip())
    cleaned = cleaned.lower()[:MAX_FILE_NAME_LENGTH]
    if ".." in cleaned or os.path.isabs(cleaned):
        raise PathTraversalError(name)

    return cleaned or "untitled"

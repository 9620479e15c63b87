"""Utility modules for VaultScrape."""

from .atomic import atomic_json_dump
from .url import normalize_url, sanitize_file_name

__all__ = ["atomic_json_dump", "normalize_url", "sanitize_file_name"]

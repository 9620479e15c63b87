"""
JSON-LD and namespaced meta tag parsing.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

JSON_LD_SELECTOR = 'script[type="application/ld+json"]'


def extract_json_ld(soup: BeautifulSoup) -> List[Any]:
    """
    Parse every JSON-LD block independently.

    A block that fails to parse is logged and skipped; the others are kept in
    document order.
    """
    results: List[Any] = []
    for index, script in enumerate(soup.select(JSON_LD_SELECTOR)):
        payload = script.string if script.string is not None else script.get_text()
        if not payload or not payload.strip():
            continue
        try:
            results.append(json.loads(payload))
        except json.JSONDecodeError as e:
            logger.warning("Skipping invalid JSON-LD block %d: %s", index, e)
    return results


def prefixed_meta_map(pairs: Iterable[Tuple[Optional[str], Optional[str]]], prefix: str) -> Dict[str, str]:
    """
    Build ``{suffix: content}`` from ``(key, content)`` pairs whose key starts
    with ``prefix``. Later duplicates overwrite earlier ones.
    """
    result: Dict[str, str] = {}
    for key, content in pairs:
        if not key or content is None:
            continue
        key = key.strip()
        if key.startswith(prefix) and len(key) > len(prefix):
            result[key[len(prefix):]] = content.strip()
    return result


def open_graph_map(soup: BeautifulSoup) -> Dict[str, str]:
    pairs = ((tag.get("property"), tag.get("content")) for tag in soup.select('meta[property^="og:"]'))
    return prefixed_meta_map(pairs, "og:")


def twitter_card_map(soup: BeautifulSoup) -> Dict[str, str]:
    # Sites use both name= and property= for twitter tags
    pairs = [(tag.get("name"), tag.get("content")) for tag in soup.select('meta[name^="twitter:"]')]
    pairs += [(tag.get("property"), tag.get("content")) for tag in soup.select('meta[property^="twitter:"]')]
    return prefixed_meta_map(pairs, "twitter:")

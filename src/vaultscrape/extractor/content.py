"""
Content and metadata extraction over parsed HTML.

All functions are pure: they read from a ``BeautifulSoup`` tree and never
mutate it. Removal of chrome (scripts, navigation, ads...) happens on
copies of the selected region, so the same soup can be fed to every
extractor in turn.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..models import UNTITLED, ImageRef, PageMetadata, ScrapedRecord, Strategy, unique_images
from .structured_data import extract_json_ld, open_graph_map, twitter_card_map

logger = logging.getLogger(__name__)

PARSER = "html.parser"

CONTENT_SELECTORS: Sequence[str] = (
    "article",
    "main",
    '[role="main"]',
    ".content",
    ".post-content",
    ".article-content",
    "#content",
    "body",
)

# Removed before serializing the main content region
CONTENT_NOISE: Sequence[str] = ("script", "style", "nav", "header", "footer", ".advertisement")

# Stricter set used for plain text
TEXT_NOISE: Sequence[str] = (
    *CONTENT_NOISE,
    "aside",
    '[aria-hidden="true"]',
    ".cookie-banner",
    ".popup",
    ".modal",
    "noscript",
)

BODY_FALLBACK_NOISE: Sequence[str] = ("script", "style", "noscript")

MIN_TEXT_CANDIDATE_LENGTH = 50
DEFAULT_MAX_TEXT_LENGTH = 5000

IMAGE_SOURCE_ATTRS: Sequence[str] = ("src", "data-src", "data-lazy-src")
BACKGROUND_ALT = "bg-image"

_WHITESPACE_RE = re.compile(r"\s+")
_BACKGROUND_URL_RE = re.compile(r"""url\(\s*['"]?([^'")]+?)['"]?\s*\)""", re.IGNORECASE)

Node = Union[BeautifulSoup, Tag]


@dataclass(frozen=True)
class LiveMetadata:
    """Metadata read from a live DOM, overriding what the HTML parse finds."""

    title: Optional[str] = None
    h1: Optional[str] = None
    og_title: Optional[str] = None
    description: Optional[str] = None
    og_description: Optional[str] = None
    author: Optional[str] = None
    article_author: Optional[str] = None
    canonical: Optional[str] = None
    robots: Optional[str] = None
    open_graph: Dict[str, str] = field(default_factory=dict)
    twitter_card: Dict[str, str] = field(default_factory=dict)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", PARSER)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def first_non_empty(values: Iterable[Optional[str]], default: str = "") -> str:
    for value in values:
        if value and value.strip():
            return collapse_whitespace(value)
    return default


def meta_content(soup: Node, *, name: Optional[str] = None, prop: Optional[str] = None) -> Optional[str]:
    attrs = {"name": name} if name else {"property": prop}
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = tag.get("content")
    return content if isinstance(content, str) else None


def _strip(node: Node, selectors: Sequence[str]) -> Node:
    """Return a copy of ``node`` without elements matching ``selectors``."""
    clone = copy.copy(node)
    for element in clone.select(", ".join(selectors)):
        # Nested matches are already gone with their ancestor
        if not element.decomposed:
            element.decompose()
    return clone


def _text_of(node: Node) -> str:
    return collapse_whitespace(node.get_text(" "))


# --- Title and simple metadata ---


def resolve_title(title: Optional[str], h1: Optional[str], og_title: Optional[str]) -> str:
    """``<title>``, then first ``<h1>``, then ``og:title``, else "Untitled"."""
    return first_non_empty((title, h1, og_title), default=UNTITLED)


def extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    h1 = soup.find("h1")
    return resolve_title(
        title_tag.get_text() if title_tag else None,
        h1.get_text(" ") if h1 else None,
        meta_content(soup, prop="og:title"),
    )


def extract_description(soup: BeautifulSoup) -> str:
    return first_non_empty((meta_content(soup, name="description"), meta_content(soup, prop="og:description")))


def extract_author(soup: BeautifulSoup) -> str:
    return first_non_empty((meta_content(soup, name="author"), meta_content(soup, prop="article:author")))


def extract_canonical(soup: BeautifulSoup) -> Optional[str]:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "canonical" in (value.lower() for value in rel):
            return link["href"].strip() or None
    return None


def extract_metadata(soup: BeautifulSoup) -> PageMetadata:
    robots = meta_content(soup, name="robots")
    return PageMetadata(
        description=extract_description(soup),
        author=extract_author(soup),
        canonical=extract_canonical(soup),
        robots_directive=robots.strip() if robots and robots.strip() else None,
        open_graph=open_graph_map(soup),
        twitter_card=twitter_card_map(soup),
    )


# --- Main content and text ---


def find_content_region(soup: BeautifulSoup, selectors: Sequence[str] = CONTENT_SELECTORS) -> Optional[Tag]:
    """First element of the first selector (in priority order) that matches."""
    for selector in selectors:
        element = soup.select_one(selector)
        if element is not None:
            return element
    return None


def extract_main_content(soup: BeautifulSoup) -> str:
    """Serialized HTML of the main content region with chrome removed."""
    region = find_content_region(soup)
    if region is None:
        return str(_strip(soup, CONTENT_NOISE)).strip()
    return _strip(region, CONTENT_NOISE).decode_contents().strip()


def extract_plain_text(soup: BeautifulSoup, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    """
    Whitespace-normalized readable text, capped at ``max_length`` characters.

    Candidates are tried in content-selector order (``body`` excluded); the
    first whose text is longer than 50 characters wins. Otherwise the whole
    body is used.
    """
    for selector in CONTENT_SELECTORS:
        if selector == "body":
            continue
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _text_of(_strip(element, TEXT_NOISE))
        if len(text) > MIN_TEXT_CANDIDATE_LENGTH:
            return text[:max_length]

    body = soup.body or soup
    return _text_of(_strip(body, BODY_FALLBACK_NOISE))[:max_length]


# --- Images ---


def _resolve(src: str, base_url: Optional[str]) -> str:
    src = src.strip()
    return urljoin(base_url, src) if base_url else src


def extract_images(soup: BeautifulSoup, base_url: Optional[str] = None) -> tuple[ImageRef, ...]:
    """
    Collect ``<img>`` sources (``src``, then ``data-src``, then
    ``data-lazy-src``) and inline ``background-image`` URLs, resolved against
    ``base_url`` and de-duplicated by resolved source.
    """
    images: List[ImageRef] = []

    for img in soup.find_all("img"):
        raw = next((img.get(attr) for attr in IMAGE_SOURCE_ATTRS if (img.get(attr) or "").strip()), None)
        if not raw:
            continue
        srcset = img.get("srcset")
        images.append(
            ImageRef(
                src=_resolve(raw, base_url),
                alt=(img.get("alt") or "").strip(),
                srcset=srcset.strip() if srcset and srcset.strip() else None,
            )
        )

    for element in soup.select('[style*="background-image"]'):
        match = _BACKGROUND_URL_RE.search(element.get("style") or "")
        if match and match.group(1).strip():
            images.append(ImageRef(src=_resolve(match.group(1), base_url), alt=BACKGROUND_ALT))

    return unique_images(images)


# --- Record assembly ---


def _merge_live_metadata(parsed: PageMetadata, live: LiveMetadata) -> PageMetadata:
    return PageMetadata(
        description=first_non_empty((live.description, live.og_description), default=parsed.description),
        author=first_non_empty((live.author, live.article_author), default=parsed.author),
        canonical=live.canonical or parsed.canonical,
        robots_directive=live.robots or parsed.robots_directive,
        open_graph=live.open_graph or parsed.open_graph,
        twitter_card=live.twitter_card or parsed.twitter_card,
    )


def build_record(
    html: str,
    url: str,
    *,
    strategy: Strategy,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    status_code: Optional[int] = None,
    live: Optional[LiveMetadata] = None,
) -> ScrapedRecord:
    """Run every extractor over ``html`` and assemble a record."""
    soup = parse_html(html)
    metadata = extract_metadata(soup)

    if live is not None:
        title = first_non_empty((live.title, live.h1, live.og_title), default=extract_title(soup))
        metadata = _merge_live_metadata(metadata, live)
    else:
        title = extract_title(soup)

    return ScrapedRecord(
        url=url,
        title=title,
        raw_content=extract_main_content(soup),
        plain_text=extract_plain_text(soup, max_text_length),
        metadata=metadata,
        images=extract_images(soup, url),
        structured_data=tuple(extract_json_ld(soup)),
        strategy=strategy,
        byte_size=len((html or "").encode("utf-8")),
        status_code=status_code,
    )

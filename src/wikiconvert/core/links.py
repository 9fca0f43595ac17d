"""Reference parsing helpers for Wikipedia, Wikidata and MusicBrainz URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote

WIKIDATA_BASE_URL = "https://www.wikidata.org/wiki/"

_WIKIPEDIA_HOST_RE = re.compile(r"^https?://([a-z]+)\.wikipedia\.org", re.IGNORECASE)
_WIKIPEDIA_ARTICLE_RE = re.compile(r"^https?://([a-z]+)\.wikipedia\.org/wiki/(.+)$", re.IGNORECASE)
_WIKIDATA_ENTITY_RE = re.compile(r"^https?://(?:www\.)?wikidata\.org/wiki/(Q[0-9]+)", re.IGNORECASE)
_MUSICBRAINZ_ENTITY_RE = re.compile(
    r"(area|artist|event|genre|instrument|label|mbid|place|recording|release|"
    r"release-group|series|url|work)/([0-9a-f-]{36})(?:$|/|\?)"
)


@dataclass(frozen=True)
class WikipediaArticle:
    """A Wikipedia article reference split into ``(namespace, locator)``."""

    language: str
    title: str


@dataclass(frozen=True)
class EntityRef:
    """MusicBrainz entity type and MBID taken from a page URL."""

    entity_type: str
    mbid: str


def is_wikipedia_link(link: str) -> bool:
    return _WIKIPEDIA_HOST_RE.match(link) is not None


def is_wikidata_link(link: str) -> bool:
    return _WIKIDATA_ENTITY_RE.match(link) is not None


def parse_wikipedia_url(url: str) -> WikipediaArticle | None:
    """Extract the language code and decoded article title, or None."""
    match = _WIKIPEDIA_ARTICLE_RE.match(url)
    if not match:
        return None
    title = unquote(match.group(2))
    if not title:
        return None
    return WikipediaArticle(language=match.group(1).lower(), title=title)


def wikidata_url(entity_id: str, base_url: str = WIKIDATA_BASE_URL) -> str:
    """Canonical Wikidata URI for an entity id such as ``Q42``."""
    return f"{base_url.rstrip('/')}/{entity_id.upper()}"


def canonical_wikidata_url(link: str, base_url: str = WIKIDATA_BASE_URL) -> str | None:
    """Normalize an existing Wikidata link (``http``, no ``www``, lowercase q)."""
    match = _WIKIDATA_ENTITY_RE.match(link)
    if not match:
        return None
    return wikidata_url(match.group(1), base_url)


def extract_entity_from_url(url: str) -> EntityRef | None:
    """Find the MusicBrainz entity type and MBID in a (possibly partial) page URL."""
    match = _MUSICBRAINZ_ENTITY_RE.search(url)
    if not match:
        return None
    return EntityRef(entity_type=match.group(1), mbid=match.group(2))

"""Identifier resolution — Wikipedia article → Wikidata entity URI.

Algorithm::

    Classification.of_link(reference)
        ├─ WIKIDATA ──────────────────► canonical form, no network call
        └─ OTHER ─────────────────────► InvalidReferenceFormatError
    parse https://{lang}.wikipedia.org/wiki/{title}
        └─ no match ──────────────────► InvalidReferenceFormatError
    GET {lang}.wikipedia.org/w/api.php?action=query&prop=pageprops&titles=…
        (one call, through the dispatcher's "wikipedia" channel)
        └─ httpx error / HTTP ≥ 400 / bad JSON / malformed payload ──► TransportError
    page id "-1" or "missing" ────────► ReferenceNotFoundError
    no pageprops.wikibase_item ───────► NoMappingAvailableError
    └─► https://www.wikidata.org/wiki/{QID}

Nothing is retried here; the caller decides whether to re-run.
"""

from __future__ import annotations

from typing import Any

import httpx

from wikiconvert.core.errors import (
    InvalidReferenceFormatError,
    NoMappingAvailableError,
    ReferenceNotFoundError,
    ResolutionError,
    TransportError,
)
from wikiconvert.core.links import (
    WIKIDATA_BASE_URL,
    WikipediaArticle,
    canonical_wikidata_url,
    parse_wikipedia_url,
    wikidata_url,
)
from wikiconvert.core.logging import get_logger
from wikiconvert.core.models import Classification, ResolutionResult
from wikiconvert.core.settings import WIKIPEDIA_CHANNEL
from wikiconvert.execution.rate_limit import RateLimitedDispatcher

logger = get_logger(__name__)


class IdentifierResolver:
    """Maps a Wikipedia reference to its Wikidata entity URI.

    Parameters
    ----------
    client : httpx.AsyncClient
        HTTP client; owned by the caller.
    dispatcher : RateLimitedDispatcher
        Must have a ``channel`` entry configured.
    channel : str
        Dispatcher channel for lookup calls.
    wikidata_base_url : str
        Base of the canonical target URIs.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        dispatcher: RateLimitedDispatcher,
        *,
        channel: str = WIKIPEDIA_CHANNEL,
        wikidata_base_url: str = WIKIDATA_BASE_URL,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._channel = channel
        self._wikidata_base_url = wikidata_base_url

    async def resolve(self, source_reference: str) -> str:
        """Return the canonical Wikidata URI for ``source_reference``.

        Raises:
            InvalidReferenceFormatError, ReferenceNotFoundError,
            NoMappingAvailableError, TransportError
        """
        kind = Classification.of_link(source_reference)
        if kind is Classification.WIKIDATA:
            canonical = canonical_wikidata_url(source_reference, self._wikidata_base_url)
            logger.debug("resolver.already_canonical", reference=source_reference, target=canonical)
            return canonical
        if kind is Classification.OTHER:
            raise InvalidReferenceFormatError(
                f"Not a Wikipedia link: {source_reference}"
            ).with_context(reference=source_reference)

        article = parse_wikipedia_url(source_reference)
        if article is None:
            raise InvalidReferenceFormatError(
                f"Not a Wikipedia article URL: {source_reference}"
            ).with_context(reference=source_reference)

        payload = await self._lookup(article, source_reference)
        entity_id = self._extract_entity_id(payload, article, source_reference)
        target = wikidata_url(entity_id, self._wikidata_base_url)
        logger.info("resolver.resolved", reference=source_reference, target=target)
        return target

    async def attempt(self, source_reference: str) -> ResolutionResult:
        """Like :meth:`resolve`, but report failures as a ``ResolutionResult``."""
        try:
            target = await self.resolve(source_reference)
        except ResolutionError as e:
            logger.warning("resolver.failed", reference=source_reference, **e.to_dict())
            return ResolutionResult.failed(e)
        return ResolutionResult.ok(target)

    # ── internals ────────────────────────────────────────────────────

    async def _lookup(self, article: WikipediaArticle, reference: str) -> dict[str, Any]:
        url = f"https://{article.language}.wikipedia.org/w/api.php"
        params = {
            "action": "query",
            "prop": "pageprops",
            "titles": article.title,
            "format": "json",
        }

        async def fetch() -> httpx.Response:
            return await self._client.get(url, params=params)

        try:
            response = await self._dispatcher.submit(self._channel, fetch)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", cause=e).with_context(
                reference=reference, channel=self._channel, url=url
            ) from e

        if response.status_code >= 400:
            raise TransportError(f"HTTP error! Status: {response.status_code}").with_context(
                reference=reference, channel=self._channel, url=url, http_status=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError("Lookup service returned invalid JSON", cause=e).with_context(
                reference=reference, url=url, http_status=response.status_code
            ) from e
        if not isinstance(payload, dict):
            raise TransportError("Lookup service returned an unexpected payload").with_context(
                reference=reference, url=url
            )
        return payload

    def _extract_entity_id(
        self, payload: dict[str, Any], article: WikipediaArticle, reference: str
    ) -> str:
        query = payload.get("query")
        pages = query.get("pages") if isinstance(query, dict) else None
        if not isinstance(pages, dict) or not pages:
            raise TransportError("Lookup response has no pages").with_context(reference=reference)

        page_id, page = next(iter(pages.items()))
        if not isinstance(page, dict):
            raise TransportError("Lookup response has a malformed page entry").with_context(
                reference=reference, page_id=page_id
            )
        if page_id == "-1" or "missing" in page or "invalid" in page:
            raise ReferenceNotFoundError("Wikipedia page not found").with_context(
                reference=reference, language=article.language, title=article.title
            )

        pageprops = page.get("pageprops") or {}
        if not isinstance(pageprops, dict):
            raise TransportError("Lookup response has malformed page properties").with_context(
                reference=reference
            )
        entity_id = pageprops.get("wikibase_item")
        if not entity_id:
            raise NoMappingAvailableError(
                "No Wikidata entity found for this Wikipedia article"
            ).with_context(reference=reference, language=article.language, title=article.title)
        return entity_id

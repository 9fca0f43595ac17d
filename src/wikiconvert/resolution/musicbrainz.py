"""MusicBrainz web service lookups.

Used to find the URL entity behind a Wikipedia link shown on an entity
page, so the caller can open that URL's edit page and run a conversion
there.  Calls go through the dispatcher's ``musicbrainz`` channel; the
service allows one request per second per client.
"""

from __future__ import annotations

from typing import Any

import httpx

from wikiconvert.core.errors import InvalidReferenceFormatError, TransportError
from wikiconvert.core.links import EntityRef, extract_entity_from_url
from wikiconvert.core.logging import get_logger
from wikiconvert.core.settings import MUSICBRAINZ_CHANNEL
from wikiconvert.execution.rate_limit import RateLimitedDispatcher

logger = get_logger(__name__)

DEFAULT_API_URL = "https://musicbrainz.org/ws/2"


class MusicBrainzClient:
    """Thin rate-limited client for the MusicBrainz JSON API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        dispatcher: RateLimitedDispatcher,
        *,
        api_url: str = DEFAULT_API_URL,
        channel: str = MUSICBRAINZ_CHANNEL,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._api_url = api_url.rstrip("/")
        self._channel = channel

    async def fetch(
        self,
        endpoint: str,
        query: dict[str, str] | None = None,
        inc: list[str] | None = None,
    ) -> dict[str, Any]:
        """GET ``{api_url}/{endpoint}`` as JSON.

        Raises:
            TransportError: On transport failure, non-2xx status or invalid JSON.
        """
        params = dict(query or {})
        if inc:
            params["inc"] = " ".join(inc)
        params["fmt"] = "json"
        url = f"{self._api_url}/{endpoint}"

        async def call() -> httpx.Response:
            return await self._client.get(url, params=params, headers={"Accept": "application/json"})

        try:
            response = await self._dispatcher.submit(self._channel, call)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", cause=e).with_context(
                channel=self._channel, url=url
            ) from e

        if not response.is_success:
            raise TransportError(f"HTTP error! Status: {response.status_code}").with_context(
                channel=self._channel, url=url, http_status=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise TransportError("MusicBrainz returned invalid JSON", cause=e).with_context(url=url) from e

    async def find_url_id(self, entity_page_url: str, link: str) -> str | None:
        """ID of the URL entity linked as ``link`` from the entity at ``entity_page_url``.

        Returns None when the entity has no relationship to that exact link.

        Raises:
            InvalidReferenceFormatError: If no entity can be read from the page URL.
            TransportError: On lookup failure.
        """
        entity = self._entity(entity_page_url)
        data = await self.fetch(f"{entity.entity_type}/{entity.mbid}", inc=["url-rels"])
        for relation in data.get("relations") or []:
            url = relation.get("url") or {}
            if url.get("resource") == link:
                logger.debug("musicbrainz.url_found", entity=entity.mbid, url_id=url.get("id"))
                return url.get("id")
        logger.info("musicbrainz.url_not_linked", entity=entity.mbid, link=link)
        return None

    @staticmethod
    def url_edit_page(origin: str, url_id: str) -> str:
        """Edit page of a URL entity on the given MusicBrainz server origin."""
        return f"{origin.rstrip('/')}/url/{url_id}/edit"

    @staticmethod
    def _entity(entity_page_url: str) -> EntityRef:
        entity = extract_entity_from_url(entity_page_url)
        if entity is None:
            raise InvalidReferenceFormatError(
                f"No MusicBrainz entity in URL: {entity_page_url}"
            ).with_context(reference=entity_page_url)
        return entity

"""
Factory functions that create engine components from settings.

Features:
    - ``create_http_client()`` — ``httpx.AsyncClient`` with user agent and timeout
    - ``create_dispatcher()`` — dispatcher with the configured channels
    - ``create_resolver()`` / ``create_musicbrainz_client()``
    - ``create_orchestrator()`` — the fully wired conversion engine for one surface

The HTTP client is owned by the caller (``async with create_http_client() as client``);
everything else is cheap to build per surface.

Tags:
    wikiconvert, configuration, factory-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from .settings import ConverterSettings, get_settings

if TYPE_CHECKING:
    from wikiconvert.core.protocols import EditSurface
    from wikiconvert.execution.rate_limit import RateLimitedDispatcher
    from wikiconvert.orchestration.orchestrator import ConversionOrchestrator
    from wikiconvert.resolution.musicbrainz import MusicBrainzClient
    from wikiconvert.resolution.resolver import IdentifierResolver


def create_http_client(settings: ConverterSettings | None = None, **kwargs) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` identifying this tool to the services."""
    settings = settings or get_settings()
    headers = {"User-Agent": settings.user_agent}
    headers.update(kwargs.pop("headers", {}))
    return httpx.AsyncClient(timeout=settings.http_timeout, headers=headers, **kwargs)


def create_dispatcher(settings: ConverterSettings | None = None) -> RateLimitedDispatcher:
    from wikiconvert.execution.rate_limit import RateLimitedDispatcher

    settings = settings or get_settings()
    return RateLimitedDispatcher(settings.channel_configs())


def create_resolver(
    client: httpx.AsyncClient,
    dispatcher: RateLimitedDispatcher,
    settings: ConverterSettings | None = None,
) -> IdentifierResolver:
    from wikiconvert.resolution.resolver import IdentifierResolver

    settings = settings or get_settings()
    return IdentifierResolver(client, dispatcher, wikidata_base_url=settings.wikidata_base_url)


def create_musicbrainz_client(
    client: httpx.AsyncClient,
    dispatcher: RateLimitedDispatcher,
    settings: ConverterSettings | None = None,
) -> MusicBrainzClient:
    from wikiconvert.resolution.musicbrainz import MusicBrainzClient

    settings = settings or get_settings()
    return MusicBrainzClient(client, dispatcher, api_url=settings.musicbrainz_api_url)


def create_orchestrator(
    surface: EditSurface,
    client: httpx.AsyncClient,
    settings: ConverterSettings | None = None,
    *,
    dispatcher: RateLimitedDispatcher | None = None,
) -> ConversionOrchestrator:
    """Wire waiter, converter, resolver and orchestrator for ``surface``.

    Pass a shared ``dispatcher`` when several surfaces are converted by the
    same process, so that channel pacing applies across all of them.
    """
    from wikiconvert.execution.waiting import StateWaiter
    from wikiconvert.orchestration.converter import RelationshipConverter
    from wikiconvert.orchestration.orchestrator import ConversionOrchestrator

    settings = settings or get_settings()
    dispatcher = dispatcher or create_dispatcher(settings)
    waiter = StateWaiter(surface)
    converter = RelationshipConverter(
        surface,
        waiter,
        timings=settings.timings,
        accepted_labels=settings.accepted_labels,
        canonical_label=settings.canonical_label,
    )
    return ConversionOrchestrator(
        surface,
        create_resolver(client, dispatcher, settings),
        converter,
        waiter,
        timings=settings.timings,
    )

"""
Conversion orchestration.

- :class:`RelationshipConverter` — per-item re-classification / removal state machine
- :class:`ConversionOrchestrator` — resolve → rewrite → per-item → verdict → finalize

Usage::

    from wikiconvert.core.factory import create_http_client, create_orchestrator
    from wikiconvert.core.models import ConversionRequest

    async with create_http_client() as client:
        orchestrator = create_orchestrator(surface, client)
        verdict = await orchestrator.run(ConversionRequest.create(url, surface_item_handles))
"""

from wikiconvert.orchestration.converter import RelationshipConverter
from wikiconvert.orchestration.orchestrator import ConversionOrchestrator

__all__ = ["ConversionOrchestrator", "RelationshipConverter"]

"""
Lookups against external identifier services.

- :class:`IdentifierResolver` — Wikipedia article → Wikidata entity URI
- :class:`MusicBrainzClient` — URL entity lookups on MusicBrainz
"""

from wikiconvert.resolution.musicbrainz import MusicBrainzClient
from wikiconvert.resolution.resolver import IdentifierResolver

__all__ = ["IdentifierResolver", "MusicBrainzClient"]

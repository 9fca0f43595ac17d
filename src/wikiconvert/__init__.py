"""
wikiconvert - Wikipedia → Wikidata link conversion engine.

Resolves the Wikidata entity behind a Wikipedia link, rewrites the link on
an external edit surface, re-classifies (or removes) the dependent
relationships through the surface's dialogs, and submits the change only
when every item was handled.
"""

__version__ = "0.1.0"

from wikiconvert.core.models import ConversionRequest, ConversionVerdict, VerdictStatus  # noqa: E402
from wikiconvert.orchestration import ConversionOrchestrator, RelationshipConverter  # noqa: E402

__all__ = [
    "ConversionOrchestrator",
    "ConversionRequest",
    "ConversionVerdict",
    "RelationshipConverter",
    "VerdictStatus",
    "__version__",
]

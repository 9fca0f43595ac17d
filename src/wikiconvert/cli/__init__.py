"""
CLI layer for wikiconvert.

Provides a Typer application for the lookup side of the engine: resolving
Wikipedia links, finding MusicBrainz URL entities, and inspecting the
active configuration.

Entry point::

    wikiconvert --help
"""

from wikiconvert.cli.app import app

__all__ = ["app"]

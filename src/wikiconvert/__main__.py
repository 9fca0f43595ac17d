"""Allow ``python -m wikiconvert``."""

from wikiconvert.cli import app

app()

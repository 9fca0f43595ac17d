"""
Root Typer application for the wikiconvert CLI.

The conversion engine itself needs a live edit surface, which only an
embedding application can provide; the CLI exposes the lookup side:
resolving a Wikipedia link and finding the MusicBrainz URL entity for it.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError
from typer import Typer

from wikiconvert.cli.config import app as config_app
from wikiconvert.cli.utils import output_dict, output_error, run_async
from wikiconvert.core.errors import ConverterError
from wikiconvert.core.factory import (
    create_dispatcher,
    create_http_client,
    create_musicbrainz_client,
    create_resolver,
)
from wikiconvert.core.logging import configure_logging
from wikiconvert.core.settings import get_settings
from wikiconvert.resolution.musicbrainz import MusicBrainzClient

app = Typer(
    name="wikiconvert",
    help="Convert Wikipedia links to their Wikidata entities.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("wikiconvert")
        except PackageNotFoundError:
            from wikiconvert import __version__ as v
        typer.echo(f"wikiconvert {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Resolve links and inspect configuration."""
    try:
        settings = get_settings()
    except ValidationError:
        # `config validate` reports the details
        configure_logging(level="DEBUG" if verbose else "INFO")
        return
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_format == "json",
    )


@app.command("resolve")
def resolve(
    url: str = typer.Argument(..., help="Wikipedia article URL (or an existing Wikidata URL)."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Resolve the Wikidata entity URI for a Wikipedia article."""
    settings = get_settings()

    async def _resolve() -> str:
        async with create_http_client(settings) as client:
            resolver = create_resolver(client, create_dispatcher(settings), settings)
            return await resolver.resolve(url)

    try:
        target = run_async(_resolve())
    except ConverterError as e:
        output_error(e, as_json=json_out)
        return
    output_dict({"reference": url, "target": target}, as_json=json_out, title="Resolved")


@app.command("find-url")
def find_url(
    entity_url: str = typer.Argument(..., help="MusicBrainz entity page URL."),
    link: str = typer.Argument(..., help="Linked resource, e.g. a Wikipedia URL."),
    origin: str = typer.Option("https://musicbrainz.org", "--origin", help="Server for the edit link."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Find the URL entity behind a link on a MusicBrainz entity page."""
    settings = get_settings()

    async def _find() -> str | None:
        async with create_http_client(settings) as client:
            mb = create_musicbrainz_client(client, create_dispatcher(settings), settings)
            return await mb.find_url_id(entity_url, link)

    try:
        url_id = run_async(_find())
    except ConverterError as e:
        output_error(e, as_json=json_out)
        return

    if url_id is None:
        output_dict({"link": link, "url_id": None}, as_json=json_out, title="Not linked")
        raise typer.Exit(code=1)
    output_dict(
        {
            "link": link,
            "url_id": url_id,
            "edit_page": MusicBrainzClient.url_edit_page(origin, url_id),
        },
        as_json=json_out,
        title="URL entity",
    )


app.add_typer(config_app, name="config", help="Configuration inspection.")

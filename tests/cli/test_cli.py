"""Tests for wikiconvert.cli — command smoke tests via CliRunner.

Outbound HTTP is served by ``httpx.MockTransport`` by replacing the
client factory the commands use.
"""

from __future__ import annotations

import importlib
import json

import httpx
import pytest
from typer.testing import CliRunner

from wikiconvert import __version__
from wikiconvert.cli.app import app

from tests._support.payloads import (
    ARTIST_PAGE,
    EINSTEIN_URL,
    EINSTEIN_WIKIDATA,
    URL_ID,
    pageprops_payload,
    url_rels_payload,
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    monkeypatch.setenv("WIKICONVERT_LOG_LEVEL", "ERROR")


@pytest.fixture
def serve(monkeypatch):
    """Route the CLI's HTTP client to a fixed response."""
    requests: list[httpx.Request] = []

    def install(response: httpx.Response) -> list[httpx.Request]:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return response

        def factory(settings=None, **kwargs):
            return httpx.AsyncClient(transport=httpx.MockTransport(handler))

        # wikiconvert.cli re-exports the Typer object under the submodule name
        monkeypatch.setattr(importlib.import_module("wikiconvert.cli.app"), "create_http_client", factory)
        return requests

    return install


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "resolve" in result.output
        assert "find-url" in result.output


class TestResolveCommand:
    """Tests for 'wikiconvert resolve'."""

    def test_resolve_json(self, serve):
        requests = serve(httpx.Response(200, json=pageprops_payload("Q937")))

        result = runner.invoke(app, ["resolve", EINSTEIN_URL, "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"reference": EINSTEIN_URL, "target": EINSTEIN_WIKIDATA}
        assert len(requests) == 1

    def test_resolve_table(self, serve):
        serve(httpx.Response(200, json=pageprops_payload("Q937")))
        result = runner.invoke(app, ["resolve", EINSTEIN_URL])
        assert result.exit_code == 0
        assert "Q937" in result.stdout

    def test_resolve_failure_exits_1(self, serve):
        serve(httpx.Response(200, json=pageprops_payload(None)))

        result = runner.invoke(app, ["resolve", EINSTEIN_URL, "--json"])

        assert result.exit_code == 1
        error = json.loads(result.stdout)
        assert error["error_type"] == "NoMappingAvailableError"

    def test_resolve_failure_message(self, serve):
        serve(httpx.Response(200, json=pageprops_payload(missing=True)))
        result = runner.invoke(app, ["resolve", EINSTEIN_URL])
        assert result.exit_code == 1
        assert "not_found" in result.output

    def test_invalid_reference(self, serve):
        requests = serve(httpx.Response(200, json=pageprops_payload()))
        result = runner.invoke(app, ["resolve", "https://example.org/x"])
        assert result.exit_code == 1
        assert "invalid_reference_format" in result.output
        assert requests == []


class TestFindUrlCommand:
    def test_found(self, serve):
        serve(httpx.Response(200, json=url_rels_payload(EINSTEIN_URL)))

        result = runner.invoke(app, ["find-url", ARTIST_PAGE, EINSTEIN_URL, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["url_id"] == URL_ID
        assert data["edit_page"] == f"https://musicbrainz.org/url/{URL_ID}/edit"

    def test_not_linked(self, serve):
        serve(httpx.Response(200, json=url_rels_payload()))
        result = runner.invoke(app, ["find-url", ARTIST_PAGE, EINSTEIN_URL, "--json"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["url_id"] is None


class TestConfigCommands:
    """Tests for the 'config' sub-commands."""

    def test_show_json(self):
        result = runner.invoke(app, ["config", "show", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["log_level"] == "ERROR"
        assert data["timings"]["dialog_timeout"] == 5.0

    def test_show_env(self):
        result = runner.invoke(app, ["config", "show", "--format", "env"])
        assert result.exit_code == 0
        assert "WIKICONVERT_TIMINGS__DIALOG_TIMEOUT=5.0" in result.stdout
        assert "WIKICONVERT_CHANNELS__MUSICBRAINZ__INTERVAL=1.0" in result.stdout

    def test_show_table(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "log_level" in result.stdout

    def test_validate_ok(self):
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 0
        assert "Configuration valid" in result.stdout

    def test_validate_error(self, monkeypatch):
        monkeypatch.setenv("WIKICONVERT_LOG_FORMAT", "xml")
        result = runner.invoke(app, ["config", "validate"])
        assert result.exit_code == 1
        assert "Configuration Error" in result.output

"""Tests for IdentifierResolver against a mocked Wikipedia API."""

import httpx
import pytest

from wikiconvert.core.errors import (
    FailureKind,
    InvalidReferenceFormatError,
    NoMappingAvailableError,
    ReferenceNotFoundError,
    TransportError,
)
from wikiconvert.resolution.resolver import IdentifierResolver

from tests._support.payloads import EINSTEIN_URL, EINSTEIN_WIKIDATA, pageprops_payload


class _Api:
    """Records requests and answers with a fixed response."""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def make_resolver(mock_client, dispatcher):
    def make(api: _Api) -> IdentifierResolver:
        return IdentifierResolver(mock_client(api), dispatcher)

    return make


class TestResolve:
    """Successful lookups."""

    @pytest.mark.asyncio
    async def test_resolves_wikibase_item(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload("Q937")))

        assert await make_resolver(api).resolve(EINSTEIN_URL) == EINSTEIN_WIKIDATA

        (request,) = api.requests
        assert request.url.host == "en.wikipedia.org"
        assert request.url.path == "/w/api.php"
        assert request.url.params["action"] == "query"
        assert request.url.params["prop"] == "pageprops"
        assert request.url.params["titles"] == "Albert_Einstein"
        assert request.url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_decodes_title_and_uses_language_host(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload("Q7766")))

        await make_resolver(api).resolve("https://de.wikipedia.org/wiki/Bj%C3%B6rk")

        assert api.requests[0].url.host == "de.wikipedia.org"
        assert api.requests[0].url.params["titles"] == "Björk"

    @pytest.mark.asyncio
    async def test_wikidata_reference_needs_no_lookup(self, make_resolver):
        api = _Api(httpx.Response(500))

        target = await make_resolver(api).resolve("http://wikidata.org/wiki/q937")

        assert target == EINSTEIN_WIKIDATA
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_custom_wikidata_base(self, mock_client, dispatcher):
        api = _Api(httpx.Response(200, json=pageprops_payload("Q937")))
        resolver = IdentifierResolver(
            mock_client(api), dispatcher, wikidata_base_url="https://test.wikidata.org/wiki/"
        )
        assert await resolver.resolve(EINSTEIN_URL) == "https://test.wikidata.org/wiki/Q937"


class TestResolveFailures:
    """Each failure maps to exactly one FailureKind."""

    @pytest.mark.asyncio
    async def test_invalid_format_makes_no_request(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload()))

        with pytest.raises(InvalidReferenceFormatError) as exc_info:
            await make_resolver(api).resolve("https://example.org/Albert_Einstein")

        assert exc_info.value.kind is FailureKind.INVALID_REFERENCE_FORMAT
        assert "Not a Wikipedia link" in exc_info.value.message
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_wikipedia_page_that_is_not_an_article(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload()))

        with pytest.raises(InvalidReferenceFormatError) as exc_info:
            await make_resolver(api).resolve("https://en.wikipedia.org/w/index.php?title=Albert_Einstein")

        assert "Not a Wikipedia article URL" in exc_info.value.message
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_missing_page(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload(missing=True)))
        with pytest.raises(ReferenceNotFoundError):
            await make_resolver(api).resolve(EINSTEIN_URL)

    @pytest.mark.asyncio
    async def test_page_without_wikibase_item(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload(None)))
        with pytest.raises(NoMappingAvailableError) as exc_info:
            await make_resolver(api).resolve(EINSTEIN_URL)
        assert exc_info.value.context.metadata["title"] == "Albert_Einstein"

    @pytest.mark.asyncio
    async def test_http_error_status(self, make_resolver):
        api = _Api(httpx.Response(503))
        with pytest.raises(TransportError) as exc_info:
            await make_resolver(api).resolve(EINSTEIN_URL)
        assert exc_info.value.context.http_status == 503
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_connection_error(self, make_resolver):
        api = _Api(httpx.ConnectError("connection refused"))
        with pytest.raises(TransportError) as exc_info:
            await make_resolver(api).resolve(EINSTEIN_URL)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_resolver):
        api = _Api(httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(TransportError):
            await make_resolver(api).resolve(EINSTEIN_URL)

    @pytest.mark.asyncio
    async def test_response_without_pages(self, make_resolver):
        api = _Api(httpx.Response(200, json={"batchcomplete": ""}))
        with pytest.raises(TransportError):
            await make_resolver(api).resolve(EINSTEIN_URL)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"query": "x"},
            {"query": {"pages": {"736": "oops"}}},
            {"query": {"pages": {"736": {"pageid": 736, "pageprops": ["Q937"]}}}},
        ],
        ids=["query-not-object", "page-not-object", "pageprops-not-object"],
    )
    async def test_malformed_payload(self, make_resolver, payload):
        api = _Api(httpx.Response(200, json=payload))
        with pytest.raises(TransportError):
            await make_resolver(api).resolve(EINSTEIN_URL)


class TestAttempt:
    @pytest.mark.asyncio
    async def test_success(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload("Q937")))
        result = await make_resolver(api).attempt(EINSTEIN_URL)
        assert result.success
        assert result.target_identifier == EINSTEIN_WIKIDATA

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, make_resolver):
        api = _Api(httpx.Response(200, json=pageprops_payload(None)))
        result = await make_resolver(api).attempt(EINSTEIN_URL)
        assert not result.success
        assert result.failure_reason is FailureKind.NO_MAPPING_AVAILABLE
        assert isinstance(result.error, NoMappingAvailableError)

    @pytest.mark.asyncio
    async def test_single_request_per_attempt(self, make_resolver):
        api = _Api(httpx.Response(503))
        result = await make_resolver(api).attempt(EINSTEIN_URL)
        assert result.failure_reason is FailureKind.TRANSPORT_ERROR
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_malformed_page_is_reported_not_raised(self, make_resolver):
        api = _Api(httpx.Response(200, json={"query": {"pages": {"736": "oops"}}}))
        result = await make_resolver(api).attempt(EINSTEIN_URL)
        assert not result.success
        assert result.failure_reason is FailureKind.TRANSPORT_ERROR

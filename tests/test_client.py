"""Tests for adsabs.client with a mocked transport."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from adsabs.client import AdsClient
from adsabs.errors import DecodeError, InvalidQuery, MissingRequiredField, TokenError, TransportError
from adsabs.fields import UNSET
from adsabs.models import CitationInfo
from adsabs.query import Query
from adsabs.transport import RawResponse, Transport

BASE = "https://api.adsabs.harvard.edu/v1"


@pytest.fixture(autouse=True)
def default_base_url(monkeypatch):
    monkeypatch.delenv("ADS_BASE_URL", raising=False)


def _mock_transport(payload, headers=None):
    """Create a mock Transport returning ``payload`` as the response body."""
    transport = MagicMock(spec=Transport)
    text = payload if isinstance(payload, str) else json.dumps(payload)
    transport.execute.return_value = RawResponse(200, text, headers or {})
    return transport


SCENARIO = {
    "response": {
        "numFound": 500,
        "start": 0,
        "docs": [{"title": "Paper One", "year": 2020}, {"title": "Paper Two"}],
    }
}


class TestConstruction:
    def test_empty_token(self):
        with pytest.raises(TokenError):
            AdsClient("  ", transport=MagicMock())

    def test_repr_hides_token(self):
        client = AdsClient("secret-token", transport=MagicMock())
        assert "secret-token" not in repr(client)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ADS_API_TOKEN", "env-token")
        monkeypatch.delenv("ADS_BASE_URL", raising=False)
        transport = _mock_transport(SCENARIO)
        client = AdsClient.from_env(transport=transport)
        client.search(Query(text="x", fields=["title", "year"], rows=2))
        headers = transport.execute.call_args.args[2]
        assert headers["Authorization"] == "Bearer env-token"
        assert client.base_url == BASE

    def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("ADS_BASE_URL", "https://devapi.adsabs.test/v1")
        assert AdsClient("tok", transport=MagicMock()).base_url == "https://devapi.adsabs.test/v1"
        assert AdsClient("tok", base_url=BASE, transport=MagicMock()).base_url == BASE

    def test_from_env_base_url(self, monkeypatch):
        monkeypatch.setenv("ADS_API_TOKEN", "env-token")
        monkeypatch.setenv("ADS_BASE_URL", "https://devapi.adsabs.test/v1/")
        client = AdsClient.from_env(transport=MagicMock())
        assert client.base_url == "https://devapi.adsabs.test/v1"


class TestSearch:
    def test_scenario(self):
        transport = _mock_transport(SCENARIO)
        client = AdsClient("tok", transport=transport)

        result = client.search(Query(text="black holes", fields=["title", "year"], rows=2))

        method, url, headers = transport.execute.call_args.args
        assert method == "GET"
        assert url.startswith(f"{BASE}/search/query?")
        assert "q=black+holes&fl=title%2Cyear&rows=2" in url
        assert headers["Authorization"] == "Bearer tok"
        assert "User-Agent" in headers

        assert result.num_found == 500
        assert [r.title for r in result] == ["Paper One", "Paper Two"]
        assert result.records[0].year == 2020
        assert result.records[1].year is UNSET

    def test_string_query(self):
        transport = _mock_transport({"response": {"numFound": 0, "start": 0, "docs": []}})
        AdsClient("tok", transport=transport).search("supernova")
        url = transport.execute.call_args.args[1]
        assert "q=supernova" in url
        assert "rows=10" in url

    def test_invalid_query_never_sent(self):
        transport = _mock_transport(SCENARIO)
        client = AdsClient("tok", transport=transport)
        with pytest.raises(InvalidQuery):
            client.search(Query(text="x", rows=5000))
        transport.execute.assert_not_called()

    def test_other_record_type(self):
        transport = _mock_transport({
            "response": {
                "numFound": 1,
                "start": 0,
                "docs": [{"bibcode": "2013PASP..125..306F", "citation_count": 0, "read_count": 9}],
            }
        })
        result = AdsClient("tok", transport=transport).search(
            Query(text="emcee", record=CitationInfo, rows=1)
        )
        info = result.records[0]
        assert info.citation_count == 0
        assert info.citations is UNSET
        url = transport.execute.call_args.args[1]
        assert "fl=bibcode%2Ccitation_count%2Cread_count%2Ccitation%2Creference" in url

    def test_lenient_by_default(self):
        transport = _mock_transport({
            "response": {"numFound": 2, "start": 0, "docs": [{"title": "A"}, {"year": 1}]}
        })
        result = AdsClient("tok", transport=transport).search(Query(text="x", fields=["title", "year"]))
        assert len(result.records) == 1
        assert len(result.failures) == 1

    def test_strict(self):
        transport = _mock_transport({
            "response": {"numFound": 2, "start": 0, "docs": [{"title": "A"}, {"year": 1}]}
        })
        with pytest.raises(MissingRequiredField):
            AdsClient("tok", transport=transport).search(
                Query(text="x", fields=["title", "year"]), strict=True
            )

    def test_rate_limit_headers(self):
        transport = _mock_transport(
            SCENARIO,
            headers={"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "4998", "X-RateLimit-Reset": "1700000000"},
        )
        result = AdsClient("tok", transport=transport).search(Query(text="x", fields=["title", "year"], rows=2))
        assert result.rate_limit.limit == 5000
        assert result.rate_limit.remaining == 4998
        assert result.rate_limit.reset == 1700000000

    def test_malformed_json_is_decode_error(self):
        transport = _mock_transport("<html>oops</html>")
        with pytest.raises(DecodeError) as exc:
            AdsClient("tok", transport=transport).search("x")
        assert not isinstance(exc.value, TransportError)


class TestSearchOverHttp:
    def test_rate_limited_response_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "120"}, text="")

        transport = Transport(client=httpx.Client(transport=httpx.MockTransport(handler)))
        client = AdsClient("tok", transport=transport)
        with pytest.raises(TransportError) as exc:
            client.search("supernova")
        assert exc.value.status_code == 429
        assert exc.value.retry_after == "120"
        assert len(calls) == 1

    def test_bearer_token_on_the_wire(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=SCENARIO)

        transport = Transport(client=httpx.Client(transport=httpx.MockTransport(handler)))
        with AdsClient("tok", transport=transport) as client:
            result = client.search(Query(text="black holes", fields=["title", "year"], rows=2))
        assert seen["auth"] == "Bearer tok"
        assert seen["params"]["q"] == "black holes"
        assert seen["params"]["fl"] == "title,year"
        assert len(result) == 2


class TestExport:
    def test_export_bibtex(self):
        transport = _mock_transport({"msg": "Retrieved 1 abstracts", "export": "@ARTICLE{2015RaSc...50..916A,}"})
        text = AdsClient("tok", transport=transport).export(["2015RaSc...50..916A"])
        assert text.startswith("@ARTICLE")
        method, url, headers, body = transport.execute.call_args.args
        assert method == "POST"
        assert url == f"{BASE}/export/bibtex"
        assert body == {"bibcode": ["2015RaSc...50..916A"]}

    def test_export_custom(self):
        transport = _mock_transport({"msg": "", "export": "01 2000\n"})
        AdsClient("tok", transport=transport).export(
            ["2000A&AS..143...41K"], "custom", custom_format="%m %Y", sort=["first_author asc"]
        )
        url, body = transport.execute.call_args.args[1], transport.execute.call_args.args[3]
        assert url.endswith("/export/custom")
        assert body["format"] == "%m %Y"
        assert body["sort"] == "first_author asc"

"""Tests for the ads CLI — command registration, env handling and output."""

import json
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from adsabs.cli import cli
from adsabs.client import AdsClient
from adsabs.transport import RawResponse, Transport


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def no_token(tmp_path, monkeypatch):
    import adsabs.config as config
    monkeypatch.setattr(config, "ADS_DIR", tmp_path)
    monkeypatch.setattr(config, "PERSISTENT_ENV", tmp_path / ".env")
    for var in ("ADS_API_TOKEN", "ADS_DEV_KEY", "ADS_BASE_URL"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    return tmp_path


@pytest.fixture
def fake_client(monkeypatch):
    """Patch the CLI to use a client whose transport returns a canned body."""
    transport = MagicMock(spec=Transport)

    def _install(payload):
        transport.execute.return_value = RawResponse(200, json.dumps(payload), {})
        monkeypatch.setattr("adsabs.cli._client", lambda token: AdsClient(token or "tok", transport=transport))
        return transport

    return _install


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "search" in result.output
        assert "export" in result.output
        assert "env" in result.output

    def test_search_help(self, runner):
        result = runner.invoke(cli, ["search", "--help"])
        assert result.exit_code == 0
        assert "QUERY" in result.output
        assert "--fl" in result.output
        assert "--rows" in result.output

    def test_export_help(self, runner):
        result = runner.invoke(cli, ["export", "--help"])
        assert result.exit_code == 0
        assert "BIBCODES" in result.output
        assert "bibtex" in result.output


class TestEnvCLI:
    def test_env_shows_status(self, runner, no_token):
        result = runner.invoke(cli, ["env"])
        assert result.exit_code == 0
        assert "ADS Configuration Status" in result.output
        assert "ADS_API_TOKEN" in result.output
        assert "ADS_DEV_KEY" in result.output
        assert "ads env set ADS_API_TOKEN" in result.output

    def test_env_shows_token_file(self, runner, no_token):
        (no_token / "token").write_text("abc\n")
        result = runner.invoke(cli, ["env"])
        assert result.exit_code == 0
        assert "Token file:" in result.output

    def test_env_set_invalid_key(self, runner):
        result = runner.invoke(cli, ["env", "set", "INVALID_KEY", "value"])
        assert result.exit_code == 1
        assert "Unknown key" in result.output

    def test_env_set_saves_key(self, runner, no_token):
        result = runner.invoke(cli, ["env", "set", "ads_api_token", "test-123"])
        assert result.exit_code == 0
        assert "Saved ADS_API_TOKEN" in result.output
        assert "ADS_API_TOKEN=test-123" in (no_token / ".env").read_text()


class TestSearchCLI:
    def test_missing_token(self, runner, no_token):
        result = runner.invoke(cli, ["search", "supernova"])
        assert result.exit_code == 1
        assert "No ADS API token found" in result.output

    def test_invalid_rows(self, runner, fake_client):
        transport = fake_client({"response": {"numFound": 0, "start": 0, "docs": []}})
        result = runner.invoke(cli, ["search", "x", "--rows", "5000"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        transport.execute.assert_not_called()

    def test_search_renders_results(self, runner, fake_client):
        transport = fake_client({
            "response": {
                "numFound": 500,
                "start": 0,
                "docs": [{"title": ["Paper One"], "year": "2020"}, {"title": ["Paper Two"]}],
            }
        })
        result = runner.invoke(cli, ["search", "black", "holes", "--fl", "title,year", "-n", "2"])
        assert result.exit_code == 0
        assert "[r1] Paper One" in result.output
        assert "[r2] Paper Two" in result.output
        url = transport.execute.call_args.args[1]
        assert "q=black+holes&fl=title%2Cyear&rows=2" in url

    def test_filters_and_sort(self, runner, fake_client):
        transport = fake_client({"response": {"numFound": 0, "start": 0, "docs": []}})
        result = runner.invoke(
            cli,
            ["search", "exoplanets", "-a", "^Foreman-Mackey, D", "--year", "2018-2022", "-s", "citation_count"],
        )
        assert result.exit_code == 0
        assert "No results found" in result.output
        url = transport.execute.call_args.args[1]
        assert "year%3A%5B2018+TO+2022%5D" in url
        assert "sort=citation_count+desc" in url

    def test_json_output(self, runner, fake_client):
        fake_client({"response": {"numFound": 1, "start": 0, "docs": [{"title": "Paper One", "year": 2020}]}})
        result = runner.invoke(cli, ["search", "x", "--fl", "title", "--fl", "year", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["docs"] == [{"title": "Paper One", "year": 2020}]

    def test_strict_fails_on_bad_record(self, runner, fake_client):
        fake_client({"response": {"numFound": 1, "start": 0, "docs": [{"year": 2020}]}})
        result = runner.invoke(cli, ["search", "x", "--fl", "title,year", "--strict"])
        assert result.exit_code == 1
        assert "title" in result.output


class TestExportCLI:
    def test_export_bibtex(self, runner, fake_client):
        transport = fake_client({"msg": "Retrieved 1 abstracts", "export": "@ARTICLE{2013PASP..125..306F,}"})
        result = runner.invoke(cli, ["export", "2013PASP..125..306F"])
        assert result.exit_code == 0
        assert "@ARTICLE{2013PASP..125..306F,}" in result.output
        assert transport.execute.call_args.args[1].endswith("/export/bibtex")

    def test_export_custom_without_format(self, runner, fake_client):
        transport = fake_client({"export": ""})
        result = runner.invoke(cli, ["export", "2013PASP..125..306F", "-f", "custom"])
        assert result.exit_code == 1
        transport.execute.assert_not_called()

    def test_export_requires_bibcodes(self, runner):
        result = runner.invoke(cli, ["export"])
        assert result.exit_code != 0


class TestBaseUrlCLI:
    @pytest.fixture
    def transport(self, monkeypatch):
        transport = MagicMock(spec=Transport)
        monkeypatch.setattr("adsabs.client.Transport", lambda timeout: transport)
        monkeypatch.setenv("ADS_BASE_URL", "https://devapi.adsabs.test/v1")
        return transport

    def test_search_with_token_uses_configured_base_url(self, runner, transport):
        transport.execute.return_value = RawResponse(
            200, json.dumps({"response": {"numFound": 0, "start": 0, "docs": []}}), {}
        )
        result = runner.invoke(cli, ["search", "x", "--token", "tok"])
        assert result.exit_code == 0
        url = transport.execute.call_args.args[1]
        assert url.startswith("https://devapi.adsabs.test/v1/search/query?")

    def test_export_with_token_uses_configured_base_url(self, runner, transport):
        transport.execute.return_value = RawResponse(200, json.dumps({"export": "@ARTICLE{x,}"}), {})
        result = runner.invoke(cli, ["export", "2013PASP..125..306F", "--token", "tok"])
        assert result.exit_code == 0
        assert transport.execute.call_args.args[1] == "https://devapi.adsabs.test/v1/export/bibtex"

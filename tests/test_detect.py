from unittest.mock import patch, MagicMock

import pytest
import requests

from api_contract_diff.config import Settings
from api_contract_diff.errors import ConfigurationError, RetrievalFailure
from api_contract_diff.parser.detect import detect_source, read_source


class TestDetectSource:
    def test_url(self):
        assert detect_source("  https://api.example.com/v3/api-docs \n") == "url"

    def test_file(self, tmp_path):
        f = tmp_path / "openapi.yaml"
        f.write_text("openapi: 3.0.0\n")
        assert detect_source(str(f)) == "file"

    def test_raw_text(self):
        assert detect_source("openapi: 3.0.0\npaths: {}\n") == "text"

    def test_missing_file_is_text(self, tmp_path):
        assert detect_source(str(tmp_path / "nope.yaml")) == "text"


class TestReadSource:
    def test_reads_file(self, tmp_path):
        f = tmp_path / "openapi.yaml"
        f.write_text("openapi: 3.0.0\n", encoding="utf-8")
        assert read_source(str(f)) == "openapi: 3.0.0\n"

    def test_raw_text_passes_through(self):
        text = "openapi: 3.0.0\npaths: {}\n"
        assert read_source(text) == text

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_fetches_url(self, mock_get):
        resp = MagicMock()
        resp.text = "openapi: 3.0.0\n"
        mock_get.return_value = resp

        text = read_source("https://api.example.com/v3/api-docs", Settings(fetch_timeout=5, user_agent="test"))

        assert text == "openapi: 3.0.0\n"
        mock_get.assert_called_once_with(
            "https://api.example.com/v3/api-docs",
            timeout=5,
            headers={"User-Agent": "test"},
        )
        resp.raise_for_status.assert_called_once()

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_url_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RetrievalFailure) as exc:
            read_source("http://localhost:1/api-docs")
        assert exc.value.location == "http://localhost:1/api-docs"

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_http_error_status(self, mock_get):
        resp = MagicMock()
        resp.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        mock_get.return_value = resp
        with pytest.raises(RetrievalFailure, match="404"):
            read_source("https://api.example.com/missing")


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "2.5")
        monkeypatch.setenv("API_CONTRACT_DIFF_USER_AGENT", "ci")
        s = Settings.from_env()
        assert s.fetch_timeout == 2.5
        assert s.user_agent == "ci"

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", raising=False)
        monkeypatch.delenv("API_CONTRACT_DIFF_USER_AGENT", raising=False)
        assert Settings.from_env() == Settings()

    def test_empty_variable_keeps_default(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "")
        assert Settings.from_env().fetch_timeout == 30.0

    def test_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "thirty")
        with pytest.raises(ConfigurationError, match="API_CONTRACT_DIFF_FETCH_TIMEOUT"):
            Settings.from_env()

    def test_non_positive_timeout(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "0")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_invalid_env_does_not_block_file_input(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "thirty")
        spec_file = tmp_path / "api.yaml"
        spec_file.write_text("openapi: 3.0.0\n", encoding="utf-8")
        assert read_source(str(spec_file)) == "openapi: 3.0.0\n"

    @patch("api_contract_diff.parser.detect.requests.get")
    def test_invalid_env_fails_url_input(self, mock_get, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_DIFF_FETCH_TIMEOUT", "thirty")
        with pytest.raises(ConfigurationError):
            read_source("https://api.example.com/v3/api-docs")
        mock_get.assert_not_called()

"""Unit tests for the metadata HTTP client and response parsing."""

from unittest.mock import Mock, patch

import pytest
import requests

from signflow.ai.client import AIAPIError, AIConnectionError, MetadataClient
from signflow.ai.providers import build_metadata_prompt
from signflow.ai.schemas import MetadataRequest, parse_metadata_json


class TestMetadataClient:
    """Test HTTP metadata client."""

    def test_init(self):
        """Test client initialization."""
        client = MetadataClient("https://api.example.com/v1", "test-key")
        assert client.endpoint == "https://api.example.com/v1/"
        assert client.api_key == "test-key"
        assert client.timeout == 30
        assert client.session.headers["Authorization"] == "Bearer test-key"

    def test_init_no_key(self):
        """Test client initialization without API key."""
        client = MetadataClient("https://api.example.com/v1")
        assert client.api_key is None
        assert "Authorization" not in client.session.headers

    @patch('signflow.ai.client.requests.Session.post')
    def test_analyze_success(self, mock_post):
        """Test successful analysis call."""
        mock_response = Mock()
        mock_response.json.return_value = {
            "title": "Lease Agreement",
            "summary": "Office lease between two parties.",
            "tags": ["Legal", "Real Estate", "Lease"],
        }
        mock_response.raise_for_status = Mock()
        mock_post.return_value = mock_response

        client = MetadataClient("https://api.example.com/v1")
        result = client.analyze(MetadataRequest(text="LEASE AGREEMENT ..."))

        assert result.title == "Lease Agreement"
        assert result.tags == ["Legal", "Real Estate", "Lease"]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.example.com/v1/analyze"
        assert kwargs["json"] == {"text": "LEASE AGREEMENT ...", "max_tags": 3}

    @patch('signflow.ai.client.requests.Session.post')
    def test_analyze_timeout(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()
        client = MetadataClient("https://api.example.com/v1", timeout=5)
        with pytest.raises(AIConnectionError, match="timed out"):
            client.analyze(MetadataRequest(text="x"))

    @patch('signflow.ai.client.requests.Session.post')
    def test_analyze_connection_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")
        client = MetadataClient("https://api.example.com/v1")
        with pytest.raises(AIConnectionError):
            client.analyze(MetadataRequest(text="x"))

    @patch('signflow.ai.client.requests.Session.post')
    def test_analyze_http_error(self, mock_post):
        error_response = Mock()
        error_response.status_code = 500
        error_response.json.return_value = {"error": "boom"}
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=error_response)
        mock_post.return_value = mock_response

        client = MetadataClient("https://api.example.com/v1")
        with pytest.raises(AIAPIError, match="500 - boom"):
            client.analyze(MetadataRequest(text="x"))

    @patch('signflow.ai.client.requests.Session.post')
    def test_analyze_invalid_body(self, mock_post):
        mock_response = Mock()
        mock_response.raise_for_status = Mock()
        mock_response.json.return_value = {"tags": "not-a-list"}
        mock_post.return_value = mock_response

        client = MetadataClient("https://api.example.com/v1")
        with pytest.raises(AIAPIError):
            client.analyze(MetadataRequest(text="x"))

    @patch('signflow.ai.client.requests.Session.get')
    def test_health_check(self, mock_get):
        mock_get.return_value = Mock(status_code=200)
        assert MetadataClient("https://api.example.com").health_check() is True

        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert MetadataClient("https://api.example.com").health_check() is False


class TestParseMetadataJson:
    """Test parsing model replies."""

    def test_bare_json(self):
        result = parse_metadata_json('{"title": "NDA", "summary": "s", "tags": ["Legal"]}')
        assert result.title == "NDA"

    def test_fenced_json(self):
        result = parse_metadata_json('```json\n{"title": "NDA"}\n```')
        assert result.title == "NDA"
        assert result.tags is None

    @pytest.mark.parametrize("content", ["no json here", "{broken", "[1, 2]", '{"tags": 5}'])
    def test_invalid(self, content):
        with pytest.raises(ValueError):
            parse_metadata_json(content)


def test_prompt_contains_sample_and_strict_instruction():
    prompt = build_metadata_prompt("Hello world")
    assert "Hello world" in prompt
    assert "3 relevant tags" in prompt
    assert "only valid JSON" not in prompt
    assert "only valid JSON" in build_metadata_prompt("Hello world", strict_json_instruction=True)

"""Unit tests for LLMClient."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock, patch, MagicMock
import httpx
from services.llm_client import LLMClient, LLMResponse, LLMClientError
from services.context_assembler import ContextAssembler


def make_payload():
    return ContextAssembler().build_prompt("What is your refund policy?", [], [])


def mock_http(mock_client_class, status_code=200, body=None, text="", side_effect=None):
    """Wire httpx.Client() -> context manager -> post() to return a canned response."""
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.text = text
    if isinstance(body, Exception):
        mock_response.json.side_effect = body
    else:
        mock_response.json.return_value = body

    mock_client = MagicMock()
    post = mock_client.__enter__.return_value.post
    if side_effect is not None:
        post.side_effect = side_effect
    else:
        post.return_value = mock_response
    mock_client_class.return_value = mock_client
    return post


class TestLLMClient:
    """Test suite for LLMClient class."""

    def test_initialization_with_api_key(self):
        client = LLMClient(api_key="test_key", base_url="https://example.test/v1beta/", model="gemini-test")
        assert client.api_key == "test_key"
        assert client.api_url == "https://example.test/v1beta/models/gemini-test:generateContent"

    def test_initialization_without_api_key_raises_error(self):
        with patch('services.llm_client.GEMINI_API_KEY', None):
            with pytest.raises(ValueError, match="GEMINI_API_KEY must be provided"):
                LLMClient()

    @patch('httpx.Client')
    def test_generate_success(self, mock_client_class):
        body = {
            "candidates": [{"content": {"parts": [{"text": "30 days."}]}}],
            "usageMetadata": {"promptTokenCount": 120, "candidatesTokenCount": 8},
        }
        post = mock_http(mock_client_class, body=body)
        payload = make_payload()

        client = LLMClient(api_key="test_key", model="gemini-test")
        response = client.generate(payload)

        assert isinstance(response, LLMResponse)
        assert response.raw == body
        assert response.tokens_input == 120
        assert response.tokens_output == 8
        assert response.model_used == "gemini-test"
        assert response.latency_ms >= 0

        args, kwargs = post.call_args
        assert args[0].endswith("/models/gemini-test:generateContent")
        assert kwargs["headers"]["x-goog-api-key"] == "test_key"
        assert kwargs["json"] == payload.to_request_body()

    @patch('httpx.Client')
    def test_generate_without_usage_metadata(self, mock_client_class):
        mock_http(mock_client_class, body={"candidates": []})
        response = LLMClient(api_key="test_key").generate(make_payload())
        assert response.tokens_input == 0
        assert response.tokens_output == 0

    @patch('httpx.Client')
    def test_non_json_body_passed_on_as_none(self, mock_client_class):
        mock_http(mock_client_class, body=ValueError("not json"), text="<html>oops</html>")
        response = LLMClient(api_key="test_key").generate(make_payload())
        assert response.raw is None

    @pytest.mark.parametrize("status_code, body, expected_code, expected_text", [
        (400, {"error": {"message": "Request blocked by safety filters"}}, "SAFETY_BLOCKED", "safety guidelines"),
        (400, {"error": {"message": "Invalid argument"}}, "BAD_REQUEST", "issue with your request"),
        (401, {"error": {"message": "API key not valid"}}, "AUTHENTICATION_ERROR", "Authentication failed"),
        (403, {"error": {"message": "Forbidden"}}, "AUTHENTICATION_ERROR", "Authentication failed"),
        (429, {"error": {"message": "Quota exceeded"}}, "RATE_LIMIT_ERROR", "Rate limit"),
        (500, {"error": {"message": "Internal"}}, "UPSTREAM_ERROR", "internal error"),
        (503, {"error": {"message": "Overloaded"}}, "API_ERROR", "Status: 503"),
    ])
    @patch('httpx.Client')
    def test_http_errors(self, mock_client_class, status_code, body, expected_code, expected_text):
        mock_http(mock_client_class, status_code=status_code, body=body)

        with pytest.raises(LLMClientError) as exc_info:
            LLMClient(api_key="test_key").generate(make_payload())

        error = exc_info.value.error
        assert error.code == expected_code
        assert expected_text in error.message
        assert error.details["status_code"] == status_code

    @patch('httpx.Client')
    def test_error_body_not_json(self, mock_client_class):
        mock_http(mock_client_class, status_code=502, body=ValueError("no json"), text="Bad Gateway")

        with pytest.raises(LLMClientError) as exc_info:
            LLMClient(api_key="test_key").generate(make_payload())

        assert exc_info.value.error.details["original_error"] == "Bad Gateway"

    @patch('httpx.Client')
    def test_timeout(self, mock_client_class):
        mock_http(mock_client_class, side_effect=httpx.TimeoutException("timed out"))

        with pytest.raises(LLMClientError) as exc_info:
            LLMClient(api_key="test_key").generate(make_payload())

        assert exc_info.value.error.code == "TIMEOUT_ERROR"
        assert exc_info.value.error.details["error_type"] == "TimeoutException"

    @patch('httpx.Client')
    def test_connection_error(self, mock_client_class):
        mock_http(mock_client_class, side_effect=httpx.ConnectError("name resolution failed"))

        with pytest.raises(LLMClientError) as exc_info:
            LLMClient(api_key="test_key").generate(make_payload())

        assert exc_info.value.error.code == "CONNECTION_ERROR"
        assert "trouble connecting" in exc_info.value.error.message

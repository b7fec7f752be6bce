"""LLM client for the Gemini generateContent API."""
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any
import httpx
import logging

from config import GEMINI_API_KEY, GEMINI_BASE_URL, GEMINI_MODEL, GEMINI_TIMEOUT
from services.context_assembler import PromptPayload

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Raw response from LLM generation."""
    raw: Optional[Dict[str, Any]]
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str  # safe to show to the end user
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class LLMClient:
    """Client for interfacing with the Gemini API for text generation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = GEMINI_BASE_URL,
        model: str = GEMINI_MODEL,
        timeout: float = GEMINI_TIMEOUT
    ):
        """
        Initialize LLM client with Gemini API key.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY from environment)
            base_url: API root, e.g. https://generativelanguage.googleapis.com/v1beta
            model: Model name used in the generateContent path
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY must be provided or set in environment")

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.api_url = f"{self.base_url}/models/{model}:generateContent"
        logger.info(f"LLMClient initialized for model: {model}")

    def generate(self, payload: PromptPayload) -> LLMResponse:
        """
        Send one generateContent request.

        Args:
            payload: Assembled prompt and generation parameters

        Returns:
            LLMResponse with the decoded JSON body (None if it was not JSON)

        Raises:
            LLMClientError: Structured error with code, message, and details
        """
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }
        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {self.model}")
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.api_url,
                    headers=headers,
                    json=payload.to_request_body()
                )
        except httpx.TimeoutException as e:
            raise self._error(
                "TIMEOUT_ERROR",
                "The AI service took too long to respond. Please try again.",
                start_time, e
            )
        except httpx.ConnectError as e:
            raise self._error(
                "CONNECTION_ERROR",
                "I'm having trouble connecting to the AI service. "
                "Please check your network connection or try again later.",
                start_time, e
            )
        except httpx.RequestError as e:
            raise self._error(
                "NETWORK_ERROR",
                "I'm having trouble connecting to the AI service. Please try again later.",
                start_time, e
            )

        latency_ms = int((time.time() - start_time) * 1000)

        if response.status_code != 200:
            raise self._status_error(response, latency_ms)

        try:
            raw = response.json()
        except ValueError:
            logger.error(f"Non-JSON body from completion API: {response.text[:500]}")
            raw = None

        usage = raw.get("usageMetadata", {}) if isinstance(raw, dict) else {}
        tokens_input = usage.get("promptTokenCount", 0)
        tokens_output = usage.get("candidatesTokenCount", 0)

        logger.info(
            f"Generated response: model={self.model}, "
            f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
            f"latency={latency_ms}ms"
        )

        return LLMResponse(
            raw=raw,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            latency_ms=latency_ms,
            model_used=self.model
        )

    def _status_error(self, response: httpx.Response, latency_ms: int) -> LLMClientError:
        """Map a non-200 response to a structured error."""
        status = response.status_code
        upstream_message = self._upstream_message(response)

        if status == 400 and "safety" in upstream_message.lower():
            code = "SAFETY_BLOCKED"
            message = "I cannot answer that question as it violates my safety guidelines. Please rephrase your query."
        elif status == 400:
            code = "BAD_REQUEST"
            message = ("There was an issue with your request. This might be due to an invalid "
                       "input or API problem. Please try again.")
        elif status in (401, 403):
            code = "AUTHENTICATION_ERROR"
            message = "Authentication failed with the AI service. Please check the API key configuration on the server."
        elif status == 429:
            code = "RATE_LIMIT_ERROR"
            message = "Rate limit exceeded. Please try again in a few moments."
        elif status == 500:
            code = "UPSTREAM_ERROR"
            message = "The AI service encountered an internal error. Please try again in a few moments."
        else:
            code = "API_ERROR"
            message = f"I'm encountering a problem processing your request (Status: {status}). Please try again."

        error = LLMError(
            code=code,
            message=message,
            details={
                "status_code": status,
                "model": self.model,
                "latency_ms": latency_ms,
                "original_error": upstream_message
            }
        )
        logger.error(
            f"Completion API error: status={status}, model={self.model}, "
            f"latency={latency_ms}ms, error={upstream_message}",
            extra={"error_code": error.code, "error_details": error.details}
        )
        return LLMClientError(error)

    def _error(self, code: str, message: str, start_time: float, exc: Exception) -> LLMClientError:
        """Build a structured error for a transport failure."""
        latency_ms = int((time.time() - start_time) * 1000)
        error = LLMError(
            code=code,
            message=message,
            details={
                "model": self.model,
                "latency_ms": latency_ms,
                "original_error": str(exc),
                "error_type": type(exc).__name__
            }
        )
        logger.error(
            f"Transport error: model={self.model}, latency={latency_ms}ms, error={exc}",
            exc_info=True,
            extra={"error_code": error.code, "error_details": error.details}
        )
        return LLMClientError(error)

    @staticmethod
    def _upstream_message(response: httpx.Response) -> str:
        """Best-effort error text from an error response body."""
        try:
            body = response.json()
        except ValueError:
            return response.text or ""
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return str(body["error"].get("message", ""))
        return str(body)

"""HTTP client for the chat and FAQ endpoints."""
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional
import httpx

from client.state import ChatMessage

logger = logging.getLogger(__name__)


class ChatApiError(Exception):
    """Raised when the backend answers with a non-2xx status or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ChatApiClient:
    """Talks to the chat backend on behalf of one user."""

    def __init__(self, base_url: str, user_id: str, timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout) as client:
                response = client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise ChatApiError(f"Could not reach chat backend: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get("reply") or body.get("message") or response.text
            raise ChatApiError(message, status_code=response.status_code)

        return response.json()

    def send_message(self, message: str) -> str:
        """Post a message and return the assistant's reply."""
        body = self._request("POST", "/chat", json={"userId": self.user_id, "message": message})
        return body["reply"]

    def fetch_history(self) -> List[ChatMessage]:
        body = self._request("GET", f"/chat/{self.user_id}")
        return [ChatMessage(sender=m["sender"], content=m["content"]) for m in body.get("messages", [])]

    def upload_text_faq(self, title: str, content: str) -> Dict[str, Any]:
        return self._request("POST", "/faqs", json={"title": title, "content": content})

    def upload_file_faq(self, title: str, path: Path) -> Dict[str, Any]:
        """Upload a file as a FAQ; the server extracts its text."""
        mimetype = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as f:
            return self._request(
                "POST",
                "/upload-file-faq",
                data={"title": title},
                files={"file": (path.name, f, mimetype)},
            )

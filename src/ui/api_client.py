"""
Synchronous HTTP client for the VoiceCorpus backend API.

Uses ``httpx.Client`` (sync) because Streamlit scripts run synchronously.
"""

import logging

import httpx
import streamlit as st

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    Used by the UI to display appropriate error messages.  For "http"
    errors ``code`` holds the backend's machine-readable error code.
    """

    def __init__(self, message: str, category: str = "unknown", code: str | None = None) -> None:
        self.message = message
        self.category = category
        self.code = code
        super().__init__(message)


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    Uses synchronous HTTP because Streamlit scripts run on a single thread.
    All methods return parsed JSON dicts (or raw bytes for audio and
    archives) or raise ``APIError`` with user-friendly messages.
    """

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the VoiceCorpus FastAPI backend.
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=30.0)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Args:
            method: HTTP method name ("get", "post", "delete").
            path: API endpoint path (e.g. "/api/v1/contributors").
            **kwargs: Passed through to httpx (json, params, content, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Backend server is not running. "
                "Start it with: `uvicorn src.api.app:app --reload --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The server may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            code = None
            try:
                body = exc.response.json()
                detail = body.get("detail", exc.response.text)
                code = body.get("code")
            except ValueError:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http", code=code) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- sessions --

    def create_session(self, contributor: str | None = None) -> dict:
        body = {"contributor": contributor} if contributor else None
        return self._request("post", "/api/v1/sessions", json=body).json()

    def get_session(self, session_id: str) -> dict:
        return self._request("get", f"/api/v1/sessions/{session_id}").json()

    def close_session(self, session_id: str) -> dict:
        return self._request("delete", f"/api/v1/sessions/{session_id}").json()

    def select_contributor(
        self, session_id: str, contributor: str, confirm_discard: bool = False
    ) -> dict:
        return self._request(
            "post",
            f"/api/v1/sessions/{session_id}/contributor",
            json={"contributor": contributor, "confirm_discard": confirm_discard},
        ).json()

    def upload_capture(self, session_id: str, audio_bytes: bytes) -> dict:
        """Send a complete client-side recording as one capture."""
        return self._request(
            "post",
            f"/api/v1/sessions/{session_id}/capture",
            content=audio_bytes,
            headers={"Content-Type": "application/octet-stream"},
            timeout=120.0,
        ).json()

    def discard(self, session_id: str, confirm: bool = False) -> dict:
        return self._request(
            "post", f"/api/v1/sessions/{session_id}/discard", json={"confirm": confirm}
        ).json()

    def save(self, session_id: str, confirm_replace: bool = False, advance: bool = False) -> dict:
        return self._request(
            "post",
            f"/api/v1/sessions/{session_id}/save",
            json={"confirm_replace": confirm_replace, "advance": advance},
            timeout=120.0,
        ).json()

    def advance(self, session_id: str, direction: str = "next") -> dict:
        return self._request(
            "post", f"/api/v1/sessions/{session_id}/advance", json={"direction": direction}
        ).json()

    def jump(self, session_id: str, ordinal: int) -> dict:
        return self._request(
            "post", f"/api/v1/sessions/{session_id}/jump", json={"ordinal": ordinal}
        ).json()

    def pending_audio(self, session_id: str) -> bytes | None:
        """Fetch the unsaved recording. Returns None on error."""
        try:
            return self._request("get", f"/api/v1/sessions/{session_id}/pending/audio").content
        except APIError:
            return None

    def committed_audio(self, session_id: str) -> dict:
        return self._request("get", f"/api/v1/sessions/{session_id}/committed").json()

    # -- contributors & sentences --

    def list_contributors(self) -> list[dict]:
        return self._request("get", "/api/v1/contributors").json()

    def create_contributor(self, name: str, display_name: str) -> dict:
        return self._request(
            "post",
            "/api/v1/contributors",
            json={"name": name, "display_name": display_name},
        ).json()

    def delete_contributor(self, name: str) -> dict:
        return self._request("delete", f"/api/v1/contributors/{name}").json()

    def list_sentences(self) -> list[dict]:
        return self._request("get", "/api/v1/sentences").json()

    # -- recordings --

    def list_recordings(self, owner: str | None = None) -> list[dict]:
        params = {"owner": owner} if owner else None
        return self._request("get", "/api/v1/recordings", params=params).json()

    def recording_stats(self) -> list[dict]:
        return self._request("get", "/api/v1/recordings/stats").json()

    def progress(self) -> list[dict]:
        return self._request("get", "/api/v1/progress").json()

    def export_recordings(self, ids: list[int] | None = None) -> bytes:
        """Download the dataset zip for *ids* (all recordings when empty)."""
        return self._request(
            "post",
            "/api/v1/recordings/export",
            json={"ids": ids or []},
            timeout=300.0,
        ).content

    # -- training --

    def train(self, owner: str) -> dict:
        return self._request(
            "post", "/api/v1/train", json={"owner": owner}, timeout=600.0
        ).json()


@st.cache_resource
def get_api_client(base_url: str = "http://localhost:8000") -> APIClient:
    """Return a cached APIClient, keyed by base_url.

    Uses Streamlit's ``cache_resource`` to persist the client across reruns.
    When the base URL changes (e.g. user updates sidebar), a new client
    is created automatically because the cache key includes the parameter.
    """
    return APIClient(base_url=base_url)

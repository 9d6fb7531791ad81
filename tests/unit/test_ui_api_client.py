"""Unit tests for the Streamlit-side APIClient.

Validates that the APIClient calls the right endpoints with the right
bodies, returns parsed JSON (or raw bytes for audio and archives), and
turns transport and HTTP failures into categorised ``APIError``s that
carry the backend's error code.
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from src.ui.api_client import APIClient, APIError


@pytest.fixture
def client():
    """Create an APIClient with a mocked httpx.Client."""
    with patch("src.ui.api_client.httpx.Client") as mock_cls:
        mock_http = MagicMock()
        mock_cls.return_value = mock_http
        api = APIClient(base_url="http://test:8000/")
        api._mock_http = mock_http  # expose for assertions
        yield api


def _ok(payload=None, content: bytes = b"") -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.content = content
    return resp


def _http_error(status: int, body: dict | None = None, text: str = "") -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://test:8000/api")
    if body is not None:
        response = httpx.Response(status, json=body, request=request)
    else:
        response = httpx.Response(status, text=text, request=request)
    return httpx.HTTPStatusError(f"{status}", request=request, response=response)


class TestSessions:
    """Verify session endpoint paths and request bodies."""

    def test_base_url_trailing_slash_stripped(self, client):
        assert client.base_url == "http://test:8000"

    def test_create_session_without_contributor(self, client):
        client._mock_http.post.return_value = _ok({"session_id": "s1"})
        result = client.create_session()
        client._mock_http.post.assert_called_once_with("/api/v1/sessions", json=None)
        assert result["session_id"] == "s1"

    def test_create_session_with_contributor(self, client):
        client._mock_http.post.return_value = _ok({"session_id": "s1"})
        client.create_session("ann")
        client._mock_http.post.assert_called_once_with(
            "/api/v1/sessions", json={"contributor": "ann"}
        )

    def test_select_contributor(self, client):
        client._mock_http.post.return_value = _ok({})
        client.select_contributor("s1", "bob", confirm_discard=True)
        client._mock_http.post.assert_called_once_with(
            "/api/v1/sessions/s1/contributor",
            json={"contributor": "bob", "confirm_discard": True},
        )

    def test_discard_asks_first(self, client):
        """Discarding sends no confirmation unless the caller passes one."""
        client._mock_http.post.return_value = _ok({})
        client.discard("s1")
        client._mock_http.post.assert_called_once_with(
            "/api/v1/sessions/s1/discard", json={"confirm": False}
        )

        client._mock_http.post.reset_mock()
        client.discard("s1", confirm=True)
        client._mock_http.post.assert_called_once_with(
            "/api/v1/sessions/s1/discard", json={"confirm": True}
        )

    def test_save(self, client):
        client._mock_http.post.return_value = _ok({})
        client.save("s1", confirm_replace=True, advance=True)
        args, kwargs = client._mock_http.post.call_args
        assert args == ("/api/v1/sessions/s1/save",)
        assert kwargs["json"] == {"confirm_replace": True, "advance": True}

    def test_upload_capture_sends_raw_bytes(self, client):
        client._mock_http.post.return_value = _ok({})
        client.upload_capture("s1", b"RIFF")
        _, kwargs = client._mock_http.post.call_args
        assert kwargs["content"] == b"RIFF"
        assert kwargs["headers"] == {"Content-Type": "application/octet-stream"}

    def test_advance_and_jump(self, client):
        client._mock_http.post.return_value = _ok({})
        client.advance("s1", "prev")
        client.jump("s1", 4)
        calls = client._mock_http.post.call_args_list
        assert calls[0].args == ("/api/v1/sessions/s1/advance",)
        assert calls[0].kwargs == {"json": {"direction": "prev"}}
        assert calls[1].kwargs == {"json": {"ordinal": 4}}

    def test_pending_audio_returns_bytes(self, client):
        client._mock_http.get.return_value = _ok(content=b"RIFFdata")
        assert client.pending_audio("s1") == b"RIFFdata"

    def test_pending_audio_none_on_error(self, client):
        resp = _ok()
        resp.raise_for_status.side_effect = _http_error(409, {"detail": "x", "code": "ILLEGAL_TRANSITION"})
        client._mock_http.get.return_value = resp
        assert client.pending_audio("s1") is None


class TestAdmin:
    """Verify contributor, recording, export, and training calls."""

    def test_create_contributor(self, client):
        client._mock_http.post.return_value = _ok({"name": "ann"})
        client.create_contributor("ann", "Ann Lee")
        client._mock_http.post.assert_called_once_with(
            "/api/v1/contributors", json={"name": "ann", "display_name": "Ann Lee"}
        )

    def test_list_recordings_owner_filter(self, client):
        client._mock_http.get.return_value = _ok([])
        client.list_recordings()
        client.list_recordings("bob")
        calls = client._mock_http.get.call_args_list
        assert calls[0].kwargs == {"params": None}
        assert calls[1].kwargs == {"params": {"owner": "bob"}}

    def test_export_returns_zip_bytes(self, client):
        client._mock_http.post.return_value = _ok(content=b"PK\x03\x04")
        assert client.export_recordings([1, 2]) == b"PK\x03\x04"
        _, kwargs = client._mock_http.post.call_args
        assert kwargs["json"] == {"ids": [1, 2]}

    def test_export_all_sends_empty_ids(self, client):
        client._mock_http.post.return_value = _ok(content=b"PK")
        client.export_recordings()
        assert client._mock_http.post.call_args.kwargs["json"] == {"ids": []}

    def test_train(self, client):
        client._mock_http.post.return_value = _ok({"owner": "ann", "logs": ["ok"]})
        assert client.train("ann")["logs"] == ["ok"]


class TestErrors:
    """Verify failures become categorised APIErrors."""

    def test_http_error_carries_code(self, client):
        resp = _ok()
        resp.raise_for_status.side_effect = _http_error(
            409, {"detail": "Cannot save while session is idle", "code": "ILLEGAL_TRANSITION"}
        )
        client._mock_http.post.return_value = resp
        with pytest.raises(APIError) as exc_info:
            client.save("s1")
        assert exc_info.value.category == "http"
        assert exc_info.value.code == "ILLEGAL_TRANSITION"
        assert exc_info.value.message == "Cannot save while session is idle"

    def test_http_error_with_text_body(self, client):
        resp = _ok()
        resp.raise_for_status.side_effect = _http_error(502, text="Bad Gateway")
        client._mock_http.get.return_value = resp
        with pytest.raises(APIError) as exc_info:
            client.progress()
        assert exc_info.value.message == "Bad Gateway"
        assert exc_info.value.code is None

    def test_connection_error(self, client):
        client._mock_http.get.side_effect = httpx.ConnectError("refused")
        with pytest.raises(APIError) as exc_info:
            client.list_contributors()
        assert exc_info.value.category == "connection"

    def test_timeout(self, client):
        client._mock_http.post.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(APIError) as exc_info:
            client.train("ann")
        assert exc_info.value.category == "timeout"

    def test_check_connection(self, client):
        client._mock_http.get.return_value = _ok({"status": "ok"})
        assert client.check_connection() == (True, "Connected")
        client._mock_http.get.side_effect = httpx.ConnectError("refused")
        ok, message = client.check_connection()
        assert ok is False
        assert "not running" in message

import json
from typing import Any, Dict, List

import pytest
import requests

from scratch_browser.services.api.client import ScratchApiClient
from scratch_browser.services.errors import (
    NetworkError,
    NotFoundError,
    ServerError,
)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _client() -> ScratchApiClient:
    return ScratchApiClient("http://127.0.0.1:7878", timeout=5)


def test_base_url_normalized():
    assert ScratchApiClient("localhost:7878").base == "http://localhost:7878/"
    assert ScratchApiClient("https://h/").base == "https://h/"


def test_get_path_without_query_uses_default(monkeypatch):
    c = _client()
    seen: List[str] = []
    parts = [{"part_name": "/", "full_path": "/"}]

    def fake_get(url, timeout):  # noqa: ARG001
        seen.append(url)
        return FakeResponse(payload=parts)

    monkeypatch.setattr(c.session, "get", fake_get)
    assert c.get_path() == parts
    assert seen == ["http://127.0.0.1:7878/api/path"]


def test_list_directory_encodes_path(monkeypatch):
    c = _client()
    seen: List[str] = []

    def fake_get(url, timeout):  # noqa: ARG001
        seen.append(url)
        return FakeResponse(payload=[])

    monkeypatch.setattr(c.session, "get", fake_get)
    c.list_directory("/docs/my file/")
    assert seen == ["http://127.0.0.1:7878/api/directory?path=%2Fdocs%2Fmy+file%2F"]


def test_file_url():
    assert (
        _client().file_url("docs/a.txt")
        == "http://127.0.0.1:7878/api/files?path=docs%2Fa.txt"
    )


@pytest.mark.parametrize(
    "status,text,exc_type",
    [
        (404, "File not found", NotFoundError),
        (500, "No such file or directory (os error 2)", NotFoundError),
        (500, "Internal error", ServerError),
        (403, "Access forbidden", ServerError),
    ],
)
def test_error_mapping_on_status(monkeypatch, status, text, exc_type):
    c = _client()
    monkeypatch.setattr(
        c.session, "get", lambda url, timeout: FakeResponse(status, None, text)
    )
    with pytest.raises(exc_type):
        c.list_directory("docs")


def test_server_error_keeps_status_code(monkeypatch):
    c = _client()
    monkeypatch.setattr(
        c.session, "get", lambda url, timeout: FakeResponse(502, None, "bad gateway")
    )
    with pytest.raises(ServerError) as ei:
        c.get_path("docs")
    assert ei.value.status_code == 502


@pytest.mark.parametrize("exc", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_transport_errors_map_to_network_error(monkeypatch, exc):
    c = _client()

    def boom(url, timeout):  # noqa: ARG001
        raise exc

    monkeypatch.setattr(c.session, "get", boom)
    with pytest.raises(NetworkError) as ei:
        c.get_path()
    assert "could not reach the server" in str(ei.value).lower()


def test_malformed_json_is_server_error(monkeypatch):
    c = _client()
    monkeypatch.setattr(
        c.session, "get", lambda url, timeout: FakeResponse(200, None, "<html>")
    )
    with pytest.raises(ServerError):
        c.get_path()


def test_upload_streams_multipart_with_progress(monkeypatch, tmp_path):
    local = tmp_path / "report.txt"
    content = b"x" * 50_000
    local.write_bytes(content)
    c = _client()
    captured: Dict[str, Any] = {}

    def fake_post(url, data, headers, timeout):  # noqa: ARG001
        captured["url"] = url
        captured["headers"] = headers
        captured["len"] = len(data)
        chunks = []
        while True:
            chunk = data.read(8192)
            if not chunk:
                break
            chunks.append(chunk)
        captured["body"] = b"".join(chunks)
        return FakeResponse(200, None, "File report.txt uploaded successfully.")

    monkeypatch.setattr(c.session, "post", fake_post)
    progress: List[tuple] = []
    result = c.upload(str(local), "/docs/", on_progress=lambda s, t: progress.append((s, t)))

    assert result.startswith("File report.txt")
    assert captured["url"] == "http://127.0.0.1:7878/upload"
    assert captured["headers"]["Path"] == "/docs/"
    assert captured["headers"]["Content-Type"].startswith("multipart/form-data; boundary=")
    body = captured["body"]
    assert len(body) == captured["len"]
    assert b'name="file"; filename="report.txt"' in body
    assert content in body
    # Progress is cumulative and ends at the full body length
    sent = [s for s, _ in progress]
    assert sent == sorted(sent)
    assert progress[-1] == (captured["len"], captured["len"])


def test_upload_failure_status_raises(monkeypatch, tmp_path):
    local = tmp_path / "a.bin"
    local.write_bytes(b"1")
    c = _client()
    monkeypatch.setattr(
        c.session,
        "post",
        lambda url, data, headers, timeout: FakeResponse(500, None, "disk full"),
    )
    with pytest.raises(ServerError):
        c.upload(str(local), "/")


def test_upload_connection_error(monkeypatch, tmp_path):
    local = tmp_path / "a.bin"
    local.write_bytes(b"1")
    c = _client()

    def boom(url, data, headers, timeout):  # noqa: ARG001
        raise requests.ConnectionError("reset")

    monkeypatch.setattr(c.session, "post", boom)
    with pytest.raises(NetworkError):
        c.upload(str(local), "/")

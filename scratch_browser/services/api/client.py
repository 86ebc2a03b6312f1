import io
import logging
import mimetypes
import os
import uuid
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlencode

import requests

from scratch_browser.services.errors import (
    NetworkError,
    NotFoundError,
    ServerError,
)

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=logging.ERROR,
    format="%(asctime)s | %(filename)s:%(lineno)s \t [%(levelname)s] %(message)s",
)

ProgressCallback = Callable[[int, int], None]

# Bodies the server sends when the filesystem lookup itself failed
_MISSING_MARKERS = ("not found", "no such file", "os error 2", "cannot find")


class _MultipartBody:
    """Streamed multipart/form-data body with a single file field.

    Exposes `__len__` so requests sends a Content-Length, and `read()` so
    the transport pulls it in blocks; every block handed out is reported to
    `on_progress(bytes_sent, total_bytes)`.
    """

    def __init__(
        self,
        local_path: str,
        field: str = "file",
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.boundary = uuid.uuid4().hex
        filename = os.path.basename(local_path)
        ctype = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        head = (
            f"--{self.boundary}\r\n"
            f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
            f"Content-Type: {ctype}\r\n\r\n"
        ).encode("utf-8")
        tail = f"\r\n--{self.boundary}--\r\n".encode("ascii")
        self._fh = open(local_path, "rb")
        self._parts = [io.BytesIO(head), self._fh, io.BytesIO(tail)]
        self._part = 0
        self.len = len(head) + os.path.getsize(local_path) + len(tail)
        self.sent = 0
        self._on_progress = on_progress

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def __len__(self) -> int:
        return self.len

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self.len
        out = bytearray()
        while len(out) < size and self._part < len(self._parts):
            chunk = self._parts[self._part].read(size - len(out))
            if not chunk:
                self._part += 1
                continue
            out += chunk
        if out:
            self.sent += len(out)
            if self._on_progress is not None:
                self._on_progress(self.sent, self.len)
        return bytes(out)

    def close(self) -> None:
        self._fh.close()

    def __enter__(self) -> "_MultipartBody":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class ScratchApiClient:
    """
    Thin wrapper around requests for the scratch server HTTP API.
    Base is the server origin, e.g.:
        http://127.0.0.1:7878/
    """

    def __init__(
        self,
        base_url: str,
        *,
        verify: bool = True,
        timeout: float = 10.0,
        logger=None,
    ):
        base_url = (base_url or "").strip()
        if base_url and "://" not in base_url:
            base_url = "http://" + base_url
        if not base_url.endswith("/"):
            base_url += "/"
        self.base = base_url
        self.timeout = timeout
        self.logger = logger
        self.session = requests.Session()
        self.session.verify = verify

    # -------- helpers --------
    def _url(self, endpoint: str, path: Optional[str] = None) -> str:
        url = self.base + endpoint.lstrip("/")
        if path is not None:
            url += "?" + urlencode({"path": path})
        return url

    def _log_error(self, msg: str) -> None:
        (self.logger or logger).error(msg)

    def _raise_mapped(self, action: str, exc: Exception) -> None:
        """Map transport exceptions to our typed errors with friendly messages."""
        if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
            raise NetworkError(
                f"Could not reach the server while trying to {action}. "
                "Please verify the server URL and that it is running."
            ) from exc
        raise NetworkError(f"Request error during {action}: {exc}") from exc

    def _check(self, action: str, resp: requests.Response) -> None:
        if resp.ok:
            return
        text = (resp.text or "").strip()
        lower = text.lower()
        if resp.status_code == 404 or any(m in lower for m in _MISSING_MARKERS):
            raise NotFoundError(f"Resource not found while trying to {action}.")
        raise ServerError(
            f"Server error ({resp.status_code}) while trying to {action}: {text}",
            status_code=resp.status_code,
        )

    def _get_json(self, action: str, url: str) -> Any:
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self._log_error(f"GET {url} failed: {e}")
            self._raise_mapped(action, e)
        self._check(action, resp)
        try:
            return resp.json()
        except ValueError as e:
            raise ServerError(
                f"Malformed response while trying to {action}", resp.status_code
            ) from e

    # -------- operations --------
    def get_path(self, path: Optional[str] = None) -> List[Dict[str, Any]]:
        """Breadcrumb parts from root to `path`; the server's start path if None."""
        data = self._get_json("resolve path", self._url("api/path", path))
        if not isinstance(data, list):
            raise ServerError("Unexpected path response shape")
        return data

    def list_directory(self, path: str) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
        """List one level deep under path.

        Depending on the server version this is either a bare list of files
        or `{"paths": [...], "files": [...]}`.
        """
        data = self._get_json("list directory", self._url("api/directory", path))
        if not isinstance(data, (list, dict)):
            raise ServerError("Unexpected directory response shape")
        return data

    def file_url(self, path: str) -> str:
        return self._url("api/files", path)

    def upload(
        self,
        local_path: str,
        remote_dir: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Upload a single file into remote_dir (POST multipart)."""
        with _MultipartBody(local_path, on_progress=on_progress) as body:
            headers = {"Content-Type": body.content_type, "Path": remote_dir}
            try:
                resp = self.session.post(
                    self._url("upload"), data=body, headers=headers, timeout=self.timeout
                )
            except requests.RequestException as e:
                self._log_error(f"Upload of {local_path} failed: {e}")
                self._raise_mapped("upload file", e)
        self._check("upload file", resp)
        return resp.text

import os
import sys
from pathlib import Path

# Ensure root is importable as package base (so `import scratch_browser...` works)
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Make Qt operate without a display during tests
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402

from scratch_browser.services.errors import NotFoundError  # noqa: E402


class FakeScratchApi:
    """In-memory stand-in for ScratchApiClient backed by a dict of directories."""

    def __init__(self, dirs=None, *, combined: bool = False):
        self.base = "http://fake/"
        self.combined = combined
        self.calls = []
        self.uploads = []
        self.progress_steps = [0, 37, 82, 100]
        self.fail_upload = None
        self.dirs = dirs or {
            "/": [_dir("/", "docs"), _file("/", "readme.md", "1.2 KB")],
            "/docs/": [_dir("/docs/", "2024"), _file("/docs/", "a.txt", "10 B")],
            "/docs/2024/": [_file("/docs/2024/", "q1.csv", "4 KB")],
            "/pics/": [],
        }

    def _parts(self, path):
        parts = [{"part_name": "/", "full_path": "/"}]
        full = "/"
        for name in [p for p in path.split("/") if p]:
            full = f"{full}{name}/"
            parts.append({"part_name": name, "full_path": full})
        return parts

    def get_path(self, path=None):
        self.calls.append(("get_path", path))
        path = "/" if path is None else path
        if path not in self.dirs:
            raise NotFoundError(f"Resource not found: {path}")
        return self._parts(path)

    def list_directory(self, path):
        self.calls.append(("list_directory", path))
        if path not in self.dirs:
            raise NotFoundError(f"Resource not found: {path}")
        files = list(self.dirs[path])
        if self.combined:
            return {"paths": self._parts(path), "files": files}
        return files

    def file_url(self, path):
        return f"{self.base}api/files?path={path}"

    def upload(self, local_path, remote_dir, on_progress=None):
        self.calls.append(("upload", local_path, remote_dir))
        total = 10_000_000
        for pct in self.progress_steps:
            if on_progress is not None:
                on_progress(total * pct // 100, total)
        if self.fail_upload is not None:
            raise self.fail_upload
        name = Path(local_path).name
        self.uploads.append((local_path, remote_dir))
        self.dirs.setdefault(remote_dir, []).append(_file(remote_dir, name, "10 MB"))
        return f"File {name} uploaded successfully."


def _dir(parent, name):
    return {
        "name": name,
        "path": f"{parent}{name}/",
        "file_type": "Directory",
        "last_modified": "01/02/2024 10:00:00",
        "size": "4 KB",
    }


def _file(parent, name, size):
    return {
        "name": name,
        "path": f"{parent}{name}",
        "file_type": "File",
        "last_modified": "01/02/2024 10:00:00",
        "size": size,
    }


@pytest.fixture
def fake_api():
    return FakeScratchApi()

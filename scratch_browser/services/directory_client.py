from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from scratch_browser.services.api.client import ScratchApiClient
from scratch_browser.services.errors import NotFoundError, ServerError
from scratch_browser.services.path_model import PathSegment, segments_from_parts

logger = logging.getLogger(__name__)

# Start directory as named by the combined listing endpoint
START_PATH = "./"


class EntryKind(Enum):
    FILE = "File"
    DIRECTORY = "Directory"


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    full_path: str
    kind: EntryKind
    last_modified: str
    size: str

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @classmethod
    def from_json(cls, raw: Dict[str, Any]) -> "DirectoryEntry":
        kind = (
            EntryKind.DIRECTORY
            if str(raw.get("file_type", "")) == EntryKind.DIRECTORY.value
            else EntryKind.FILE
        )
        name = str(raw.get("name", ""))
        return cls(
            name=name,
            full_path=str(raw.get("path") or name),
            kind=kind,
            last_modified=str(raw.get("last_modified") or ""),
            size=str(raw.get("size") if raw.get("size") is not None else ""),
        )


@dataclass(frozen=True)
class Resolution:
    segments: Tuple[PathSegment, ...]
    entries: Tuple[DirectoryEntry, ...]


class DirectoryClient:
    """Resolves paths into breadcrumb chains plus listings.

    `resolve()` does blocking I/O and may run on a worker thread. Request
    ids and `accept()` belong to the GUI thread: responses are applied in id
    order, never arrival order.
    """

    def __init__(self, api: ScratchApiClient) -> None:
        self.api = api
        self._last_issued = 0
        self._last_applied = 0
        self._rejected = 0

    @property
    def last_issued_id(self) -> int:
        return self._last_issued

    @property
    def last_applied_id(self) -> int:
        return self._last_applied

    def next_request_id(self) -> int:
        self._last_issued += 1
        return self._last_issued

    def accept(self, request_id: int) -> bool:
        """Record request_id as applied unless a newer one already was."""
        if request_id < self._last_applied or request_id <= self._rejected:
            logger.debug(
                "Discarding response %s (applied %s, rejected through %s)",
                request_id,
                self._last_applied,
                self._rejected,
            )
            return False
        self._last_applied = request_id
        return True

    def reject(self, request_id: int) -> None:
        """Drop request_id and every older response that arrives later."""
        self._rejected = max(self._rejected, request_id)

    def resolve(self, path: Optional[str] = None) -> Resolution:
        if path is None:
            try:
                parts = self.api.get_path()
            except (NotFoundError, ServerError) as e:
                # Older servers only expose the combined directory listing
                logger.info("Start path lookup failed (%s); listing %r", e, START_PATH)
                parts = None
                path = START_PATH
            else:
                if not parts:
                    raise ServerError("Server returned an empty start path")
                path = str(parts[-1].get("full_path", ""))
            listing = self.api.list_directory(path)
        else:
            listing = self.api.list_directory(path)
            parts = None

        files: List[Dict[str, Any]]
        if isinstance(listing, dict):
            files = list(listing.get("files") or [])
            if parts is None:
                parts = list(listing.get("paths") or [])
        else:
            files = list(listing)
        if not parts:
            parts = self.api.get_path(path)

        segments = segments_from_parts(parts)
        if not segments:
            raise ServerError(f"Server returned no path segments for {path!r}")
        entries = tuple(DirectoryEntry.from_json(f) for f in files)
        return Resolution(segments=segments, entries=entries)

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Tuple

from scratch_browser.services.errors import InvalidPathError, NoParentError

logger = logging.getLogger(__name__)

ROOT_PART_NAME = "/"
ROOT_DISPLAY_NAME = "/root"


@dataclass(frozen=True)
class PathSegment:
    display_name: str
    full_path: str

    @classmethod
    def from_part(cls, part: Dict[str, Any], *, is_root: bool = False) -> "PathSegment":
        """Build a segment from a `{part_name, full_path}` wire object.

        The first part of a chain is always the root; the server reports it
        as "/" (or "." from the combined directory endpoint).
        """
        name = str(part.get("part_name", ""))
        full = str(part.get("full_path", ""))
        if is_root or name == ROOT_PART_NAME:
            return cls(ROOT_DISPLAY_NAME, full or ROOT_PART_NAME)
        return cls(name, full)


def segments_from_parts(parts: Iterable[Dict[str, Any]]) -> Tuple[PathSegment, ...]:
    return tuple(
        PathSegment.from_part(p, is_root=(i == 0)) for i, p in enumerate(parts)
    )


class PathModel:
    """Ordered chain of segments from root (index 0) to the viewed directory.

    The chain is only ever swapped as a whole; `current` is the breadcrumb
    highlight and may point at an ancestor while a click is being resolved.
    """

    def __init__(self) -> None:
        self._segments: Tuple[PathSegment, ...] = ()
        self._current_index: int = -1

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[PathSegment]:
        return iter(self._segments)

    @property
    def segments(self) -> Tuple[PathSegment, ...]:
        return self._segments

    @property
    def depth(self) -> int:
        return len(self._segments)

    @property
    def can_go_up(self) -> bool:
        return len(self._segments) > 1

    @property
    def current(self) -> PathSegment | None:
        if self._current_index < 0:
            return None
        return self._segments[self._current_index]

    def replace(self, segments: Iterable[PathSegment]) -> None:
        chain = tuple(segments)
        if not chain:
            raise InvalidPathError("Cannot replace the path with an empty chain")
        seen = {s.full_path for s in chain}
        if len(seen) != len(chain):
            logger.warning("Server returned duplicate paths in chain: %s", chain)
        self._segments = chain
        self._current_index = len(chain) - 1

    def current_leaf(self) -> PathSegment:
        if not self._segments:
            raise InvalidPathError("No path has been loaded yet")
        return self._segments[-1]

    def index_of(self, segment: PathSegment) -> int:
        for i, s in enumerate(self._segments):
            if s.full_path == segment.full_path:
                return i
        raise InvalidPathError(f"{segment.full_path!r} is not part of the current path")

    def parent_of(self, segment: PathSegment) -> Tuple[PathSegment, ...]:
        idx = self.index_of(segment)
        if idx == 0:
            raise NoParentError("The root directory has no parent")
        return self._segments[:idx]

    def mark_current(self, segment: PathSegment) -> None:
        self._current_index = self.index_of(segment)

    def mark_leaf_current(self) -> None:
        self._current_index = len(self._segments) - 1

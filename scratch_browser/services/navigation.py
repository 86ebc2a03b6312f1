from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from scratch_browser.services.directory_client import (
    DirectoryClient,
    DirectoryEntry,
    Resolution,
)
from scratch_browser.services.errors import InvalidPathError, NoParentError
from scratch_browser.services.path_model import PathModel, PathSegment

logger = logging.getLogger(__name__)


class NavState(Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"


@dataclass(frozen=True)
class NavigationRequest:
    """Effect: resolve `target_path` and report back under `request_id`."""

    request_id: int
    target_path: Optional[str]
    clicked: Optional[PathSegment] = None


class NavigationController:
    """Navigation state machine.

    Event methods return the `NavigationRequest` the caller must execute
    (via `DirectoryClient.resolve`) and feed back through `on_resolved()` or
    `on_failed()`. New requests are issued even while navigating; older
    responses are dropped by the client's request-id gate.
    """

    def __init__(self, client: DirectoryClient, model: PathModel | None = None) -> None:
        self.client = client
        self.model = model if model is not None else PathModel()
        self.state = NavState.IDLE
        self.pending: NavigationRequest | None = None
        self.entries: Tuple[DirectoryEntry, ...] = ()

    @property
    def up_enabled(self) -> bool:
        return self.model.can_go_up

    @property
    def current_path(self) -> Optional[str]:
        if not len(self.model):
            return None
        return self.model.current_leaf().full_path

    def _issue(
        self, target_path: Optional[str], clicked: Optional[PathSegment] = None
    ) -> NavigationRequest:
        req = NavigationRequest(self.client.next_request_id(), target_path, clicked)
        if self.state is NavState.NAVIGATING and self.pending is not None:
            logger.debug(
                "Request %s supersedes %s", req.request_id, self.pending.request_id
            )
        self.state = NavState.NAVIGATING
        self.pending = req
        logger.debug("Navigating to %r (request %s)", target_path, req.request_id)
        return req

    # ---- user events ----
    def on_initial_load(self) -> NavigationRequest:
        return self._issue(None)

    def on_breadcrumb_click(self, segment: PathSegment) -> NavigationRequest:
        try:
            self.model.mark_current(segment)
        except InvalidPathError:
            logger.warning("Clicked segment %r is not in the current path", segment)
        return self._issue(segment.full_path, clicked=segment)

    def on_up_click(self) -> Optional[NavigationRequest]:
        if not len(self.model):
            return None
        try:
            parent = self.model.parent_of(self.model.current_leaf())[-1]
        except NoParentError:
            return None
        return self._issue(parent.full_path, clicked=parent)

    def on_directory_open(self, entry: DirectoryEntry) -> Optional[NavigationRequest]:
        if not entry.is_dir:
            return None
        return self._issue(entry.full_path)

    def reload(self) -> NavigationRequest:
        """Re-fetch the directory the user is heading to.

        While a navigation is pending that is its target, not the leaf still
        on screen; otherwise the reload would overtake the user's click.
        """
        if self.state is NavState.NAVIGATING and self.pending is not None:
            return self._issue(self.pending.target_path, clicked=self.pending.clicked)
        return self._issue(self.current_path)

    # ---- responses ----
    def _is_latest(self, request_id: int) -> bool:
        return self.pending is not None and self.pending.request_id == request_id

    def on_resolved(self, request_id: int, resolution: Resolution) -> bool:
        """Apply a resolution; False when it was superseded and dropped."""
        if not resolution.segments:
            return self.on_failed(
                request_id, InvalidPathError("Server returned an empty path")
            )
        if not self.client.accept(request_id):
            return False
        latest = self._is_latest(request_id)
        # A newer click keeps its highlight if it is still in the new chain
        clicked = self.pending.clicked if self.pending else None
        self.model.replace(resolution.segments)
        self.entries = resolution.entries
        if clicked is not None:
            try:
                self.model.mark_current(clicked)
            except InvalidPathError:
                self.model.mark_leaf_current()
        if latest:
            self.state = NavState.IDLE
            self.pending = None
        logger.debug(
            "Applied request %s: %s (%d entries)",
            request_id,
            self.model.current_leaf().full_path,
            len(self.entries),
        )
        return True

    def on_failed(self, request_id: int, error: Exception) -> bool:
        """Handle a failed resolve; True when the error should be shown."""
        if not self._is_latest(request_id):
            logger.info("Ignoring failure of superseded request %s: %s", request_id, error)
            return False
        self.state = NavState.IDLE
        self.pending = None
        # Older requests still in flight must not land after this failure
        self.client.reject(request_id)
        if len(self.model):
            self.model.mark_leaf_current()
        logger.error("Navigation request %s failed: %s", request_id, error)
        return True

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from scratch_browser.services.errors import (
    NoFileSelectedError,
    UploadInProgressError,
)
from scratch_browser.services.navigation import NavigationController, NavigationRequest

logger = logging.getLogger(__name__)


class UploadStatus(Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class UploadSession:
    file: Optional[str] = None
    target_path: str = ""
    percent_complete: int = 0
    status: UploadStatus = UploadStatus.IDLE
    error: Optional[str] = None


class UploadController:
    """Single upload session bound to the navigation it refreshes."""

    def __init__(self, navigation: NavigationController) -> None:
        self.navigation = navigation
        self.session = UploadSession()

    @property
    def in_progress(self) -> bool:
        return self.session.status is UploadStatus.IN_PROGRESS

    def start(self, file: Optional[str]) -> UploadSession:
        if self.in_progress:
            raise UploadInProgressError("An upload is already in progress")
        if not file or not os.path.isfile(file):
            raise NoFileSelectedError("Select a file to upload first")
        # Destination is fixed now; navigating away must not move the file
        target = self.navigation.model.current_leaf().full_path
        self.session = UploadSession(
            file=file, target_path=target, status=UploadStatus.IN_PROGRESS
        )
        logger.info("Uploading %s to %s", file, target)
        return self.session

    def on_progress(self, bytes_sent: int, total_bytes: int) -> int:
        """Update and return the displayed percentage (never decreasing)."""
        if not self.in_progress:
            return self.session.percent_complete
        if total_bytes <= 0:
            percent = 100
        else:
            percent = max(0, min(100, bytes_sent * 100 // total_bytes))
        if percent > self.session.percent_complete:
            self.session.percent_complete = percent
        return self.session.percent_complete

    def on_succeeded(self) -> NavigationRequest:
        self.session.status = UploadStatus.SUCCEEDED
        self.session.percent_complete = 100
        logger.info(
            "Uploaded %s to %s", self.session.file, self.session.target_path
        )
        # Refresh whatever is being viewed now, not the upload target
        return self.navigation.reload()

    def on_failed(self, error: Exception | str) -> None:
        self.session.status = UploadStatus.FAILED
        self.session.error = str(error)
        logger.error("Upload of %s failed: %s", self.session.file, error)

    def reset(self) -> None:
        if self.in_progress:
            raise UploadInProgressError("Cannot reset while an upload is running")
        self.session = UploadSession()

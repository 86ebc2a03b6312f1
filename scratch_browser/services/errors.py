class BrowserError(Exception):
    """Base exception for browser operations."""


class InvalidPathError(BrowserError):
    """An empty or unknown segment chain was used."""


class NoParentError(BrowserError):
    """The root segment has no parent."""


class NotFoundError(BrowserError):
    """Resource not found (e.g., 404 or deleted while navigating)."""


class NetworkError(BrowserError):
    """Transport failure: connection refused, DNS, timeout."""


class ServerError(BrowserError):
    """Non-2xx response that is not a missing resource."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UploadInProgressError(BrowserError):
    """An upload session is already running."""


class NoFileSelectedError(BrowserError):
    """Upload was submitted without a readable file."""

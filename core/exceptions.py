"""Custom exceptions for the sync client."""

from typing import Optional


class SyncError(Exception):
    """Base exception for sync-related errors."""
    pass


class ApiError(SyncError):
    """Exception raised when the reservation service answers with an error status."""

    def __init__(self, status_code: int, body: str = "", method: Optional[str] = None, path: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path
        target = f" {method} {path}" if method and path else ""
        super().__init__(f"HTTP error{target}: status {status_code}, message: {body}")


class TransportError(SyncError):
    """Exception raised for real-time channel failures."""
    pass


class MessageParseError(SyncError):
    """Exception raised when an inbound message cannot be understood."""
    pass

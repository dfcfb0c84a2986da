from __future__ import annotations


class InboxReaderError(Exception):
    """Base class for errors raised by inbox_reader."""


class Unauthenticated(InboxReaderError):
    """No usable credential could be obtained; interactive sign-in is needed."""


class AuthorizationRevoked(InboxReaderError):
    """A downstream call rejected the access token (HTTP 401/403)."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(message or f"Authorization rejected with HTTP {status}")


class TransientFetchFailure(InboxReaderError):
    """Network or parse failure unrelated to authorization."""

"""Failure taxonomy for calls to the Linkd and Unipile services.

Only TransportFailure is retried. AuthenticationFailure is kept separate so
callers can prompt for new credentials instead of retrying.
"""
from typing import Optional


class LinkdError(Exception):
    """Base class for every error raised by the search client."""


class AuthenticationFailure(LinkdError):
    """Credentials rejected by the remote service (401/403)."""

    def __init__(self, message: str, status: int = 401):
        super().__init__(message)
        self.status = status


class TransportFailure(LinkdError):
    """Connection refused, DNS failure, timeout, 5xx, or channel dropped mid-stream."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class HTTPStatusFailure(LinkdError):
    """Non-auth 4xx response. Not retried."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class ProtocolFailure(LinkdError):
    """Payload that cannot be parsed into the expected shape."""


class StreamError(LinkdError):
    """Server-sent `error` message on the streamed channel.

    str(exc) is the server-supplied message text, unmodified.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

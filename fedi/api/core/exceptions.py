"""Custom exception hierarchy.

Architecture:
    Every error raised by the library derives from FediError. The taxonomy
    separates three families so callers can decide what to do next:
    - Retryable transport failures (TransportError)
    - Terminal rejections that need new user input (RegistrationError,
      AuthorizationError, StreamError)
    - Local decode anomalies that are logged and absorbed (PaginationDecodeError,
      StreamFrameError)

Design Decisions:
    - Context attributes (status, endpoint, last_event_id) instead of parsing
      messages: callers can re-authorize or re-subscribe programmatically
    - `retryable` flag on auth errors: a one-time authorization code must not
      be retried blindly, but a dropped connection before the server saw the
      request may be
"""

from __future__ import annotations


class FediError(Exception):
    """Base exception for all library errors."""

    pass


class CredentialError(FediError):
    """Credential data is missing or blank."""

    pass


class TransportError(FediError):
    """Connection, timeout or TLS failure below the HTTP layer."""

    retryable = True

    def __init__(self, message: str, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class ApiError(FediError):
    """Non-2xx response from the remote API."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        endpoint: str | None = None,
        error: str | None = None,
        description: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint
        self.error = error
        self.description = description


class RateLimitError(ApiError):
    """Remote rate limit still exceeded after the retry budget was spent."""

    def __init__(
        self, message: str, endpoint: str | None = None, retry_after: float = 60.0
    ) -> None:
        super().__init__(message, status=429, endpoint=endpoint)
        self.retry_after = retry_after


class _FlowError(FediError):
    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        endpoint: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.endpoint = endpoint
        self.retryable = retryable


class RegistrationError(_FlowError):
    """Application registration failed.

    Raised on transport failure (retryable), non-2xx status, or a response
    body without client_id/client_secret.
    """

    pass


class AuthorizationError(_FlowError):
    """Authorization code exchange or token refresh failed.

    A rejection (invalid/expired/used code, denied consent, scope mismatch)
    is terminal and requires new user consent. Only errors caused by a
    TransportError are marked retryable.
    """

    pass


class PaginationDecodeError(FediError):
    """A Link header entry could not be parsed.

    Never raised out of a page fetch: it is logged and the entry skipped.
    """

    def __init__(self, entry: str, reason: str) -> None:
        super().__init__(f"malformed link header entry {entry!r}: {reason}")
        self.entry = entry
        self.reason = reason


class StreamFrameError(FediError):
    """A streamed frame could not be turned into an event; the frame is dropped."""

    def __init__(self, reason: str, event_name: str | None = None) -> None:
        super().__init__(f"{reason} (event={event_name!r})" if event_name else reason)
        self.reason = reason
        self.event_name = event_name


class StreamError(FediError):
    """Terminal streaming failure: reconnect budget exhausted or auth rejected."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status: int | None = None,
        last_event_id: str | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status
        self.last_event_id = last_event_id
        self.attempts = attempts

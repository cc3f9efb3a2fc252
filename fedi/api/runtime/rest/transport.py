"""Transport interface consumed by the REST and streaming layers.

Any object with `send()` and `open_stream()` works as a transport: the
aiohttp-backed HTTPClient in production, an in-memory fake in tests.
"""

from __future__ import annotations

import json as jsonlib
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ...core.exceptions import ApiError, RateLimitError


@dataclass(frozen=True)
class HTTPResponse:
    """Status, headers and fully-read body of one HTTP exchange."""

    status: int
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def json(self) -> Any:
        if not self.body:
            return None
        return jsonlib.loads(self.body)

    def error_fields(self) -> tuple[str | None, str | None]:
        """Extract `error` / `error_description` from a JSON error body."""
        try:
            payload = self.json()
        except ValueError:
            return None, None
        if not isinstance(payload, dict):
            return None, None
        return payload.get("error"), payload.get("error_description")

    def raise_for_status(self) -> None:
        if self.ok:
            return
        error, description = self.error_fields()
        if self.status == 429:
            retry_after = self.header("Retry-After")
            try:
                delay = float(retry_after) if retry_after else 60.0
            except ValueError:
                delay = 60.0
            raise RateLimitError(
                f"Rate limit exceeded for {self.url}", endpoint=self.url, retry_after=delay
            )
        raise ApiError(
            f"API error {self.status} for {self.url}: {error or 'no error message'}",
            status=self.status,
            endpoint=self.url,
            error=error,
            description=description,
        )


class Transport(Protocol):
    """Signed HTTP requests plus long-lived streaming bodies.

    Implementations raise TransportError for connect/timeout/TLS failures.
    `open_stream` raises ApiError before yielding if the server answers
    with a non-2xx status, and releases the connection when the iterator is
    closed.
    """

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
    ) -> HTTPResponse: ...

    def open_stream(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...

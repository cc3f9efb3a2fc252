"""aiohttp-backed transport.

Owns one lazily created `aiohttp.ClientSession` and adds the cross-cutting
request policy on top of it:
- a throttle window honoured before every request
- response hooks that may ask for a delay (e.g. from rate-limit headers)
- bounded retries of 429 responses using Retry-After
- mapping of aiohttp/timeout failures to TransportError
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any, Optional, Union

import aiohttp

from ...core.config import ClientConfig, StreamConfig
from ...core.exceptions import TransportError
from .transport import HTTPResponse

logger = logging.getLogger(__name__)

ResponseHook = Callable[
    [aiohttp.ClientResponse], Union[Optional[float], Awaitable[Optional[float]]]
]


def _response_headers(response: aiohttp.ClientResponse) -> dict[str, str]:
    """Flatten response headers, joining repeated Link lines into one value."""
    headers = dict(response.headers)
    links = response.headers.getall("Link", [])
    if len(links) > 1:
        for key in headers:
            if key.lower() == "link":
                headers[key] = ", ".join(links)
    return headers


class HTTPClient:
    """Async HTTP client wrapper implementing the Transport protocol."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        *,
        config: ClientConfig | None = None,
        stream_config: StreamConfig | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._stream_config = stream_config or StreamConfig()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else self._config.request_timeout
        )
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": self._config.user_agent},
            )
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every response; a returned float throttles."""
        self._response_hooks.append(hook)

    def set_throttle(self, delay: float) -> None:
        """Hold back further requests for `delay` seconds (extends, never shortens)."""
        if delay <= 0:
            return
        until = time.time() + delay
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def _wait_throttle(self) -> None:
        if self._throttle_until is None:
            return
        remaining = self._throttle_until - time.time()
        if remaining > 0:
            await asyncio.sleep(remaining)
        self._throttle_until = None

    async def _run_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                result = hook(response)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Response hook {hook!r} failed: {e}")
                continue
            if result:
                self.set_throttle(float(result))

    def _retry_after(self, response: aiohttp.ClientResponse) -> float:
        raw = response.headers.get("Retry-After")
        if raw:
            try:
                return max(float(raw), 0.0)
            except ValueError:
                logger.debug(f"Unparseable Retry-After header: {raw!r}")
        return self._config.rate_limit_fallback_delay

    def _resolve(self, url: str) -> str:
        if self.base_url and not url.startswith("http"):
            return f"{self.base_url}{url}"
        return url

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
    ) -> HTTPResponse:
        """Issue one request and read the whole body.

        Non-2xx statuses are returned, not raised; callers decide what a
        status means for them.
        """
        url = self._resolve(url)
        retries = 0
        while True:
            await self._wait_throttle()
            try:
                async with self.session.request(
                    method.upper(), url, headers=headers, params=params, json=json, data=data
                ) as response:
                    await self._run_hooks(response)
                    if response.status == 429 and retries < self._config.max_rate_limit_retries:
                        retries += 1
                        delay = self._retry_after(response)
                        logger.warning(
                            f"Rate limited on {method.upper()} {url}, retrying in {delay:.2f}s "
                            f"({retries}/{self._config.max_rate_limit_retries})"
                        )
                        self.set_throttle(delay)
                        continue
                    body = await response.read()
                    return HTTPResponse(
                        status=response.status,
                        url=str(response.url),
                        headers=_response_headers(response),
                        body=body,
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise TransportError(
                    f"{method.upper()} {url} failed: {type(e).__name__}: {e}", endpoint=url
                ) from e

    async def open_stream(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield raw body chunks of a long-lived response as they arrive.

        The connection is released when the iterator is exhausted, closed or
        cancelled. A read gap longer than `read_timeout` raises TransportError.
        """
        url = self._resolve(url)
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self._stream_config.connect_timeout,
            sock_read=self._stream_config.read_timeout,
        )
        await self._wait_throttle()
        try:
            async with self.session.get(
                url, headers=headers, params=params, timeout=timeout
            ) as response:
                if not 200 <= response.status < 300:
                    body = await response.read()
                    HTTPResponse(
                        status=response.status,
                        url=str(response.url),
                        headers=_response_headers(response),
                        body=body,
                    ).raise_for_status()
                async for chunk in response.content.iter_any():
                    yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"Stream {url} failed: {type(e).__name__}: {e}", endpoint=url
            ) from e

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

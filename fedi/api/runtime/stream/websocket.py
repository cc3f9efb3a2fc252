"""Websocket frame source for /api/v1/streaming.

Over websockets each message is a JSON object carrying one whole event:

    {"stream": ["user"], "event": "update", "payload": "{...status json...}"}

Messages are converted to StreamFrames so dispatch, backoff and
cancellation are shared with the HTTP streaming source.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus

from ...core.exceptions import ApiError, TransportError
from ...models.events import StreamFrame
from .subscription import FrameSource

logger = logging.getLogger(__name__)


def websocket_url(base_url: str, params: Mapping[str, Any]) -> str:
    """Build the ws(s):// streaming URL for an instance base URL."""
    if base_url.startswith("https://"):
        origin = "wss://" + base_url[len("https://") :]
    elif base_url.startswith("http://"):
        origin = "ws://" + base_url[len("http://") :]
    else:
        origin = base_url
    return f"{origin.rstrip('/')}/api/v1/streaming?{urlencode(dict(params))}"


def parse_message(message: str | bytes) -> StreamFrame | None:
    """Convert one websocket message to a frame; None if it carries no event."""
    try:
        payload = json.loads(message)
    except ValueError:
        logger.warning(f"Ignoring non-JSON stream message: {message!r:.200}")
        return None
    if not isinstance(payload, dict) or not payload.get("event"):
        logger.debug(f"Ignoring stream message without event: {payload!r:.200}")
        return None
    data = payload.get("payload")
    if data is not None and not isinstance(data, str):
        data = json.dumps(data)
    return StreamFrame(event_name=str(payload["event"]), data=data or "")


def websocket_frames(
    url: str,
    *,
    headers: Callable[[], Mapping[str, str]],
    ping_interval: float = 30.0,
    ping_timeout: float = 10.0,
    open_timeout: float = 10.0,
) -> FrameSource:
    """Build a FrameSource reading a websocket streaming connection.

    Websocket streams have no frame ids, so resumption is not attempted.
    """

    async def open_frames(last_event_id: str | None) -> AsyncIterator[StreamFrame | None]:
        try:
            async with websockets.connect(
                url,
                additional_headers=dict(headers()),
                ping_interval=ping_interval,
                ping_timeout=ping_timeout,
                open_timeout=open_timeout,
            ) as websocket:
                async for message in websocket:
                    yield parse_message(message)
        except InvalidStatus as e:
            status = e.response.status_code
            raise ApiError(
                f"Websocket handshake rejected with status {status}",
                status=status,
                endpoint=url.split("?")[0],
            ) from e
        except (ConnectionClosed, InvalidHandshake, OSError, TimeoutError) as e:
            raise TransportError(
                f"Websocket {url.split('?')[0]} failed: {type(e).__name__}: {e}",
                endpoint=url.split("?")[0],
            ) from e

    return open_frames

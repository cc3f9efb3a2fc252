"""Runtime layers: REST pagination and server-push streaming."""

from .rest import HTTPClient, HTTPResponse, Transport, fetch_page, items_iter
from .stream import StreamSubscription

__all__ = [
    "HTTPClient",
    "HTTPResponse",
    "StreamSubscription",
    "Transport",
    "fetch_page",
    "items_iter",
]

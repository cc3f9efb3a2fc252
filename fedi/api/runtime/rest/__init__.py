"""REST runtime: transport, Link header parsing and pagination."""

from .http_client import HTTPClient
from .links import ParsedLinks, parse_link_header
from .pagination import fetch_page, items_iter, next_page, prev_page
from .transport import HTTPResponse, Transport

__all__ = [
    "HTTPClient",
    "HTTPResponse",
    "ParsedLinks",
    "Transport",
    "fetch_page",
    "items_iter",
    "next_page",
    "parse_link_header",
    "prev_page",
]

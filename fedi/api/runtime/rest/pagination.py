"""Cursor-based pagination engine.

Architecture:
    fetch_page() issues one request and returns a Page with its items in
    server order plus the next/previous cursor links parsed from the Link
    header. items_iter() chains fetch_page() calls along `next` links and
    yields items lazily, one page fetch at a time.

Design Decisions:
    - Links are opaque: follow-up requests use the link URL verbatim and
      never rebuild cursor parameters
    - Each items_iter() call starts a fresh page chain; walking again means
      calling it again with the original request
    - Link header problems are logged and skipped; the page's items are
      still returned
    - No client-side sorting or deduplication
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from time import perf_counter
from typing import Any, Protocol, TypeVar

from ...core.exceptions import ApiError
from ...models.page import Page, PageRequest
from .links import parse_link_header
from .telemetry import log_link_header_issue, log_page_fetched, log_page_walk_complete
from .transport import HTTPResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

ItemDecoder = Callable[[Any], T]


class Requester(Protocol):
    """Anything that can issue an authenticated request (AuthenticatedClient)."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> HTTPResponse: ...


def _decode_items(response: HTTPResponse, decode: ItemDecoder | None) -> list[Any]:
    try:
        payload = response.json()
    except ValueError as e:
        raise ApiError(
            f"Paginated response from {response.url} is not valid JSON",
            status=response.status,
            endpoint=response.url,
        ) from e
    if payload is None:
        payload = []
    if not isinstance(payload, list):
        raise ApiError(
            f"Paginated response from {response.url} is not a JSON array",
            status=response.status,
            endpoint=response.url,
        )
    if decode is None:
        return payload
    return [decode(item) for item in payload]


async def fetch_page(
    client: Requester, request: PageRequest, decode: ItemDecoder | None = None
) -> Page[Any]:
    """Fetch one page.

    Args:
        client: Authenticated requester
        request: Page request (relative path or absolute cursor URL)
        decode: Optional item decoder applied to each JSON array element

    Returns:
        Page with items in server order; next/prev are None when the Link
        header is absent or has no such relation

    Raises:
        ApiError: Non-2xx status or a body that is not a JSON array
        TransportError: Connection failure
    """
    start = perf_counter()
    response = await client.request(
        request.method, request.url, params=request.params, json=request.json
    )
    latency_ms = (perf_counter() - start) * 1000.0

    links = parse_link_header(response.header("Link"), base_url=response.url)
    for issue in links.issues:
        log_link_header_issue(endpoint=response.url, issue=issue)

    items = _decode_items(response, decode)
    log_page_fetched(
        endpoint=response.url,
        items=len(items),
        has_next=links.next is not None,
        has_prev=links.prev is not None,
        latency_ms=latency_ms,
    )
    return Page(
        items=items,
        request=request,
        next=links.next,
        prev=links.prev,
        status=response.status,
        headers=response.headers,
        url=response.url,
    )


async def next_page(
    client: Requester, page: Page[Any], decode: ItemDecoder | None = None
) -> Page[Any] | None:
    """Fetch the page after `page`, or None if it is the last one."""
    if page.next is None:
        return None
    return await fetch_page(client, PageRequest.follow(page.next), decode)


async def prev_page(
    client: Requester, page: Page[Any], decode: ItemDecoder | None = None
) -> Page[Any] | None:
    """Fetch the page before `page`, or None if there is none."""
    if page.prev is None:
        return None
    return await fetch_page(client, PageRequest.follow(page.prev), decode)


async def items_iter(
    client: Requester,
    request: PageRequest,
    decode: ItemDecoder | None = None,
    *,
    max_pages: int | None = None,
) -> AsyncIterator[Any]:
    """Yield every item of a paginated resource, fetching pages on demand.

    Empty intermediate pages that still carry a `next` link are skipped
    over. The walk ends when a page has no `next` link or `max_pages`
    pages were fetched.
    """
    page = await fetch_page(client, request, decode)
    pages = 1
    count = 0
    while True:
        for item in page.items:
            count += 1
            yield item

        if page.next is None:
            break
        if max_pages is not None and pages >= max_pages:
            logger.debug(f"Stopping page walk at max_pages={max_pages}")
            break
        if not page.items and page.next.url == (page.url or page.request.url):
            logger.warning(f"Empty page links to itself, stopping walk at {page.next.url}")
            break

        page = await fetch_page(client, PageRequest.follow(page.next), decode)
        pages += 1

    log_page_walk_complete(endpoint=request.url, pages=pages, items=count)

"""Structured logging for pagination.

Records carry their fields in `extra` so JSON log formatters can index
them; the message itself is a stable event name.
"""

from __future__ import annotations

import logging

from ...core.exceptions import PaginationDecodeError

logger = logging.getLogger(__name__)


def log_page_fetched(
    *,
    endpoint: str,
    items: int,
    has_next: bool,
    has_prev: bool,
    latency_ms: float | None = None,
) -> None:
    """Log one fetched page.

    Args:
        endpoint: Request URL without credentials
        items: Number of items on the page
        has_next: Whether a next cursor was present
        has_prev: Whether a previous cursor was present
        latency_ms: Request latency in milliseconds (optional)
    """
    logger.info(
        "page_fetched",
        extra={
            "endpoint": endpoint,
            "items": items,
            "has_next": has_next,
            "has_prev": has_prev,
            "latency_ms": latency_ms,
        },
    )


def log_link_header_issue(*, endpoint: str, issue: PaginationDecodeError) -> None:
    """Log a skipped Link header entry."""
    logger.warning(
        "link_header_issue",
        extra={
            "endpoint": endpoint,
            "entry": issue.entry,
            "reason": issue.reason,
        },
    )


def log_page_walk_complete(*, endpoint: str, pages: int, items: int) -> None:
    """Log the end of an items_iter walk."""
    logger.info(
        "page_walk_complete",
        extra={"endpoint": endpoint, "pages": pages, "items": items},
    )

"""Link response header parsing (RFC 8288 `<url>; rel="next"` grammar).

Only the `next` and `prev`/`previous` relations matter for pagination. A
malformed entry is reported as a PaginationDecodeError in the result and
the remaining entries are still parsed; duplicate relations keep the last
entry.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from ...core.enums import LinkRelation
from ...core.exceptions import PaginationDecodeError
from ...models.page import CursorLink

logger = logging.getLogger(__name__)

_ENTRY_RE = re.compile(r"^<([^>]*)>(.*)$", re.DOTALL)
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class ParsedLinks:
    next: CursorLink | None = None
    prev: CursorLink | None = None
    issues: tuple[PaginationDecodeError, ...] = ()


def _split_entries(header: str) -> list[str]:
    """Split on commas that are outside `<...>` and quoted strings."""
    entries: list[str] = []
    buf: list[str] = []
    in_url = False
    in_quote = False
    for ch in header:
        if ch == "<" and not in_quote:
            in_url = True
        elif ch == ">" and in_url:
            in_url = False
        elif ch == '"' and not in_url:
            in_quote = not in_quote
        elif ch == "," and not in_url and not in_quote:
            entries.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    entries.append("".join(buf))
    return [entry.strip() for entry in entries if entry.strip()]


def _parse_params(entry: str, rest: str) -> dict[str, str]:
    pieces = rest.split(";")
    if pieces[0].strip():
        raise PaginationDecodeError(entry, "unexpected text after target URL")
    params: dict[str, str] = {}
    for piece in pieces[1:]:
        if not piece.strip():
            continue
        key, sep, value = piece.partition("=")
        key = key.strip().lower()
        if not _TOKEN_RE.match(key):
            raise PaginationDecodeError(entry, f"invalid parameter name {key!r}")
        value = value.strip()
        if sep and len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        elif '"' in value:
            raise PaginationDecodeError(entry, "unterminated quoted value")
        params[key] = value
    return params


def parse_link_header(header: str | None, base_url: str | None = None) -> ParsedLinks:
    """Extract the next/previous cursor links from a Link header value.

    Args:
        header: Raw header value; None or empty means no links
        base_url: Request URL used to resolve relative link targets

    Returns:
        ParsedLinks with the links found and any per-entry decode issues
    """
    if not header:
        return ParsedLinks()

    found: dict[LinkRelation, CursorLink] = {}
    issues: list[PaginationDecodeError] = []

    for entry in _split_entries(header):
        try:
            match = _ENTRY_RE.match(entry)
            if not match:
                raise PaginationDecodeError(entry, "target URL must be enclosed in <>")
            url, rest = match.group(1).strip(), match.group(2)
            if not url:
                raise PaginationDecodeError(entry, "empty target URL")
            params = _parse_params(entry, rest)
            rel = params.get("rel")
            if not rel:
                raise PaginationDecodeError(entry, "missing rel parameter")
        except PaginationDecodeError as e:
            issues.append(e)
            continue

        target = urljoin(base_url, url) if base_url else url
        for token in rel.split():
            relation = LinkRelation.from_token(token)
            if relation is None:
                logger.debug(f"Ignoring link relation {token!r}")
                continue
            found[relation] = CursorLink(relation=relation, url=target)

    return ParsedLinks(
        next=found.get(LinkRelation.NEXT),
        prev=found.get(LinkRelation.PREVIOUS),
        issues=tuple(issues),
    )

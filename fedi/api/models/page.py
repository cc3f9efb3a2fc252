"""Pagination value types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..core.enums import LinkRelation

T = TypeVar("T")


@dataclass(frozen=True)
class CursorLink:
    """Opaque URL of a neighbouring page, taken verbatim from a Link header."""

    relation: LinkRelation
    url: str


@dataclass(frozen=True)
class PageRequest:
    """One request against a paginated endpoint.

    `url` may be a path relative to the instance base URL. Links followed
    from a page are absolute and carry their own cursor query, so follow-up
    requests drop `params`.
    """

    url: str
    method: str = "GET"
    params: Mapping[str, Any] | None = None
    json: Mapping[str, Any] | None = None

    @classmethod
    def follow(cls, link: CursorLink) -> PageRequest:
        return cls(url=link.url, method="GET")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results in server order.

    A page without a `next` link is the last page in that direction. `url`
    is the absolute URL the server answered for, query included.
    """

    items: list[T]
    request: PageRequest
    next: CursorLink | None = None
    prev: CursorLink | None = None
    status: int = 200
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""

    @property
    def is_last(self) -> bool:
        return self.next is None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

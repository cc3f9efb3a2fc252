"""Event system for server-push streaming.

Architecture:
    A StreamFrame is one assembled wire message. The dispatcher turns each
    frame into exactly one StreamEvent variant. StreamEvent is a tagged
    union: every variant carries a `type` tag, so callers can branch on the
    tag or use `match` on the class.

Design Decisions:
    - Frozen dataclasses: events are handed to callers and never mutated
    - Explicit Unknown variant: new server-side event names do not end a
      subscription
    - `event_id` on every variant: delivery is at-least-once across
      reconnects, so callers can dedupe on it when the server sends ids
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union

from ..core.enums import StreamEventType


@dataclass(frozen=True)
class StreamFrame:
    """One frame assembled from `event:`/`data:`/`id:` lines."""

    event_name: str
    data: str = ""
    id: Optional[str] = None


@dataclass(frozen=True)
class Update:
    """A new status on the subscribed timeline."""

    type: ClassVar[StreamEventType] = StreamEventType.UPDATE

    entity: Any
    event_id: Optional[str] = None


@dataclass(frozen=True)
class Notification:
    """A notification for the authorized user."""

    type: ClassVar[StreamEventType] = StreamEventType.NOTIFICATION

    entity: Any
    event_id: Optional[str] = None


@dataclass(frozen=True)
class Delete:
    """A status was deleted; `status_id` is the raw data payload."""

    type: ClassVar[StreamEventType] = StreamEventType.DELETE

    status_id: str
    event_id: Optional[str] = None


@dataclass(frozen=True)
class FiltersChanged:
    """The user's filters changed; cached filter state should be refetched."""

    type: ClassVar[StreamEventType] = StreamEventType.FILTERS_CHANGED

    event_id: Optional[str] = None


@dataclass(frozen=True)
class Unknown:
    """An event name this client does not recognize, kept verbatim."""

    type: ClassVar[StreamEventType] = StreamEventType.UNKNOWN

    event_name: str
    data: str
    event_id: Optional[str] = None


StreamEvent = Union[Update, Notification, Delete, FiltersChanged, Unknown]

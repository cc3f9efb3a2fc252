"""Core enumerations shared by the REST and streaming layers.

Key Types:
    - StreamTimeline: Named server-push streams and their URL paths
    - StreamEventType: Wire event names carried by `event:` lines
    - LinkRelation: Cursor directions parsed from Link headers
"""

from enum import Enum
from typing import Optional


class StreamTimeline(str, Enum):
    """Streams exposed under /api/v1/streaming.

    Values are the stream names used by the websocket API; `path` gives the
    HTTP endpoint suffix.
    """

    USER = "user"
    USER_NOTIFICATION = "user:notification"
    PUBLIC = "public"
    PUBLIC_MEDIA = "public:media"
    PUBLIC_LOCAL = "public:local"
    PUBLIC_LOCAL_MEDIA = "public:local:media"
    PUBLIC_REMOTE = "public:remote"
    PUBLIC_REMOTE_MEDIA = "public:remote:media"
    HASHTAG = "hashtag"
    HASHTAG_LOCAL = "hashtag:local"
    LIST = "list"
    DIRECT = "direct"

    @property
    def path(self) -> str:
        """HTTP path below /api/v1/streaming/."""
        return self.value.replace(":", "/")

    @property
    def required_param(self) -> Optional[str]:
        """Query parameter the stream cannot be opened without."""
        if self in (StreamTimeline.HASHTAG, StreamTimeline.HASHTAG_LOCAL):
            return "tag"
        if self is StreamTimeline.LIST:
            return "list"
        return None

    def __str__(self) -> str:
        return self.value


class StreamEventType(str, Enum):
    """Event names the stream dispatcher recognizes."""

    UPDATE = "update"
    NOTIFICATION = "notification"
    DELETE = "delete"
    FILTERS_CHANGED = "filters_changed"
    UNKNOWN = "unknown"

    @classmethod
    def from_wire(cls, name: str) -> "StreamEventType":
        """Map a wire event name to its type; anything unrecognized is UNKNOWN."""
        try:
            member = cls(name)
        except ValueError:
            return cls.UNKNOWN
        return member


class LinkRelation(str, Enum):
    """Cursor directions of a paginated resource."""

    NEXT = "next"
    PREVIOUS = "previous"

    @classmethod
    def from_token(cls, token: str) -> Optional["LinkRelation"]:
        """Parse a rel token (case-insensitive); `prev` and `previous` are aliases."""
        lowered = token.strip().lower()
        if lowered == "next":
            return cls.NEXT
        if lowered in ("prev", "previous"):
            return cls.PREVIOUS
        return None

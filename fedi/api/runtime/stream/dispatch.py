"""Frame-to-event dispatch.

Each wire event name maps to one StreamEvent variant; anything else becomes
Unknown. Entity payloads are handed to an EntityDecoder, so this module
never needs to know the fields of a status or notification.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pydantic import BaseModel

from ...core.enums import StreamEventType
from ...core.exceptions import StreamFrameError
from ...models.events import (
    Delete,
    FiltersChanged,
    Notification,
    StreamEvent,
    StreamFrame,
    Unknown,
    Update,
)

logger = logging.getLogger(__name__)


class EntityDecoder(Protocol):
    """Turns a raw `data:` payload into a domain object.

    Implementations raise ValueError (json/pydantic errors qualify) when
    the payload cannot be decoded.
    """

    def decode_status(self, data: str) -> Any: ...

    def decode_notification(self, data: str) -> Any: ...


class JsonEntityDecoder:
    """Decode entities to plain parsed-JSON dicts."""

    def decode_status(self, data: str) -> Any:
        return json.loads(data)

    def decode_notification(self, data: str) -> Any:
        return json.loads(data)


class ModelEntityDecoder:
    """Decode entities into caller-supplied Pydantic models."""

    def __init__(
        self,
        status_model: type[BaseModel],
        notification_model: type[BaseModel],
    ) -> None:
        self.status_model = status_model
        self.notification_model = notification_model

    def decode_status(self, data: str) -> Any:
        return self.status_model.model_validate_json(data)

    def decode_notification(self, data: str) -> Any:
        return self.notification_model.model_validate_json(data)


def decode_event(frame: StreamFrame, decoder: EntityDecoder) -> StreamEvent:
    """Decode one frame into its StreamEvent variant.

    Raises:
        StreamFrameError: The payload of a recognized event is missing or
            cannot be decoded. Unknown event names never raise.
    """
    event_type = StreamEventType.from_wire(frame.event_name)

    if event_type is StreamEventType.FILTERS_CHANGED:
        return FiltersChanged(event_id=frame.id)

    if event_type is StreamEventType.UNKNOWN:
        logger.debug(f"Unrecognized stream event {frame.event_name!r}")
        return Unknown(event_name=frame.event_name, data=frame.data, event_id=frame.id)

    if not frame.data:
        raise StreamFrameError(f"missing data for {event_type.value} event", frame.event_name)

    if event_type is StreamEventType.DELETE:
        return Delete(status_id=frame.data.strip(), event_id=frame.id)

    try:
        if event_type is StreamEventType.UPDATE:
            return Update(entity=decoder.decode_status(frame.data), event_id=frame.id)
        return Notification(entity=decoder.decode_notification(frame.data), event_id=frame.id)
    except ValueError as e:
        raise StreamFrameError(f"could not decode payload: {e}", frame.event_name) from e

"""Server-push streaming: framing, dispatch and reconnecting subscriptions."""

from .dispatch import EntityDecoder, JsonEntityDecoder, ModelEntityDecoder, decode_event
from .framing import FrameDecoder, LineBuffer
from .subscription import FrameSource, StreamSubscription, http_frames
from .websocket import websocket_frames, websocket_url

__all__ = [
    "EntityDecoder",
    "FrameDecoder",
    "FrameSource",
    "JsonEntityDecoder",
    "LineBuffer",
    "ModelEntityDecoder",
    "StreamSubscription",
    "decode_event",
    "http_frames",
    "websocket_frames",
    "websocket_url",
]

"""Incremental framing of a line-oriented server-push body.

Bytes arrive in arbitrary chunks. LineBuffer turns them into complete lines
(decoding UTF-8 incrementally, so a multi-byte character split across two
reads is reassembled), and FrameDecoder folds lines into StreamFrames:

    event: update        sets the pending event name
    data: {...}          appends to the pending data (joined with newlines)
    id: 1234             sets the pending frame id
    <blank line>         dispatches the pending frame and resets
    :thump               comment, ignored (as is any other line)

The output only depends on the byte sequence, never on where it was split.
"""

from __future__ import annotations

import codecs
import logging

from ...core.exceptions import StreamFrameError
from ...models.events import StreamFrame

logger = logging.getLogger(__name__)


class LineBuffer:
    """Split a byte stream into `\\n`-terminated lines, dropping a trailing `\\r`."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete line."""
        return self._pending

    def feed(self, chunk: bytes) -> list[str]:
        text = self._pending + self._decoder.decode(chunk)
        *lines, self._pending = text.split("\n")
        return [line[:-1] if line.endswith("\r") else line for line in lines]


def _field_value(line: str, prefix: str) -> str:
    value = line[len(prefix) :]
    return value[1:] if value.startswith(" ") else value


class FrameDecoder:
    """Assemble StreamFrames from lines and remember the last seen frame id."""

    def __init__(self, last_event_id: str | None = None) -> None:
        self.last_event_id = last_event_id
        self._lines = LineBuffer()
        self._event_name = ""
        self._data: list[str] = []
        self._id: str | None = None
        self._dirty = False

    @property
    def has_partial(self) -> bool:
        """True if an incomplete line or frame is buffered."""
        return self._dirty or bool(self._lines.pending)

    def _reset(self) -> None:
        self._event_name = ""
        self._data = []
        self._id = None
        self._dirty = False

    def feed_line(self, line: str) -> StreamFrame | None:
        """Consume one line; return a frame when a blank line completes one.

        Raises:
            StreamFrameError: A blank line terminated a frame that had data
                but no event name. The pending state is reset first.
        """
        if line == "":
            if not self._dirty:
                return None
            event_name, data, frame_id = self._event_name, self._data, self._id
            self._reset()
            if not event_name:
                if data:
                    raise StreamFrameError("frame has data but no event name")
                return None
            if frame_id is not None:
                self.last_event_id = frame_id
            return StreamFrame(event_name=event_name, data="\n".join(data), id=frame_id)

        if line.startswith("event:"):
            self._event_name = _field_value(line, "event:").strip()
            self._dirty = True
        elif line.startswith("data:"):
            self._data.append(_field_value(line, "data:"))
            self._dirty = True
        elif line.startswith("id:"):
            self._id = _field_value(line, "id:").strip() or None
            self._dirty = True
        # Comments (":thump") and unknown fields are ignored
        return None

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        """Consume raw bytes; return every frame they complete.

        Malformed frames are logged and dropped; decoding continues.
        """
        frames: list[StreamFrame] = []
        for line in self._lines.feed(chunk):
            try:
                frame = self.feed_line(line)
            except StreamFrameError as e:
                logger.warning(f"Dropping malformed stream frame: {e}")
                continue
            if frame is not None:
                frames.append(frame)
        return frames

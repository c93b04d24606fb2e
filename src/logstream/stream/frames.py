# src/logstream/stream/frames.py
"""Incremental decoder for text event-stream framing.

Each event is one or more ``data: <payload>`` lines followed by a blank
line. Bytes arrive in arbitrary chunks, so the decoder is an explicit
buffering state machine:

    feed(chunk) -> append to buffer
                -> extract every complete line (CRLF, LF or CR)
                -> blank line: dispatch the accumulated data lines
                -> anything else: accumulate or ignore
                -> leftover partial line stays buffered

Frames are dispatched as soon as their terminator arrives; nothing waits
for the end of the stream. An unterminated trailing frame is discarded at
end-of-stream, as the event-stream convention requires.
"""

import re

from logstream.contracts.errors import BatchDecodeError

_LINE_END = re.compile(rb"\r\n|\r|\n")

# 16 MiB; one frame is the most the decoder ever holds
DEFAULT_MAX_FRAME_BYTES = 16 * 1024 * 1024


class FrameDecoder:
    """Turns an unbounded byte stream into complete frame payloads.

    Thread Safety:
        NOT thread-safe. One decoder belongs to one session.

    Example:
        decoder = FrameDecoder()
        decoder.feed(b'data: {"batch"')       # -> []
        decoder.feed(b':[]}\\n\\n')              # -> [b'{"batch":[]}']
    """

    def __init__(self, max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES) -> None:
        if max_frame_bytes < 1:
            raise ValueError(f"max_frame_bytes must be >= 1, got {max_frame_bytes}")
        self._max_frame_bytes = max_frame_bytes
        self._buffer = bytearray()
        self._data_lines: list[bytes] = []
        self._data_size = 0
        self._skip_lf = False

    @property
    def pending(self) -> int:
        """Bytes received but not yet dispatched as part of a frame."""
        return len(self._buffer) + self._data_size

    def feed(self, chunk: bytes) -> list[bytes]:
        """Consume a chunk and return every frame it completes, in order.

        Raises:
            BatchDecodeError: If a single frame grows past max_frame_bytes
        """
        self._buffer.extend(chunk)
        frames: list[bytes] = []
        while (line := self._next_line()) is not None:
            if line:
                self._process_line(line)
                continue
            frame = self._dispatch()
            if frame:
                frames.append(frame)
        if self.pending > self._max_frame_bytes:
            raise BatchDecodeError(f"frame exceeds {self._max_frame_bytes} bytes without a terminator")
        return frames

    def _next_line(self) -> bytes | None:
        if self._skip_lf:
            if not self._buffer:
                return None
            if self._buffer[0] == 0x0A:
                del self._buffer[0]
            self._skip_lf = False
        match = _LINE_END.search(self._buffer)
        if match is None:
            return None
        # A trailing CR may be the first half of a CRLF split across chunks
        if match.group() == b"\r" and match.end() == len(self._buffer):
            self._skip_lf = True
        line = bytes(self._buffer[: match.start()])
        del self._buffer[: match.end()]
        return line

    def _process_line(self, line: bytes) -> None:
        if line.startswith(b":"):
            # comment / keep-alive
            return
        name, _, value = line.partition(b":")
        if value.startswith(b" "):
            value = value[1:]
        if name == b"data":
            self._data_lines.append(value)
            self._data_size += len(value) + 1
        # event, id, retry and unknown fields carry nothing we consume

    def _dispatch(self) -> bytes:
        frame = b"\n".join(self._data_lines)
        self._data_lines = []
        self._data_size = 0
        return frame

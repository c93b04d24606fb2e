# src/logstream/stream/sinks.py
"""Output sinks for decoded envelope lines."""

import threading
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """Append-only byte sink.

    Each write() call must be atomic with respect to other writers; the
    consumer writes exactly one newline-terminated line per call.
    """

    def write(self, data: bytes, /) -> int: ...


class LockedSink:
    """Serializes concurrent writers onto one binary stream.

    Flushes after every write so each line reaches the terminal (or pipe)
    as soon as it is decoded.

    Example:
        sink = LockedSink(sys.stdout.buffer)
        sink.write(b'{"log":{"payload":"hello"}}\\n')
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def write(self, data: bytes, /) -> int:
        with self._lock:
            written = self._stream.write(data)
            self._stream.flush()
        return len(data) if written is None else written

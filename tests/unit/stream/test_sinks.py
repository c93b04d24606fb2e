# tests/unit/stream/test_sinks.py
"""Tests for LockedSink."""

import io
import threading

from logstream.stream.sinks import LockedSink, OutputSink


class UnbufferedCounter:
    """Stream whose write() returns None, like some pipe wrappers."""

    def __init__(self) -> None:
        self.data = bytearray()
        self.flushes = 0

    def write(self, b: bytes) -> None:
        self.data.extend(b)

    def flush(self) -> None:
        self.flushes += 1


class TestLockedSink:
    def test_writes_and_flushes(self) -> None:
        stream = UnbufferedCounter()
        sink = LockedSink(stream)  # type: ignore[arg-type]

        assert sink.write(b"line\n") == 5
        assert bytes(stream.data) == b"line\n"
        assert stream.flushes == 1

    def test_returns_stream_count(self) -> None:
        buffer = io.BytesIO()

        assert LockedSink(buffer).write(b"abc") == 3
        assert buffer.getvalue() == b"abc"

    def test_satisfies_protocol(self) -> None:
        assert isinstance(LockedSink(io.BytesIO()), OutputSink)

    def test_concurrent_lines_never_interleave(self) -> None:
        buffer = io.BytesIO()
        sink = LockedSink(buffer)
        lines = {name: f"{name * 50}\n".encode() for name in "abcd"}

        def writer(line: bytes) -> None:
            for _ in range(200):
                sink.write(line)

        threads = [threading.Thread(target=writer, args=(line,)) for line in lines.values()]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        written = buffer.getvalue().splitlines(keepends=True)
        assert len(written) == 800
        assert set(written) == set(lines.values())

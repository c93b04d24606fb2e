# tests/unit/stream/test_frames.py
"""Unit tests for the incremental event-stream frame decoder.

Tests cover:
- Frames are emitted as soon as their terminator arrives
- Partial frames stay buffered across chunks
- Every line-ending convention, including CRLF split across chunks
- Comments, non-data fields and heartbeats are ignored
- Property: any chunking of a stream yields the same frames
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from logstream.contracts import BatchDecodeError
from logstream.stream.frames import FrameDecoder


def feed_all(decoder: FrameDecoder, chunks: list[bytes]) -> list[bytes]:
    frames: list[bytes] = []
    for chunk in chunks:
        frames.extend(decoder.feed(chunk))
    return frames


class TestFrameDecoderBasics:
    def test_single_complete_frame(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b'data: {"batch":[]}\n\n') == [b'{"batch":[]}']
        assert decoder.pending == 0

    def test_partial_frame_stays_buffered(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b'data: {"bat') == []
        assert decoder.pending > 0
        assert decoder.feed(b'ch":[]}\n') == []
        assert decoder.feed(b"\n") == [b'{"batch":[]}']
        assert decoder.pending == 0

    def test_multiple_frames_in_one_chunk_in_order(self) -> None:
        decoder = FrameDecoder()

        frames = decoder.feed(b"data: one\n\ndata: two\n\ndata: thr")

        assert frames == [b"one", b"two"]
        assert decoder.feed(b"ee\n\n") == [b"three"]

    def test_multiline_data_joined_with_newline(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b"data: first\ndata: second\n\n") == [b"first\nsecond"]

    def test_only_one_leading_space_stripped(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b"data:  padded\n\ndata:tight\n\n") == [b" padded", b"tight"]

    @pytest.mark.parametrize("terminator", [b"\n\n", b"\r\n\r\n", b"\r\r"])
    def test_line_ending_conventions(self, terminator: bytes) -> None:
        decoder = FrameDecoder()
        line_end = terminator[: len(terminator) // 2]

        assert decoder.feed(b"data: a" + line_end + b"data: b" + terminator) == [b"a\nb"]

    def test_crlf_split_across_chunks(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b"data: x\r") == []
        assert decoder.feed(b"\n\r") == [b"x"]
        assert decoder.feed(b"\ndata: y\r\n\r\n") == [b"y"]

    def test_cr_only_terminator_dispatches_without_waiting(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b"data: x\r\r") == [b"x"]

    def test_comments_and_other_fields_ignored(self) -> None:
        decoder = FrameDecoder()

        frames = decoder.feed(b": keep-alive\nevent: batch\nid: 7\nretry: 1000\ndata: payload\n\n")

        assert frames == [b"payload"]

    def test_frames_without_data_are_skipped(self) -> None:
        decoder = FrameDecoder()

        assert decoder.feed(b": heartbeat\n\n\n\nevent: ping\n\n") == []

    def test_oversized_frame_rejected(self) -> None:
        decoder = FrameDecoder(max_frame_bytes=16)

        with pytest.raises(BatchDecodeError, match="exceeds 16 bytes"):
            decoder.feed(b"data: " + b"x" * 32)

    def test_invalid_max_frame_bytes(self) -> None:
        with pytest.raises(ValueError, match="max_frame_bytes"):
            FrameDecoder(max_frame_bytes=0)


# =============================================================================
# Property-based tests
# =============================================================================

payloads = st.lists(
    st.binary(min_size=1, max_size=40).filter(lambda b: b"\r" not in b and b"\n" not in b),
    min_size=1,
    max_size=6,
)


@st.composite
def chunked(draw: st.DrawFn, stream: bytes) -> list[bytes]:
    """Split a byte string at arbitrary boundaries."""
    cuts = sorted(draw(st.lists(st.integers(min_value=0, max_value=len(stream)), max_size=12)))
    bounds = [0, *cuts, len(stream)]
    return [stream[start:end] for start, end in zip(bounds, bounds[1:], strict=False)]


class TestFrameDecoderProperties:
    @given(data=st.data(), frames=payloads, line_end=st.sampled_from([b"\n", b"\r\n", b"\r"]))
    def test_chunk_boundaries_do_not_matter(self, data: st.DataObject, frames: list[bytes], line_end: bytes) -> None:
        stream = b"".join(b"data: " + frame + line_end + line_end for frame in frames)
        chunks = data.draw(chunked(stream))

        decoded = feed_all(FrameDecoder(), chunks)

        assert decoded == frames

    @given(frames=payloads)
    def test_byte_at_a_time(self, frames: list[bytes]) -> None:
        stream = b"".join(b"data: " + frame + b"\n\n" for frame in frames)
        decoder = FrameDecoder()

        decoded = feed_all(decoder, [stream[i : i + 1] for i in range(len(stream))])

        assert decoded == frames
        assert decoder.pending == 0

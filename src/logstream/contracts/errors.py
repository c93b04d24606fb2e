# src/logstream/contracts/errors.py
"""Error taxonomy for selector construction and streaming sessions.

Validation errors are raised synchronously to the immediate caller before
any request is built. Stream errors describe why a session failed; the
consumer returns them inside a SessionResult instead of raising them across
the background worker boundary.
"""

from collections.abc import Sequence


class InvalidMetricTypeError(ValueError):
    """Raised when one or more metric-type tokens are not in the vocabulary.

    Every offending token is reported, in the order it was encountered.

    Attributes:
        invalid: The rejected tokens, in input order
    """

    def __init__(self, invalid: Sequence[str]) -> None:
        self.invalid = tuple(invalid)
        super().__init__(f"invalid metric type(s): {', '.join(self.invalid)}")


class StreamError(Exception):
    """Base class for failures that terminate a streaming session."""


class StreamTransportError(StreamError):
    """Connection could not be established or failed mid-read."""


class BatchDecodeError(StreamError):
    """A frame payload could not be decoded as an envelope batch.

    Attributes:
        payload: The offending frame payload (truncated for display)
    """

    _PREVIEW_LIMIT = 200

    def __init__(self, message: str, payload: bytes | str | None = None) -> None:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        if payload is not None and len(payload) > self._PREVIEW_LIMIT:
            payload = payload[: self._PREVIEW_LIMIT] + "..."
        self.payload = payload
        super().__init__(message)


class SinkWriteError(StreamError):
    """The output sink rejected a write."""


class AppLookupError(Exception):
    """The app-resolution collaborator could not list apps.

    Never fatal to a session: lookup failures fall back to passing source
    tokens through unchanged.
    """

# src/logstream/stream/consumer.py
"""Streaming consumption of the gateway event stream.

Pipeline for one session:

    options -> selector builder -> query params -> URL
            -> transport.send(stream=True)
            -> byte chunks -> FrameDecoder -> EnvelopeBatch -> one line per envelope -> sink

Failure policy:
- Transport error (connect or mid-read): session FAILED, reported once
- Non-success status: body forwarded to the sink verbatim, session REJECTED
- Malformed frame: session FAILED; the frame is never skipped
- Sink error: session FAILED

This module never logs and never exits the process. Every outcome is
returned as a SessionResult for the orchestration layer to present.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

import httpx

from logstream.contracts.enums import SessionOutcome
from logstream.contracts.envelopes import EnvelopeBatch
from logstream.contracts.errors import SinkWriteError, StreamError, StreamTransportError
from logstream.contracts.results import SessionResult
from logstream.stream.apps import AppProvider, lookup_apps, resolve_source_ids
from logstream.stream.frames import DEFAULT_MAX_FRAME_BYTES, FrameDecoder
from logstream.stream.query import build_query_params, build_stream_url
from logstream.stream.request_factory import make_request, parse_metric_types
from logstream.stream.sinks import OutputSink

# =============================================================================
# Options
# =============================================================================


@dataclass(frozen=True, slots=True)
class StreamOptions:
    """Filters for one streaming session. Empty means unfiltered."""

    source_ids: tuple[str, ...] = ()
    metric_types: tuple[str, ...] = ()
    shard_id: str | None = None


StreamOption = Callable[[StreamOptions], StreamOptions]


def with_source_ids(source_ids: Iterable[str]) -> StreamOption:
    """Scope the stream to these sources (app names or source ids)."""
    values = tuple(source_ids)
    return lambda options: replace(options, source_ids=values)


def with_metric_types(metric_types: Iterable[str]) -> StreamOption:
    """Request only these metric types."""
    values = tuple(metric_types)
    return lambda options: replace(options, metric_types=values)


def with_shard_id(shard_id: str) -> StreamOption:
    """Join a shard so the server splits the stream across readers."""
    return lambda options: replace(options, shard_id=shard_id)


def apply_options(options: Iterable[StreamOption]) -> StreamOptions:
    result = StreamOptions()
    for option in options:
        result = option(result)
    return result


# =============================================================================
# Consumer
# =============================================================================


class _Progress:
    """Per-session counters, folded into the SessionResult."""

    __slots__ = ("envelopes_written", "frames_decoded", "status_code")

    def __init__(self) -> None:
        self.status_code: int | None = None
        self.frames_decoded = 0
        self.envelopes_written = 0

    def result(self, outcome: SessionOutcome, error: StreamError | None = None) -> SessionResult:
        return SessionResult(
            outcome=outcome,
            status_code=self.status_code,
            frames_decoded=self.frames_decoded,
            envelopes_written=self.envelopes_written,
            error=error,
        )


class StreamConsumer:
    """Reads one event stream and writes one line per envelope to a sink.

    The client is injected already authenticated and may be shared between
    sessions (httpx.Client is thread-safe). The sink is treated as an
    opaque, thread-safe append target.

    Cancellation:
        The cancel event is checked before every read and before every
        line write. An in-flight blocking read is not interrupted; the
        session ends at the next check, or immediately if the caller closes
        the client (a read error after cancellation counts as cancelled).
        Records already written stay written.
    """

    def __init__(
        self,
        client: httpx.Client,
        sink: OutputSink,
        *,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
    ) -> None:
        self._client = client
        self._sink = sink
        self._max_frame_bytes = max_frame_bytes

    def consume(self, request: httpx.Request, cancel_event: threading.Event | None = None) -> SessionResult:
        """Run one session to completion.

        Args:
            request: The fully built read request
            cancel_event: Set by the caller to stop the session

        Returns:
            How the session ended, with delivery counters
        """
        cancel = cancel_event if cancel_event is not None else threading.Event()
        progress = _Progress()
        if cancel.is_set():
            return progress.result(SessionOutcome.CANCELLED)

        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            error = StreamTransportError(f"failed to connect to {request.url.host}: {e}")
            error.__cause__ = e
            return progress.result(SessionOutcome.FAILED, error)

        try:
            progress.status_code = response.status_code
            if not response.is_success:
                return self._forward_rejection(response, progress)
            return self._read_loop(response, cancel, progress)
        finally:
            response.close()

    def _forward_rejection(self, response: httpx.Response, progress: _Progress) -> SessionResult:
        # Error payloads are plain JSON objects, not event-stream frames
        try:
            body = response.read()
        except httpx.HTTPError as e:
            return progress.result(SessionOutcome.FAILED, _read_error(e))
        try:
            self._write(body)
        except SinkWriteError as e:
            return progress.result(SessionOutcome.FAILED, e)
        return progress.result(SessionOutcome.REJECTED)

    def _read_loop(self, response: httpx.Response, cancel: threading.Event, progress: _Progress) -> SessionResult:
        decoder = FrameDecoder(max_frame_bytes=self._max_frame_bytes)
        chunks = response.iter_bytes()

        while True:
            if cancel.is_set():
                return progress.result(SessionOutcome.CANCELLED)
            try:
                chunk = next(chunks, None)
            except httpx.HTTPError as e:
                # Closing the client is how a caller aborts a blocked read
                if cancel.is_set():
                    return progress.result(SessionOutcome.CANCELLED)
                return progress.result(SessionOutcome.FAILED, _read_error(e))
            if chunk is None:
                return progress.result(SessionOutcome.COMPLETED)

            try:
                for payload in decoder.feed(chunk):
                    batch = EnvelopeBatch.from_json(payload)
                    progress.frames_decoded += 1
                    for envelope in batch:
                        if cancel.is_set():
                            return progress.result(SessionOutcome.CANCELLED)
                        self._write(envelope.to_json().encode("utf-8") + b"\n")
                        progress.envelopes_written += 1
            except StreamError as e:
                return progress.result(SessionOutcome.FAILED, e)

    def _write(self, data: bytes) -> None:
        try:
            self._sink.write(data)
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"failed to write to output: {e}") from e


def _read_error(exc: httpx.HTTPError) -> StreamTransportError:
    error = StreamTransportError(f"stream read failed: {exc}")
    error.__cause__ = exc
    return error


# =============================================================================
# Top-level operation
# =============================================================================


def build_read_request(
    host: str,
    client: httpx.Client,
    app_provider: AppProvider | None,
    options: StreamOptions,
) -> httpx.Request:
    """Validate filters, resolve source ids and build the read request.

    Raises:
        InvalidMetricTypeError: If any metric-type filter token is invalid
        ValueError: If host is not a usable gateway address
    """
    # Fail on bad metric types before touching the app provider
    parse_metric_types(options.metric_types)

    source_ids: list[str] = list(options.source_ids)
    if source_ids:
        lookup = lookup_apps(app_provider)
        if lookup.ok:
            source_ids = resolve_source_ids(source_ids, lookup.apps)
        # else: lookup failure is non-fatal, tokens pass through as source ids

    descriptor = make_request(source_ids, options.metric_types)
    url = build_stream_url(host, build_query_params(descriptor, source_ids, options.shard_id))
    return client.build_request("GET", url, headers={"Accept": "text/event-stream"})


def stream_logs(
    host: str,
    client: httpx.Client,
    app_provider: AppProvider | None,
    sink: OutputSink,
    *options: StreamOption,
    cancel_event: threading.Event | None = None,
) -> SessionResult:
    """Stream envelopes from a gateway host to a sink until the stream ends.

    Example:
        result = stream_logs(
            "https://log-stream.example.com",
            client,
            provider,
            LockedSink(sys.stdout.buffer),
            with_source_ids(["my-app"]),
            with_metric_types(["log"]),
        )

    Raises:
        InvalidMetricTypeError: Synchronously, before any request is sent
        ValueError: If host is not a usable gateway address
    """
    request = build_read_request(host, client, app_provider, apply_options(options))
    return StreamConsumer(client, sink).consume(request, cancel_event)

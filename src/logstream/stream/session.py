# src/logstream/stream/session.py
"""Background execution of streaming sessions.

A StreamSession runs one stream_logs() call on its own worker thread so
the caller can keep doing other work (rendering progress, waiting for a
signal) and cancel it at any time.

Completion is communicated through a concurrent.futures.Future holding the
SessionResult; cancellation through a threading.Event checked by the
consumer between reads and writes.

Thread Safety:
    start(), cancel(), wait() and done may be called from any thread.
    The sink must serialize its own writers (see LockedSink).
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType

import httpx
import structlog

from logstream.contracts.enums import SessionOutcome
from logstream.contracts.results import SessionResult
from logstream.stream.apps import AppProvider
from logstream.stream.consumer import StreamOption, stream_logs
from logstream.stream.sinks import OutputSink

logger = structlog.get_logger(__name__)


class StreamSession:
    """One streaming session run as a background task.

    Example:
        with StreamSession(host, client, provider, sink, with_shard_id("a")) as session:
            result = session.wait()
            print(result.outcome)

    Exiting the context cancels the session and waits for it to wind down.
    """

    def __init__(
        self,
        host: str,
        client: httpx.Client,
        app_provider: AppProvider | None,
        sink: OutputSink,
        *options: StreamOption,
    ) -> None:
        self._host = host
        self._client = client
        self._app_provider = app_provider
        self._sink = sink
        self._options = options
        self._cancel_event = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._future: Future[SessionResult] | None = None
        self._lock = threading.Lock()

    @property
    def host(self) -> str:
        return self._host

    @property
    def future(self) -> Future[SessionResult]:
        """Future resolved with the SessionResult.

        Raises:
            RuntimeError: If the session has not been started
        """
        if self._future is None:
            raise RuntimeError("StreamSession has not been started")
        return self._future

    @property
    def done(self) -> bool:
        return self._future is not None and self._future.done()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancel_event.is_set()

    def start(self) -> Future[SessionResult]:
        """Start the session on a background worker.

        Validation errors (invalid metric types, unusable host) surface
        through the future, raised by result().

        Raises:
            RuntimeError: If the session was already started
        """
        with self._lock:
            if self._future is not None:
                raise RuntimeError("StreamSession already started")
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="logstream-session")
            self._future = self._executor.submit(self._run)
            # No further work; the worker thread exits once _run returns
            self._executor.shutdown(wait=False)
        return self._future

    def cancel(self) -> None:
        """Ask the session to stop at its next read or write boundary."""
        if not self._cancel_event.is_set():
            logger.debug("Session cancellation requested", host=self._host)
        self._cancel_event.set()

    def wait(self, timeout: float | None = None) -> SessionResult:
        """Block until the session ends and return its result.

        Raises:
            TimeoutError: If the session is still running after timeout
            InvalidMetricTypeError: If the filters were invalid
            ValueError: If the host was unusable
        """
        return self.future.result(timeout=timeout)

    def _run(self) -> SessionResult:
        started = time.monotonic()
        logger.info("Session started", host=self._host)
        try:
            result = stream_logs(
                self._host,
                self._client,
                self._app_provider,
                self._sink,
                *self._options,
                cancel_event=self._cancel_event,
            )
        except Exception as e:
            logger.error("Session aborted", host=self._host, error=str(e), error_type=type(e).__name__)
            raise

        duration_ms = (time.monotonic() - started) * 1000
        fields = {
            "host": self._host,
            "outcome": result.outcome.value,
            "status_code": result.status_code,
            "frames_decoded": result.frames_decoded,
            "envelopes_written": result.envelopes_written,
            "duration_ms": round(duration_ms, 1),
        }
        if result.outcome is SessionOutcome.FAILED:
            logger.warning("Session failed", error=str(result.error), error_type=type(result.error).__name__, **fields)
        elif result.outcome is SessionOutcome.REJECTED:
            logger.warning("Session rejected by gateway", **fields)
        else:
            logger.info("Session finished", **fields)
        return result

    def __enter__(self) -> StreamSession:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()
        if self._future is not None:
            # Wait for the worker; its result or exception stays on the future
            self._future.exception()

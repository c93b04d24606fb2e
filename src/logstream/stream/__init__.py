# src/logstream/stream/__init__.py
"""Selector construction and streaming consumption of the gateway event stream."""

from logstream.stream.apps import (
    AppInfo,
    AppLookup,
    AppProvider,
    CloudControllerAppProvider,
    lookup_apps,
    resolve_source_ids,
)
from logstream.stream.consumer import (
    StreamConsumer,
    StreamOption,
    StreamOptions,
    apply_options,
    build_read_request,
    stream_logs,
    with_metric_types,
    with_shard_id,
    with_source_ids,
)
from logstream.stream.frames import FrameDecoder
from logstream.stream.query import STREAM_PATH, build_query_params, build_stream_url
from logstream.stream.request_factory import make_request, parse_metric_types
from logstream.stream.session import StreamSession
from logstream.stream.sinks import LockedSink, OutputSink

__all__ = [
    "STREAM_PATH",
    "AppInfo",
    "AppLookup",
    "AppProvider",
    "CloudControllerAppProvider",
    "FrameDecoder",
    "LockedSink",
    "OutputSink",
    "StreamConsumer",
    "StreamOption",
    "StreamOptions",
    "StreamSession",
    "apply_options",
    "build_query_params",
    "build_read_request",
    "build_stream_url",
    "lookup_apps",
    "make_request",
    "parse_metric_types",
    "resolve_source_ids",
    "stream_logs",
    "with_metric_types",
    "with_shard_id",
    "with_source_ids",
]

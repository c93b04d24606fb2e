"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/stream.
Settings classes are NOT re-exported here - import them from
logstream.core.config.
"""

from logstream.contracts.envelopes import (
    Counter,
    Envelope,
    EnvelopeBatch,
    EnvelopeMessage,
    Event,
    Gauge,
    GaugeValue,
    Log,
    Timer,
)
from logstream.contracts.enums import LogType, MetricType, SessionOutcome
from logstream.contracts.errors import (
    AppLookupError,
    BatchDecodeError,
    InvalidMetricTypeError,
    SinkWriteError,
    StreamError,
    StreamTransportError,
)
from logstream.contracts.results import SessionResult
from logstream.contracts.selectors import (
    CounterSelector,
    EgressBatchRequest,
    EventSelector,
    GaugeSelector,
    LogSelector,
    Selector,
    SelectorMessage,
    TimerSelector,
    selector_message,
)

__all__ = [
    "AppLookupError",
    "BatchDecodeError",
    "Counter",
    "CounterSelector",
    "EgressBatchRequest",
    "Envelope",
    "EnvelopeBatch",
    "EnvelopeMessage",
    "Event",
    "EventSelector",
    "Gauge",
    "GaugeSelector",
    "GaugeValue",
    "InvalidMetricTypeError",
    "Log",
    "LogSelector",
    "LogType",
    "MetricType",
    "Selector",
    "SelectorMessage",
    "SessionOutcome",
    "SessionResult",
    "SinkWriteError",
    "StreamError",
    "StreamTransportError",
    "Timer",
    "TimerSelector",
    "selector_message",
]

# src/logstream/contracts/enums.py
"""Kinds and outcomes used across subsystem boundaries.

MetricType is the fixed vocabulary shared by selectors, envelopes and the
outbound query. It is closed: the gateway wire contract defines exactly
five kinds and nothing may register more at runtime.
"""

from enum import StrEnum


class MetricType(StrEnum):
    """Kind of telemetry carried by an envelope or requested by a selector.

    Declaration order is NOT the full-expansion order. Use
    canonical_order() when expanding an empty filter.
    """

    LOG = "log"
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMER = "timer"
    EVENT = "event"

    @classmethod
    def canonical_order(cls) -> tuple["MetricType", ...]:
        """Order used when a caller supplies no metric-type filter.

        This ordering is visible to the gateway, so it must stay literal.
        """
        return _CANONICAL_ORDER


_CANONICAL_ORDER: tuple[MetricType, ...] = (
    MetricType.LOG,
    MetricType.COUNTER,
    MetricType.EVENT,
    MetricType.GAUGE,
    MetricType.TIMER,
)


class LogType(StrEnum):
    """Stream a log line was written to."""

    OUT = "OUT"
    ERR = "ERR"


class SessionOutcome(StrEnum):
    """How a streaming session ended.

    - COMPLETED: server closed the stream cleanly
    - REJECTED: non-success status; body forwarded to the sink verbatim
    - CANCELLED: caller asked the session to stop
    - FAILED: transport, decode or sink error (see SessionResult.error)
    """

    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    FAILED = "failed"

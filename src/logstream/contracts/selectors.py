# src/logstream/contracts/selectors.py
"""Selector contracts for egress batch requests.

A Selector pairs an optional source id with exactly one metric-type
discriminant. The discriminant is a closed tagged union: one empty payload
class per MetricType. Payloads are empty at construction time; the gateway
fills them in server-side.
"""

from dataclasses import dataclass
from typing import ClassVar

from logstream.contracts.enums import MetricType


@dataclass(frozen=True, slots=True)
class LogSelector:
    kind: ClassVar[MetricType] = MetricType.LOG


@dataclass(frozen=True, slots=True)
class CounterSelector:
    kind: ClassVar[MetricType] = MetricType.COUNTER


@dataclass(frozen=True, slots=True)
class GaugeSelector:
    kind: ClassVar[MetricType] = MetricType.GAUGE


@dataclass(frozen=True, slots=True)
class TimerSelector:
    kind: ClassVar[MetricType] = MetricType.TIMER


@dataclass(frozen=True, slots=True)
class EventSelector:
    kind: ClassVar[MetricType] = MetricType.EVENT


SelectorMessage = LogSelector | CounterSelector | GaugeSelector | TimerSelector | EventSelector

_MESSAGE_BY_TYPE: dict[MetricType, type[SelectorMessage]] = {
    MetricType.LOG: LogSelector,
    MetricType.COUNTER: CounterSelector,
    MetricType.GAUGE: GaugeSelector,
    MetricType.TIMER: TimerSelector,
    MetricType.EVENT: EventSelector,
}


def selector_message(metric_type: MetricType) -> SelectorMessage:
    """Create the empty selector payload for a metric type."""
    return _MESSAGE_BY_TYPE[metric_type]()


@dataclass(frozen=True, slots=True)
class Selector:
    """One (source id, metric type) pairing.

    Attributes:
        message: Metric-type discriminant with its (empty) payload
        source_id: Source to scope to, or None for an unscoped selector
    """

    message: SelectorMessage
    source_id: str | None = None

    @property
    def metric_type(self) -> MetricType:
        return self.message.kind


@dataclass(frozen=True, slots=True)
class EgressBatchRequest:
    """Ordered, immutable sequence of selectors for one streaming session."""

    selectors: tuple[Selector, ...]

    def __len__(self) -> int:
        return len(self.selectors)

    @property
    def metric_types(self) -> tuple[MetricType, ...]:
        """Distinct metric types, in selector order."""
        return tuple(dict.fromkeys(s.metric_type for s in self.selectors))

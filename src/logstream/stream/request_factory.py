# src/logstream/stream/request_factory.py
"""Selector construction for egress batch requests.

Translates source-id and metric-type filters into a validated,
deterministic EgressBatchRequest. Pure: no I/O, no state.
"""

from collections.abc import Sequence

from logstream.contracts.enums import MetricType
from logstream.contracts.errors import InvalidMetricTypeError
from logstream.contracts.selectors import EgressBatchRequest, Selector, selector_message

_VOCABULARY: dict[str, MetricType] = {m.value: m for m in MetricType}


def parse_metric_types(tokens: Sequence[str]) -> tuple[MetricType, ...]:
    """Validate metric-type tokens against the fixed vocabulary.

    All-or-nothing: every token is checked before anything is returned, so
    the error names every offending token rather than only the first.

    Args:
        tokens: Metric-type tokens in caller order

    Returns:
        The parsed metric types, in caller order. Empty if tokens is empty.

    Raises:
        InvalidMetricTypeError: If any token is not a known metric type
    """
    invalid = [token for token in tokens if token not in _VOCABULARY]
    if invalid:
        raise InvalidMetricTypeError(invalid)
    return tuple(_VOCABULARY[token] for token in tokens)


def make_request(source_ids: Sequence[str], metric_types: Sequence[str]) -> EgressBatchRequest:
    """Build the selector sequence for a streaming session.

    For each source id (or one unscoped pass when source_ids is empty),
    emit one selector per metric type. Explicit metric types keep caller
    order; an empty filter expands to MetricType.canonical_order().

    Example:
        >>> request = make_request(["foo"], ["gauge", "counter"])
        >>> [(s.source_id, s.metric_type.value) for s in request.selectors]
        [('foo', 'gauge'), ('foo', 'counter')]

    Raises:
        InvalidMetricTypeError: If any metric-type token is invalid. No
            selectors are produced in that case.
    """
    types = parse_metric_types(metric_types) or MetricType.canonical_order()
    scopes: Sequence[str | None] = list(source_ids) or [None]

    return EgressBatchRequest(
        selectors=tuple(
            Selector(message=selector_message(metric_type), source_id=source_id)
            for source_id in scopes
            for metric_type in types
        )
    )

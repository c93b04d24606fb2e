# tests/unit/stream/test_request_factory.py
"""Tests for selector construction.

Tests cover:
- Explicit metric types keep caller order, once per source id
- Empty source ids produce unscoped selectors
- Empty metric types expand to the canonical order
- Invalid tokens are all reported, in input order, with no output
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from logstream.contracts import (
    CounterSelector,
    EgressBatchRequest,
    EventSelector,
    GaugeSelector,
    InvalidMetricTypeError,
    LogSelector,
    MetricType,
    Selector,
    TimerSelector,
)
from logstream.stream.request_factory import make_request, parse_metric_types

VALID_TOKENS = [m.value for m in MetricType]


class TestMakeRequest:
    def test_selector_per_source_and_metric_type(self) -> None:
        """Explicit types produce one selector each, in caller order."""
        expected = EgressBatchRequest(
            selectors=(
                Selector(source_id="foo", message=GaugeSelector()),
                Selector(source_id="foo", message=CounterSelector()),
            )
        )

        assert make_request(["foo"], ["gauge", "counter"]) == expected

    def test_no_source_ids_makes_unscoped_selectors(self) -> None:
        expected = EgressBatchRequest(
            selectors=(
                Selector(message=EventSelector()),
                Selector(message=LogSelector()),
            )
        )

        assert make_request([], ["event", "log"]) == expected

    def test_no_metric_types_expands_in_canonical_order(self) -> None:
        """Full expansion uses log, counter, event, gauge, timer."""
        expected = EgressBatchRequest(
            selectors=(
                Selector(source_id="foo", message=LogSelector()),
                Selector(source_id="foo", message=CounterSelector()),
                Selector(source_id="foo", message=EventSelector()),
                Selector(source_id="foo", message=GaugeSelector()),
                Selector(source_id="foo", message=TimerSelector()),
            )
        )

        assert make_request(["foo"], []) == expected

    def test_no_filters_at_all(self) -> None:
        request = make_request([], [])

        assert len(request) == 5
        assert all(s.source_id is None for s in request.selectors)
        assert request.metric_types == MetricType.canonical_order()

    def test_source_groups_follow_input_order(self) -> None:
        request = make_request(["b", "a"], ["timer", "log"])

        assert [(s.source_id, s.metric_type) for s in request.selectors] == [
            ("b", MetricType.TIMER),
            ("b", MetricType.LOG),
            ("a", MetricType.TIMER),
            ("a", MetricType.LOG),
        ]

    def test_invalid_metric_types_all_reported(self) -> None:
        with pytest.raises(InvalidMetricTypeError) as exc_info:
            make_request(["source-one", "source-two"], ["gauge", "foo", "bar"])

        assert str(exc_info.value) == "invalid metric type(s): foo, bar"
        assert exc_info.value.invalid == ("foo", "bar")

    def test_metric_types_are_case_sensitive(self) -> None:
        with pytest.raises(InvalidMetricTypeError, match=r"invalid metric type\(s\): Log$"):
            make_request([], ["Log"])

    def test_request_is_immutable(self) -> None:
        request = make_request(["foo"], ["log"])

        with pytest.raises(AttributeError):
            request.selectors = ()  # type: ignore[misc]

    @given(
        source_ids=st.lists(st.text(min_size=1, max_size=8), min_size=1, max_size=5),
        metric_types=st.lists(st.sampled_from(VALID_TOKENS), min_size=1, max_size=5),
    )
    def test_cartesian_product_in_order(self, source_ids: list[str], metric_types: list[str]) -> None:
        """|sources| x |types| selectors, grouped by source, types in caller order."""
        request = make_request(source_ids, metric_types)

        assert len(request) == len(source_ids) * len(metric_types)
        expected = [(source_id, token) for source_id in source_ids for token in metric_types]
        assert [(s.source_id, s.metric_type.value) for s in request.selectors] == expected

    @given(metric_types=st.lists(st.sampled_from(VALID_TOKENS), max_size=5))
    def test_unscoped_count(self, metric_types: list[str]) -> None:
        request = make_request([], metric_types)

        assert len(request) == (len(metric_types) or 5)
        assert all(s.source_id is None for s in request.selectors)


class TestParseMetricTypes:
    def test_empty_is_empty(self) -> None:
        assert parse_metric_types([]) == ()

    def test_preserves_caller_order(self) -> None:
        assert parse_metric_types(["timer", "log"]) == (MetricType.TIMER, MetricType.LOG)

    @given(
        valid=st.lists(st.sampled_from(VALID_TOKENS), max_size=3),
        invalid=st.lists(st.text(max_size=6).filter(lambda t: t not in VALID_TOKENS), min_size=1, max_size=3),
    )
    def test_reports_every_invalid_token(self, valid: list[str], invalid: list[str]) -> None:
        tokens = [*valid, *invalid]

        with pytest.raises(InvalidMetricTypeError) as exc_info:
            parse_metric_types(tokens)

        assert exc_info.value.invalid == tuple(invalid)

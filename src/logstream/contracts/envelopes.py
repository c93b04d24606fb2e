# src/logstream/contracts/envelopes.py
"""Envelope contracts and the batch wire codec.

An Envelope carries exactly one variant among Log, Counter, Gauge, Timer
and Event. The variants form a closed tagged union keyed by MetricType;
the set is fixed by the gateway wire contract.

Wire format (proto3 JSON mapping, as emitted by the gateway):
- Field names are lowerCamelCase; snake_case names are accepted on input
- 64-bit integers arrive as decimal strings (JSON numbers are accepted)
- Log payloads are bytes, so they arrive base64-encoded
- Default values (0, "", empty maps, OUT log type) are omitted

Output format:
    to_json() re-serializes compactly with the same field names and the
    same omission rules, except that log payloads are rendered as UTF-8
    text so each line is readable:

        {"log":{"payload":"hello, world"}}
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from logstream.contracts.enums import LogType, MetricType
from logstream.contracts.errors import BatchDecodeError

# =============================================================================
# Field coercion helpers
# =============================================================================


def _field(obj: Mapping[str, Any], camel: str, snake: str | None = None) -> Any:
    """Look up a field by its JSON name, falling back to the proto name."""
    if camel in obj:
        return obj[camel]
    if snake is not None and snake in obj:
        return obj[snake]
    return None


def _as_object(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise BatchDecodeError(f"{where}: expected object, got {type(value).__name__}")
    return value


def _as_string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BatchDecodeError(f"{where}: expected string, got {type(value).__name__}")
    return value


def _as_int(value: Any, where: str, *, unsigned: bool = False) -> int:
    if value is None:
        return 0
    # bool is an int subclass; it is never a valid integer on the wire
    if isinstance(value, bool):
        raise BatchDecodeError(f"{where}: expected integer, got bool")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        try:
            result = int(value, 10)
        except ValueError:
            raise BatchDecodeError(f"{where}: invalid integer {value!r}") from None
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    else:
        raise BatchDecodeError(f"{where}: expected integer, got {type(value).__name__}")
    if unsigned and result < 0:
        raise BatchDecodeError(f"{where}: expected unsigned integer, got {result}")
    return result


_FLOAT_TOKENS = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}


def _as_double(value: Any, where: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise BatchDecodeError(f"{where}: expected number, got bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if value in _FLOAT_TOKENS:
            return _FLOAT_TOKENS[value]
        try:
            return float(value)
        except ValueError:
            raise BatchDecodeError(f"{where}: invalid number {value!r}") from None
    raise BatchDecodeError(f"{where}: expected number, got {type(value).__name__}")


def _double_out(value: float) -> float | str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return value


# =============================================================================
# Variants
# =============================================================================


@dataclass(frozen=True, slots=True)
class Log:
    """A log line emitted by a source."""

    kind: ClassVar[MetricType] = MetricType.LOG

    payload: bytes = b""
    type: LogType = LogType.OUT

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Log:
        raw_payload = _as_string(obj.get("payload"), "log.payload")
        try:
            payload = base64.b64decode(raw_payload, validate=True)
        except binascii.Error as e:
            raise BatchDecodeError(f"log.payload: invalid base64 ({e})") from None
        raw_type = _as_string(obj.get("type"), "log.type") or LogType.OUT.value
        try:
            log_type = LogType(raw_type)
        except ValueError:
            raise BatchDecodeError(f"log.type: unknown log type {raw_type!r}") from None
        return cls(payload=payload, type=log_type)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.payload:
            out["payload"] = self.payload.decode("utf-8", errors="replace")
        if self.type is not LogType.OUT:
            out["type"] = self.type.value
        return out


@dataclass(frozen=True, slots=True)
class Counter:
    """A monotonically increasing counter sample."""

    kind: ClassVar[MetricType] = MetricType.COUNTER

    name: str = ""
    delta: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Counter:
        return cls(
            name=_as_string(obj.get("name"), "counter.name"),
            delta=_as_int(obj.get("delta"), "counter.delta", unsigned=True),
            total=_as_int(obj.get("total"), "counter.total", unsigned=True),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.delta:
            out["delta"] = str(self.delta)
        if self.total:
            out["total"] = str(self.total)
        return out


@dataclass(frozen=True, slots=True)
class GaugeValue:
    unit: str = ""
    value: float = 0.0


@dataclass(frozen=True, slots=True)
class Gauge:
    """A set of named point-in-time measurements."""

    kind: ClassVar[MetricType] = MetricType.GAUGE

    metrics: dict[str, GaugeValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Gauge:
        metrics: dict[str, GaugeValue] = {}
        for name, raw in _as_object(obj.get("metrics"), "gauge.metrics").items():
            where = f"gauge.metrics[{name!r}]"
            value = _as_object(raw, where)
            metrics[name] = GaugeValue(
                unit=_as_string(value.get("unit"), f"{where}.unit"),
                value=_as_double(value.get("value"), f"{where}.value"),
            )
        return cls(metrics=metrics)

    def to_dict(self) -> dict[str, Any]:
        if not self.metrics:
            return {}
        rendered: dict[str, Any] = {}
        for name, metric in self.metrics.items():
            entry: dict[str, Any] = {}
            if metric.unit:
                entry["unit"] = metric.unit
            if metric.value:
                entry["value"] = _double_out(metric.value)
            rendered[name] = entry
        return {"metrics": rendered}


@dataclass(frozen=True, slots=True)
class Timer:
    """A timed operation with start and stop in nanoseconds since epoch."""

    kind: ClassVar[MetricType] = MetricType.TIMER

    name: str = ""
    start: int = 0
    stop: int = 0

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Timer:
        return cls(
            name=_as_string(obj.get("name"), "timer.name"),
            start=_as_int(obj.get("start"), "timer.start"),
            stop=_as_int(obj.get("stop"), "timer.stop"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.start:
            out["start"] = str(self.start)
        if self.stop:
            out["stop"] = str(self.stop)
        return out


@dataclass(frozen=True, slots=True)
class Event:
    """A discrete occurrence with a title and body."""

    kind: ClassVar[MetricType] = MetricType.EVENT

    title: str = ""
    body: str = ""

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Event:
        return cls(
            title=_as_string(obj.get("title"), "event.title"),
            body=_as_string(obj.get("body"), "event.body"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title:
            out["title"] = self.title
        if self.body:
            out["body"] = self.body
        return out


EnvelopeMessage = Log | Counter | Gauge | Timer | Event

_VARIANTS: dict[str, type[EnvelopeMessage]] = {
    MetricType.LOG.value: Log,
    MetricType.COUNTER.value: Counter,
    MetricType.GAUGE.value: Gauge,
    MetricType.TIMER.value: Timer,
    MetricType.EVENT.value: Event,
}


# =============================================================================
# Envelope and batch
# =============================================================================


@dataclass(frozen=True, slots=True)
class Envelope:
    """One decoded telemetry record.

    Attributes:
        message: The populated variant (exactly one)
        timestamp: Nanoseconds since epoch, 0 if unset
        source_id: Emitting source, "" if unset
        instance_id: Instance of the source, "" if unset
        tags: Free-form string tags
    """

    message: EnvelopeMessage
    timestamp: int = 0
    source_id: str = ""
    instance_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def metric_type(self) -> MetricType:
        return self.message.kind

    @classmethod
    def from_dict(cls, obj: Any) -> Envelope:
        """Decode one envelope object.

        Raises:
            BatchDecodeError: If the object is malformed or does not carry
                exactly one variant
        """
        envelope = _as_object(obj, "envelope")
        present = [name for name in _VARIANTS if envelope.get(name) is not None]
        if len(present) != 1:
            found = ", ".join(present) or "none"
            raise BatchDecodeError(f"envelope: expected exactly one of log, counter, gauge, timer, event; found {found}")
        variant = present[0]
        message = _VARIANTS[variant].from_dict(_as_object(envelope[variant], variant))

        tags: dict[str, str] = {}
        for key, value in _as_object(envelope.get("tags"), "tags").items():
            tags[key] = _as_string(value, f"tags[{key!r}]")

        return cls(
            message=message,
            timestamp=_as_int(envelope.get("timestamp"), "timestamp"),
            source_id=_as_string(_field(envelope, "sourceId", "source_id"), "sourceId"),
            instance_id=_as_string(_field(envelope, "instanceId", "instance_id"), "instanceId"),
            tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.timestamp:
            out["timestamp"] = str(self.timestamp)
        if self.source_id:
            out["sourceId"] = self.source_id
        if self.instance_id:
            out["instanceId"] = self.instance_id
        if self.tags:
            out["tags"] = dict(self.tags)
        out[self.metric_type.value] = self.message.to_dict()
        return out

    def to_json(self) -> str:
        """Compact single-line rendering of this envelope."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class EnvelopeBatch:
    """An ordered group of envelopes delivered together in one frame."""

    batch: tuple[Envelope, ...] = ()

    def __len__(self) -> int:
        return len(self.batch)

    def __iter__(self) -> Iterator[Envelope]:
        return iter(self.batch)

    @classmethod
    def from_json(cls, payload: bytes | str) -> EnvelopeBatch:
        """Decode a frame payload into a batch.

        Args:
            payload: JSON text of the form {"batch": [envelope, ...]}

        Raises:
            BatchDecodeError: If the payload is not valid JSON or any
                envelope is malformed. Nothing is returned for a partially
                valid batch.
        """
        try:
            parsed = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BatchDecodeError(f"frame payload is not valid JSON: {e}", payload) from None

        if not isinstance(parsed, dict):
            raise BatchDecodeError(f"frame payload: expected object, got {type(parsed).__name__}", payload)
        raw_batch = parsed.get("batch")
        if raw_batch is None:
            # An empty batch is serialized without the field
            return cls()
        if not isinstance(raw_batch, list):
            raise BatchDecodeError(f"batch: expected list, got {type(raw_batch).__name__}", payload)

        envelopes = []
        for index, raw in enumerate(raw_batch):
            try:
                envelopes.append(Envelope.from_dict(raw))
            except BatchDecodeError as e:
                raise BatchDecodeError(f"batch[{index}]: {e}", payload) from None
        return cls(batch=tuple(envelopes))

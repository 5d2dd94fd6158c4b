"""Wire format encoding for metricwire.

Turns a :class:`~metricwire.types.Metric` into the datagram text understood
by the selected collector flavor.

Wire grammar:
    counter        name:value|c[|@rate][|#tags]
    gauge          name:value|g[|@rate][|#tags]
    set            name:value|s[|@rate][|#tags]
    timing         name:value|ms[|@rate][|#tags]
    histogram      name:value|h[|@rate][|#tags]              (datadog)
    distribution   name:value|d[|@rate][|#tags]              (datadog)
    key_value      name:value|kv[|@timestamp]\\n              (statsite)
    event          _e{len(title),len(text)}:title|text[|d:ts][|h:host]
                   [|k:key][|p:priority][|s:source][|t:alert][|#tags]
                                                             (datadog)
    service_check  _sc|name|status[|d:ts][|h:host][|#tags][|m:message]
                                                             (datadog)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from metricwire.types import Flavor, Metric, MetricKind, MetricValidationError, ServiceCheckStatus

UNSUPPORTED_FOR_FLAVOR = "unsupported for flavor"
INVALID_STATUS = "invalid service check status"

_ALL_FLAVORS = frozenset(Flavor)

# Which flavors accept which kinds.
CAPABILITIES: dict[MetricKind, frozenset[Flavor]] = {
    MetricKind.COUNTER: _ALL_FLAVORS,
    MetricKind.GAUGE: _ALL_FLAVORS,
    MetricKind.SET: _ALL_FLAVORS,
    MetricKind.TIMING: _ALL_FLAVORS,
    MetricKind.HISTOGRAM: frozenset({Flavor.DATADOG}),
    MetricKind.DISTRIBUTION: frozenset({Flavor.DATADOG}),
    MetricKind.EVENT: frozenset({Flavor.DATADOG}),
    MetricKind.SERVICE_CHECK: frozenset({Flavor.DATADOG}),
    MetricKind.KEY_VALUE: frozenset({Flavor.STATSITE}),
}

# Metadata keys each kind understands. Anything else is dropped or rejected.
ALLOWED_METADATA: dict[MetricKind, frozenset[str]] = {
    MetricKind.EVENT: frozenset({
        "hostname",
        "timestamp",
        "aggregation_key",
        "priority",
        "source_type_name",
        "alert_type",
    }),
    MetricKind.SERVICE_CHECK: frozenset({"hostname", "timestamp", "message"}),
    MetricKind.KEY_VALUE: frozenset({"timestamp"}),
}

_SAMPLING_DISALLOWED = frozenset({MetricKind.EVENT, MetricKind.SERVICE_CHECK})


@dataclass(frozen=True)
class FormatResult:
    """Outcome of formatting one metric.

    Attributes:
        packet: Datagram text, or None when nothing should be sent.
        reason: Why no packet was produced.
    """

    packet: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.packet is not None

    @classmethod
    def unsupported(cls) -> "FormatResult":
        return cls(reason=UNSUPPORTED_FOR_FLAVOR)


def supports(kind: MetricKind, flavor: Flavor) -> bool:
    """Check whether ``flavor`` accepts metrics of ``kind``."""
    return flavor in CAPABILITIES[kind]


def required_flavors(kind: MetricKind) -> list[Flavor]:
    """Flavors that accept ``kind``, in enum order."""
    return [f for f in Flavor if f in CAPABILITIES[kind]]


def sanitize_metric(metric: Metric, *, strict: bool = False) -> Metric:
    """Enforce the metadata policy for ``metric``.

    Events and service checks cannot be sampled and only understand a fixed
    set of metadata keys. In strict mode any such field raises
    :class:`MetricValidationError`; otherwise the offending fields are
    dropped and the rest of the metric is kept.

    Raises:
        MetricValidationError: In strict mode, if disallowed fields are set.
    """
    allowed = ALLOWED_METADATA.get(metric.kind)
    if allowed is None:
        return metric

    invalid = sorted(k for k in metric.metadata if k not in allowed)
    bad_rate = metric.kind in _SAMPLING_DISALLOWED and metric.sample_rate < 1.0
    if bad_rate:
        invalid.insert(0, "sample_rate")

    if not invalid:
        return metric
    if strict:
        raise MetricValidationError(
            f"The following keyword arguments are not supported for "
            f"{metric.kind.name.lower()}: {', '.join(invalid)}"
        )

    return metric.replace(
        sample_rate=1.0 if bad_rate else metric.sample_rate,
        metadata={k: v for k, v in metric.metadata.items() if k in allowed},
    )


def format_metric(metric: Metric, flavor: Flavor, *, strict: bool = False) -> FormatResult:
    """Encode ``metric`` for ``flavor``.

    Returns a not-ok :class:`FormatResult` when the flavor does not support
    the metric kind, or when a service check status is not one of
    :class:`~metricwire.types.ServiceCheckStatus`.

    Raises:
        MetricValidationError: In strict mode, for disallowed metadata or an
            invalid service check status.
    """
    if not supports(metric.kind, flavor):
        return FormatResult.unsupported()

    metric = sanitize_metric(metric, strict=strict)
    if metric.kind is MetricKind.SERVICE_CHECK:
        try:
            status = ServiceCheckStatus.coerce(metric.value)
        except MetricValidationError:
            if strict:
                raise
            return FormatResult(reason=INVALID_STATUS)
        metric = metric.replace(value=status)
    encoder = _ENCODERS.get(metric.kind, _encode_simple)
    return FormatResult(packet=encoder(metric))


# =============================================================================
# Encoders
# =============================================================================


def escape_newlines(text: str) -> str:
    """Replace newlines with a literal backslash-n."""
    return text.replace("\n", "\\n")


def _timestamp(value: Any) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def _text(value: Any) -> str:
    """Render a metadata value as a single field; pipes would start a new one."""
    if isinstance(value, Enum):
        value = value.value
    return escape_newlines(str(value)).replace("|", "")


def _tag_suffix(metric: Metric) -> str:
    if not metric.tags:
        return ""
    return "|#" + ",".join(metric.tags)


def _encode_simple(metric: Metric) -> str:
    packet = f"{metric.name}:{metric.value}|{metric.kind.code}"
    if metric.sample_rate < 1.0:
        packet += f"|@{metric.sample_rate}"
    return packet + _tag_suffix(metric)


def _encode_key_value(metric: Metric) -> str:
    packet = f"{metric.name}:{metric.value}|kv"
    timestamp = metric.metadata.get("timestamp")
    if timestamp is not None:
        packet += f"|@{_timestamp(timestamp)}"
    return packet + "\n"


def _encode_event(metric: Metric) -> str:
    title = escape_newlines(metric.name)
    text = escape_newlines(metric.value)
    meta = metric.metadata

    parts = [f"_e{{{len(title)},{len(text)}}}:{title}|{text}"]
    if meta.get("timestamp") is not None:
        parts.append(f"d:{_timestamp(meta['timestamp'])}")
    for key, prefix in (
        ("hostname", "h"),
        ("aggregation_key", "k"),
        ("priority", "p"),
        ("source_type_name", "s"),
        ("alert_type", "t"),
    ):
        if meta.get(key) is not None:
            parts.append(f"{prefix}:{_text(meta[key])}")
    return "|".join(parts) + _tag_suffix(metric)


def _encode_service_check(metric: Metric) -> str:
    meta = metric.metadata

    packet = f"_sc|{metric.name}|{int(metric.value)}"
    if meta.get("timestamp") is not None:
        packet += f"|d:{_timestamp(meta['timestamp'])}"
    if meta.get("hostname") is not None:
        packet += f"|h:{_text(meta['hostname'])}"
    packet += _tag_suffix(metric)
    # The message has to be the last field.
    if meta.get("message") is not None:
        packet += f"|m:{escape_newlines(str(meta['message']))}"
    return packet


_ENCODERS: dict[MetricKind, Callable[[Metric], str]] = {
    MetricKind.KEY_VALUE: _encode_key_value,
    MetricKind.EVENT: _encode_event,
    MetricKind.SERVICE_CHECK: _encode_service_check,
}

"""Explicit-instance client for emitting metrics.

Usage:
    >>> backend = UDPBackend(BackendConfig.from_env())
    >>> statsd = StatsClient(backend, prefix="checkout")
    >>> statsd.increment("orders", tags=["region:eu"])
    >>> with statsd.timed("payment.duration"):
    ...     charge()
    >>> statsd.service_check("payment.up", "ok", message="All good")
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping

from metricwire.backends import Backend
from metricwire.types import Metric, MetricKind, normalize_tags

Tags = Iterable[str] | Mapping[str, Any] | None


class StatsClient:
    """Builds metrics and hands them to a backend."""

    def __init__(
        self,
        backend: Backend,
        *,
        prefix: str | None = None,
        default_tags: Tags = None,
        default_sample_rate: float = 1.0,
    ) -> None:
        """Initialize client.

        Args:
            backend: Where metrics go.
            prefix: Prepended to metric names as ``prefix.name``. Not applied
                to events and service checks.
            default_tags: Tags added in front of every metric's own tags.
            default_sample_rate: Used when a call passes no sample rate.
        """
        self.backend = backend
        self.prefix = prefix
        self.default_tags = normalize_tags(default_tags)
        self.default_sample_rate = default_sample_rate

    def _name(self, name: str) -> str:
        return f"{self.prefix}.{name}" if self.prefix else name

    def _emit(
        self,
        kind: MetricKind,
        name: str,
        value: Any,
        sample_rate: float | None,
        tags: Tags,
        metadata: Mapping[str, Any] | None = None,
        prefixed: bool = True,
    ) -> Metric:
        metric = Metric(
            kind=kind,
            name=self._name(name) if prefixed else name,
            value=value,
            sample_rate=self.default_sample_rate if sample_rate is None else sample_rate,
            tags=self.default_tags + normalize_tags(tags),
            metadata=metadata or {},
        )
        self.backend.collect(metric)
        return metric

    def increment(
        self, name: str, value: int = 1, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        return self._emit(MetricKind.COUNTER, name, value, sample_rate, tags)

    def decrement(
        self, name: str, value: int = 1, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        return self._emit(MetricKind.COUNTER, name, -value, sample_rate, tags)

    def gauge(
        self, name: str, value: float, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        return self._emit(MetricKind.GAUGE, name, value, sample_rate, tags)

    def set(
        self, name: str, value: Any, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        """Report ``value`` as a member of a unique set."""
        return self._emit(MetricKind.SET, name, value, sample_rate, tags)

    def measure(
        self, name: str, value: float, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        """Report a duration in milliseconds."""
        return self._emit(MetricKind.TIMING, name, value, sample_rate, tags)

    @contextmanager
    def timed(
        self, name: str, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Iterator[None]:
        """Measure the wall-clock time of the block in milliseconds.

        The timing is reported even if the block raises.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.measure(name, round(elapsed_ms, 3), sample_rate=sample_rate, tags=tags)

    def histogram(
        self, name: str, value: float, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        return self._emit(MetricKind.HISTOGRAM, name, value, sample_rate, tags)

    def distribution(
        self, name: str, value: float, *, sample_rate: float | None = None, tags: Tags = None
    ) -> Metric:
        return self._emit(MetricKind.DISTRIBUTION, name, value, sample_rate, tags)

    def key_value(self, name: str, value: Any, timestamp: Any = None) -> Metric:
        """Statsite key/value pair with an optional Unix timestamp."""
        metadata = {"timestamp": timestamp} if timestamp is not None else {}
        return self._emit(MetricKind.KEY_VALUE, name, value, 1.0, None, metadata)

    def event(
        self,
        title: str,
        text: str,
        *,
        sample_rate: float = 1.0,
        tags: Tags = None,
        **metadata: Any,
    ) -> Metric:
        """Datadog event.

        Recognized metadata: hostname, timestamp, aggregation_key, priority,
        source_type_name, alert_type.
        """
        return self._emit(
            MetricKind.EVENT, title, text, sample_rate, tags, metadata, prefixed=False
        )

    def service_check(
        self,
        name: str,
        status: Any,
        *,
        sample_rate: float = 1.0,
        tags: Tags = None,
        **metadata: Any,
    ) -> Metric:
        """Datadog service check.

        Recognized metadata: hostname, timestamp, message.
        """
        return self._emit(
            MetricKind.SERVICE_CHECK, name, status, sample_rate, tags, metadata, prefixed=False
        )

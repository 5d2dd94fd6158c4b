"""Metric backends.

``UDPBackend`` is the production path:

    collect(metric)
        -> sanitize (strict mode may raise MetricValidationError)
        -> SamplingDecider gate            (silent drop)
        -> format_metric(flavor)           (unsupported: logger.warn)
        -> TransportSocket.write           (failure: logger.error)

Only metadata validation errors reach the caller. Flavor mismatches and
network failures are logged and absorbed so instrumented code can never be
crashed by the metrics pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from metricwire.config import BackendConfig, parse_port
from metricwire.formatter import (
    UNSUPPORTED_FOR_FLAVOR,
    format_metric,
    required_flavors,
    sanitize_metric,
)
from metricwire.logging import MetricLogger, get_logger
from metricwire.sampling import SamplingDecider
from metricwire.transport import DatagramSocket, SocketFactory, TransportError, TransportSocket
from metricwire.types import Flavor, Metric


class Backend(ABC):
    """Receives every metric a client emits."""

    @abstractmethod
    def collect(self, metric: Metric) -> None:
        """Handle one metric occurrence."""
        pass


class NullBackend(Backend):
    """Discards all metrics."""

    def collect(self, metric: Metric) -> None:
        pass


class CaptureBackend(Backend):
    """Keeps collected metrics in memory for inspection in tests."""

    def __init__(self) -> None:
        self.collected_metrics: list[Metric] = []

    def collect(self, metric: Metric) -> None:
        self.collected_metrics.append(metric)

    def reset(self) -> None:
        self.collected_metrics.clear()


class LoggerBackend(Backend):
    """Logs metrics instead of sending them."""

    def __init__(self, logger=None) -> None:
        self._logger = logger or get_logger("metricwire.backends")

    def collect(self, metric: Metric) -> None:
        self._logger.info(f"[StatsD] {metric}")


class UDPBackend(Backend):
    """Sends each metric as one UDP datagram.

    Example:
        >>> backend = UDPBackend(BackendConfig(flavor=Flavor.DATADOG))
        >>> backend.collect(Metric("histogram", "fooh", 42.4))
    """

    def __init__(
        self,
        config: BackendConfig | None = None,
        *,
        logger: MetricLogger | None = None,
        sampler: SamplingDecider | None = None,
        socket_factory: SocketFactory | None = None,
    ) -> None:
        """Initialize UDP backend.

        Args:
            config: Target address, flavor and strict mode. Read on every call.
            logger: Collaborator with ``warn`` and ``error``.
            sampler: Sample-rate gate; inject a fixed draw for tests.
            socket_factory: Creates datagram sockets.
        """
        self._config = config or BackendConfig()
        self._logger = logger or get_logger("metricwire.backends")
        self._sampler = sampler or SamplingDecider()
        self._transport = TransportSocket(self._config, socket_factory=socket_factory)

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def host(self) -> str:
        return self._config.host

    @host.setter
    def host(self, value: str) -> None:
        self._config.host = value

    @property
    def port(self) -> int:
        return self._config.port

    @port.setter
    def port(self, value: int) -> None:
        self._config.port = parse_port(value)

    @property
    def server(self) -> str:
        return self._config.server

    @server.setter
    def server(self, value: str) -> None:
        self._config.server = value

    @property
    def flavor(self) -> Flavor:
        return self._config.flavor

    @flavor.setter
    def flavor(self, value: Flavor | str) -> None:
        self._config.flavor = Flavor.from_string(value) if isinstance(value, str) else value

    @property
    def strict(self) -> bool:
        return self._config.strict

    @strict.setter
    def strict(self, value: bool) -> None:
        self._config.strict = value

    @property
    def transport(self) -> TransportSocket:
        return self._transport

    @property
    def socket(self) -> DatagramSocket:
        """Socket bound to the current address.

        Raises:
            TransportError: If connecting fails.
        """
        return self._transport.socket

    def collect(self, metric: Metric) -> None:
        """Sample, format and send ``metric``.

        Raises:
            MetricValidationError: In strict mode, for metadata the metric
                kind does not support or an invalid service check status.
                Nothing is sent.
        """
        metric = sanitize_metric(metric, strict=self._config.strict)

        if metric.sample_rate < 1.0 and not self._sampler.should_emit(metric.sample_rate):
            return

        flavor = self._config.flavor
        result = format_metric(metric, flavor, strict=self._config.strict)
        if result.reason == UNSUPPORTED_FOR_FLAVOR:
            required = " or ".join(f.value for f in required_flavors(metric.kind))
            self._logger.warn(
                f"[StatsD] Metric type {metric.kind.name.lower()!r} is not supported "
                f"on {flavor.value} implementation; requires {required}."
            )
            return
        if not result.ok:
            self._logger.warn(
                f"[StatsD] Dropped {metric.kind.name.lower()} {metric.name!r}: "
                f"{result.reason} {metric.value!r}"
            )
            return

        self.write_packet(result.packet)

    def write_packet(self, packet: str) -> bool:
        """Send ``packet``; log and swallow transport failures.

        Returns:
            True if the datagram was handed to the socket.
        """
        try:
            self._transport.write(packet.encode("ascii", errors="replace"))
        except TransportError as e:
            self._logger.error(f"[StatsD] {type(e.__cause__ or e).__name__}: {e}")
            return False
        return True

    def close(self) -> None:
        self._transport.close()

"""metricwire - StatsD-style metrics over UDP for statsd, Datadog and Statsite."""

from metricwire.backends import (
    Backend,
    CaptureBackend,
    LoggerBackend,
    NullBackend,
    UDPBackend,
)
from metricwire.client import StatsClient
from metricwire.config import BackendConfig, ConfigError
from metricwire.formatter import (
    CAPABILITIES,
    FormatResult,
    format_metric,
    sanitize_metric,
    supports,
)
from metricwire.logging import BackendLogger, MetricLogger, configure_logging, get_logger
from metricwire.sampling import FixedDraw, SamplingDecider
from metricwire.transport import DatagramSocket, TransportError, TransportSocket
from metricwire.types import (
    AlertType,
    EventPriority,
    Flavor,
    Metric,
    MetricKind,
    MetricValidationError,
    ServiceCheckStatus,
)

__version__ = "0.1.0"

__all__ = [
    # Data model
    "Metric",
    "MetricKind",
    "Flavor",
    "ServiceCheckStatus",
    "EventPriority",
    "AlertType",
    "MetricValidationError",
    # Formatting and sampling
    "CAPABILITIES",
    "FormatResult",
    "format_metric",
    "sanitize_metric",
    "supports",
    "SamplingDecider",
    "FixedDraw",
    # Transport
    "DatagramSocket",
    "TransportSocket",
    "TransportError",
    # Backends
    "Backend",
    "UDPBackend",
    "NullBackend",
    "LoggerBackend",
    "CaptureBackend",
    # Client and config
    "StatsClient",
    "BackendConfig",
    "ConfigError",
    # Logging
    "MetricLogger",
    "BackendLogger",
    "configure_logging",
    "get_logger",
]

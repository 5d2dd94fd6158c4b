"""Core data model for metricwire.

A :class:`Metric` is an immutable value built once per call and discarded
after formatting. Everything that can be checked without knowing the target
collector is checked here, at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Iterable, Mapping


class MetricValidationError(ValueError):
    """Invalid metric or disallowed metric metadata.

    This is the only error that crosses the backend boundary.
    """

    pass


# =============================================================================
# Enumerations
# =============================================================================


class MetricKind(Enum):
    """Metric kinds and their wire type codes."""

    COUNTER = "c"
    GAUGE = "g"
    SET = "s"
    TIMING = "ms"
    HISTOGRAM = "h"
    DISTRIBUTION = "d"
    KEY_VALUE = "kv"
    EVENT = "_e"
    SERVICE_CHECK = "_sc"

    @property
    def code(self) -> str:
        """Type code used on the wire."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "MetricKind":
        """Resolve a kind from its name (``"counter"``) or code (``"c"``)."""
        normalized = value.strip().lower().replace("-", "_")
        for kind in cls:
            if normalized in (kind.name.lower(), kind.value):
                return kind
        raise MetricValidationError(f"Unknown metric kind: {value!r}")


class Flavor(Enum):
    """Collector implementation the backend targets."""

    STATSD = "statsd"
    DATADOG = "datadog"
    STATSITE = "statsite"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> "Flavor":
        """Convert string to Flavor (case-insensitive)."""
        from metricwire.config import ConfigError

        try:
            return cls(value.strip().lower())
        except ValueError:
            names = ", ".join(f.value for f in cls)
            raise ConfigError(f"Unknown flavor {value!r}, expected one of: {names}") from None


class ServiceCheckStatus(IntEnum):
    """Datadog service check statuses."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @classmethod
    def coerce(cls, value: Any) -> "ServiceCheckStatus":
        """Accept an enum member, an int 0..3 or a status name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
            if key.isdigit():
                value = int(key)
        try:
            return cls(value)
        except ValueError:
            raise MetricValidationError(
                f"Invalid service check status: {value!r}"
            ) from None


class EventPriority(Enum):
    """Datadog event priorities."""

    NORMAL = "normal"
    LOW = "low"


class AlertType(Enum):
    """Datadog event alert types."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


# =============================================================================
# Metric
# =============================================================================


def normalize_tags(tags: Iterable[str] | Mapping[str, Any] | None) -> tuple[str, ...]:
    """Turn tags into an ordered, de-duplicated tuple.

    Mappings become ``key:value`` tags. Pipes and commas would break the
    datagram, so they are stripped.
    """
    if not tags:
        return ()
    if isinstance(tags, Mapping):
        items: Iterable[str] = (f"{k}:{v}" for k, v in tags.items())
    elif isinstance(tags, str):
        items = (tags,)
    else:
        items = (str(t) for t in tags)

    seen: dict[str, None] = {}
    for tag in items:
        cleaned = tag.replace("|", "").replace(",", "")
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


@dataclass(frozen=True)
class Metric:
    """A single metric occurrence.

    Attributes:
        kind: What kind of metric this is.
        name: Metric name (event title for events).
        value: Numeric or string value, depending on kind.
        sample_rate: Probability in (0, 1] that this occurrence is sent.
        tags: Ordered tags.
        metadata: Kind-specific extras (hostname, timestamp, priority, ...).
    """

    kind: MetricKind
    name: str
    value: Any = 1
    sample_rate: float = 1.0
    tags: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        kind = self.kind
        if not isinstance(kind, MetricKind):
            kind = MetricKind.from_string(str(kind))
            object.__setattr__(self, "kind", kind)

        if not isinstance(self.name, str) or not self.name:
            raise MetricValidationError("Metric name must be a non-empty string")
        # Event titles are length-prefixed in the _e{title,text} header, so they
        # may contain the separators every other metric name must avoid.
        if kind is not MetricKind.EVENT and ("|" in self.name or ":" in self.name):
            raise MetricValidationError(
                f"Metric name {self.name!r} must not contain '|' or ':'"
            )

        try:
            rate = float(self.sample_rate)
        except (TypeError, ValueError):
            raise MetricValidationError(
                f"Sample rate must be a number, got {self.sample_rate!r}"
            ) from None
        if not 0.0 < rate <= 1.0:
            raise MetricValidationError(
                f"Sample rate must be in (0, 1], got {self.sample_rate!r}"
            )
        object.__setattr__(self, "sample_rate", rate)

        object.__setattr__(self, "tags", normalize_tags(self.tags))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

        # Service check statuses are resolved by the encoder, after the flavor
        # check, so an invalid status on a non-datadog flavor is only a warning.
        if kind is MetricKind.EVENT and not isinstance(self.value, str):
            raise MetricValidationError("Event text must be a string")

    def replace(self, **changes: Any) -> "Metric":
        """Return a copy with the given fields replaced."""
        data = {
            "kind": self.kind,
            "name": self.name,
            "value": self.value,
            "sample_rate": self.sample_rate,
            "tags": self.tags,
            "metadata": dict(self.metadata),
        }
        data.update(changes)
        return Metric(**data)

    def __str__(self) -> str:
        value = int(self.value) if isinstance(self.value, ServiceCheckStatus) else self.value
        parts = [f"{self.kind.name.lower()} {self.name}:{value}"]
        if self.sample_rate < 1.0:
            parts.append(f"@{self.sample_rate}")
        if self.tags:
            parts.append("#" + ",".join(self.tags))
        return " ".join(parts)

"""Tests for the metric data model."""

from __future__ import annotations

import pytest

from metricwire.config import ConfigError
from metricwire.types import (
    Flavor,
    Metric,
    MetricKind,
    MetricValidationError,
    ServiceCheckStatus,
    normalize_tags,
)


class TestMetric:
    """Tests for Metric construction."""

    def test_defaults(self):
        metric = Metric(MetricKind.COUNTER, "hits")

        assert metric.value == 1
        assert metric.sample_rate == 1.0
        assert metric.tags == ()
        assert dict(metric.metadata) == {}

    def test_kind_from_string(self):
        assert Metric("counter", "hits").kind is MetricKind.COUNTER
        assert Metric("ms", "t", 3).kind is MetricKind.TIMING

    @pytest.mark.parametrize("rate", [0, -0.5, 1.5, "abc"])
    def test_sample_rate_out_of_range(self, rate):
        with pytest.raises(MetricValidationError):
            Metric(MetricKind.COUNTER, "hits", sample_rate=rate)

    @pytest.mark.parametrize("name", ["", "a|b", "a:b"])
    def test_invalid_names(self, name):
        with pytest.raises(MetricValidationError):
            Metric(MetricKind.GAUGE, name, 1)

    def test_event_title_may_contain_separators(self):
        metric = Metric(MetricKind.EVENT, "deploy: web|api", "ok")
        assert metric.name == "deploy: web|api"

    def test_event_text_must_be_string(self):
        with pytest.raises(MetricValidationError):
            Metric(MetricKind.EVENT, "title", 42)

    def test_service_check_status_kept_as_given(self):
        metric = Metric(MetricKind.SERVICE_CHECK, "check", "bar")
        assert metric.value == "bar"

    def test_metadata_is_read_only(self):
        metric = Metric(MetricKind.EVENT, "t", "x", metadata={"hostname": "h"})
        with pytest.raises(TypeError):
            metric.metadata["hostname"] = "other"  # type: ignore[index]

    def test_immutable(self):
        metric = Metric(MetricKind.COUNTER, "hits")
        with pytest.raises(AttributeError):
            metric.name = "other"  # type: ignore[misc]

    def test_replace(self):
        metric = Metric(MetricKind.COUNTER, "hits", tags=["a"])
        other = metric.replace(value=5)

        assert other.value == 5
        assert other.tags == ("a",)
        assert metric.value == 1

    def test_str(self):
        metric = Metric(MetricKind.COUNTER, "hits", 2, sample_rate=0.5, tags=["a", "b"])
        assert str(metric) == "counter hits:2 @0.5 #a,b"


class TestNormalizeTags:
    """Tests for tag normalization."""

    def test_preserves_order_and_dedupes(self):
        assert normalize_tags(["b", "a", "b"]) == ("b", "a")

    def test_mapping(self):
        assert normalize_tags({"env": "prod", "region": "eu"}) == ("env:prod", "region:eu")

    def test_strips_separators(self):
        assert normalize_tags(["a|b", "c,d"]) == ("ab", "cd")

    def test_empty(self):
        assert normalize_tags(None) == ()


class TestEnums:
    """Tests for enum parsing."""

    def test_kind_from_string(self):
        assert MetricKind.from_string("service_check") is MetricKind.SERVICE_CHECK
        assert MetricKind.from_string("key-value") is MetricKind.KEY_VALUE
        assert MetricKind.from_string("_e") is MetricKind.EVENT

    def test_unknown_kind(self):
        with pytest.raises(MetricValidationError):
            MetricKind.from_string("meter")

    def test_flavor_from_string(self):
        assert Flavor.from_string("DataDog") is Flavor.DATADOG

    def test_unknown_flavor(self):
        with pytest.raises(ConfigError):
            Flavor.from_string("graphite")

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, ServiceCheckStatus.OK),
            ("ok", ServiceCheckStatus.OK),
            ("WARNING", ServiceCheckStatus.WARNING),
            ("2", ServiceCheckStatus.CRITICAL),
            (ServiceCheckStatus.UNKNOWN, ServiceCheckStatus.UNKNOWN),
        ],
    )
    def test_service_check_status(self, value, expected):
        assert ServiceCheckStatus.coerce(value) is expected

    def test_invalid_status(self):
        with pytest.raises(MetricValidationError):
            ServiceCheckStatus.coerce("bar")

"""Tests for the command-line interface."""

from __future__ import annotations

import logging
import socket

import pytest
from typer.testing import CliRunner

from metricwire.cli import app


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_metricwire_logger():
    root = logging.getLogger("metricwire")
    level, handlers = root.level, list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


@pytest.fixture
def udp_server():
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(2.0)
    yield server
    server.close()


class TestFormatCommand:
    """Tests for `metricwire format`."""

    def test_counter(self, runner):
        result = runner.invoke(app, ["format", "counter", "hits"])

        assert result.exit_code == 0
        assert result.output == "hits:1|c\n"

    def test_tags_and_rate(self, runner):
        result = runner.invoke(
            app, ["format", "gauge", "fooy", "42", "-t", "a", "-t", "b", "--sample-rate", "0.5"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == "fooy:42|g|@0.5|#a,b"

    def test_event_with_meta(self, runner):
        result = runner.invoke(
            app, ["format", "event", "fooh", "baz", "-m", "hostname=localhost", "-t", "foo"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == "_e{4,3}:fooh|baz|h:localhost|#foo"

    def test_key_value_on_statsite(self, runner):
        result = runner.invoke(
            app, ["format", "kv", "fooy", "42", "--flavor", "statsite", "-m", "timestamp=123456"]
        )

        assert result.exit_code == 0
        assert result.output == "fooy:42|kv|@123456\n"

    def test_unsupported_flavor(self, runner):
        result = runner.invoke(app, ["format", "histogram", "fooh", "1", "--flavor", "statsd"])

        assert result.exit_code == 1
        assert "requires datadog" in result.output

    def test_strict_rejects_metadata(self, runner):
        result = runner.invoke(
            app, ["format", "service_check", "db", "ok", "-m", "bogus=1", "--strict"]
        )

        assert result.exit_code == 1
        assert "bogus" in result.output

    def test_invalid_status(self, runner):
        result = runner.invoke(app, ["format", "service_check", "db", "bar"])

        assert result.exit_code == 1
        assert "invalid service check status" in result.output

    def test_missing_value(self, runner):
        result = runner.invoke(app, ["format", "gauge", "fooy"])
        assert result.exit_code == 1

    def test_bad_number(self, runner):
        result = runner.invoke(app, ["format", "gauge", "fooy", "abc"])
        assert result.exit_code == 1

    def test_unknown_kind(self, runner):
        result = runner.invoke(app, ["format", "meter", "fooy", "1"])
        assert result.exit_code == 1


class TestSendCommand:
    """Tests for `metricwire send`."""

    def test_send_counter(self, runner, udp_server):
        port = udp_server.getsockname()[1]

        result = runner.invoke(
            app, ["send", "counter", "hits", "3", "--host", "127.0.0.1", "--port", str(port)]
        )

        assert result.exit_code == 0
        assert udp_server.recvfrom(1024)[0] == b"hits:3|c"

    def test_send_uses_env(self, runner, udp_server, monkeypatch):
        port = udp_server.getsockname()[1]
        monkeypatch.setenv("STATSD_ADDR", f"127.0.0.1:{port}")
        monkeypatch.setenv("STATSD_IMPLEMENTATION", "datadog")

        result = runner.invoke(app, ["send", "histogram", "fooh", "42.4"])

        assert result.exit_code == 0
        assert udp_server.recvfrom(1024)[0] == b"fooh:42.4|h"

    def test_send_from_config_file(self, runner, udp_server, tmp_path):
        port = udp_server.getsockname()[1]
        path = tmp_path / "statsd.yaml"
        path.write_text(f"server: 127.0.0.1:{port}\nflavor: statsite\n")

        result = runner.invoke(app, ["send", "key_value", "fooy", "42", "-c", str(path)])

        assert result.exit_code == 0
        assert udp_server.recvfrom(1024)[0] == b"fooy:42|kv\n"

    def test_invalid_flavor(self, runner):
        result = runner.invoke(app, ["send", "counter", "hits", "--flavor", "graphite"])

        assert result.exit_code == 1
        assert "graphite" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(app, ["send", "counter", "hits", "-c", str(tmp_path / "x.yaml")])
        assert result.exit_code == 1

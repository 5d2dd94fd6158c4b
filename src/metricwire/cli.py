"""Command-line interface for metricwire."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from metricwire.backends import UDPBackend
from metricwire.config import BackendConfig, ConfigError, parse_port
from metricwire.formatter import UNSUPPORTED_FOR_FLAVOR, format_metric, required_flavors
from metricwire.logging import configure_logging
from metricwire.types import Flavor, Metric, MetricKind, MetricValidationError

app = typer.Typer(
    name="metricwire",
    help="Format and send StatsD-style metrics over UDP",
    add_completion=False,
)


HostOption = Annotated[Optional[str], typer.Option("--host", help="Collector host")]
PortOption = Annotated[Optional[int], typer.Option("--port", help="Collector port")]
FlavorOption = Annotated[
    Optional[str],
    typer.Option("--flavor", "-f", help="statsd, datadog, statsite or other"),
]
TagOption = Annotated[
    Optional[list[str]],
    typer.Option("--tag", "-t", help="Tag to attach (repeatable)"),
]
SampleRateOption = Annotated[
    float, typer.Option("--sample-rate", help="Sample rate in (0, 1]")
]
MetaOption = Annotated[
    Optional[list[str]],
    typer.Option("--meta", "-m", help="key=value metadata for events and service checks"),
]
StrictOption = Annotated[
    bool, typer.Option("--strict", help="Reject unsupported metadata instead of dropping it")
]
ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", "-c", help="Config file (YAML, TOML or JSON)")
]


def _parse_meta(items: list[str] | None) -> dict[str, str]:
    meta: dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise MetricValidationError(f"Expected key=value, got {item!r}")
        meta[key.strip()] = value
    return meta


def _build_metric(
    kind: str,
    name: str,
    value: str | None,
    sample_rate: float,
    tags: list[str] | None,
    meta: list[str] | None,
) -> Metric:
    metric_kind = MetricKind.from_string(kind)
    metadata = _parse_meta(meta)

    parsed: object
    if value is None:
        if metric_kind is MetricKind.COUNTER:
            parsed = 1
        else:
            raise MetricValidationError(f"A value is required for {metric_kind.name.lower()}")
    elif metric_kind in (MetricKind.EVENT, MetricKind.SET, MetricKind.SERVICE_CHECK):
        parsed = value
    else:
        parsed = _parse_number(value)

    return Metric(
        kind=metric_kind,
        name=name,
        value=parsed,
        sample_rate=sample_rate,
        tags=tags or (),
        metadata=metadata,
    )


def _parse_number(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        raise MetricValidationError(f"Expected a number, got {value!r}") from None


def _resolve_config(
    config_file: Path | None,
    host: str | None,
    port: int | None,
    flavor: str | None,
    strict: bool,
) -> BackendConfig:
    config = BackendConfig.load(config_file) if config_file else BackendConfig.from_env()
    if host:
        config.host = host
    if port is not None:
        config.port = parse_port(port)
    if flavor:
        config.flavor = Flavor.from_string(flavor)
    if strict:
        config.strict = True
    return config


@app.command(name="format")
def format_cmd(
    kind: Annotated[str, typer.Argument(help="Metric kind (counter, gauge, event, ...)")],
    name: Annotated[str, typer.Argument(help="Metric name or event title")],
    value: Annotated[Optional[str], typer.Argument(help="Value, event text or check status")] = None,
    flavor: FlavorOption = "datadog",
    tags: TagOption = None,
    sample_rate: SampleRateOption = 1.0,
    meta: MetaOption = None,
    strict: StrictOption = False,
) -> None:
    """Print the datagram for a metric without sending it."""
    try:
        metric = _build_metric(kind, name, value, sample_rate, tags, meta)
        target = Flavor.from_string(flavor or "datadog")
        result = format_metric(metric, target, strict=strict)
    except (MetricValidationError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if result.reason == UNSUPPORTED_FOR_FLAVOR:
        required = ", ".join(f.value for f in required_flavors(metric.kind))
        typer.echo(
            f"Error: {metric.kind.name.lower()} is {result.reason} {target.value} "
            f"(requires {required})",
            err=True,
        )
        raise typer.Exit(1)
    if not result.ok:
        typer.echo(f"Error: {result.reason}: {metric.value!r}", err=True)
        raise typer.Exit(1)

    typer.echo(result.packet, nl=not result.packet.endswith("\n"))


@app.command(name="send")
def send_cmd(
    kind: Annotated[str, typer.Argument(help="Metric kind (counter, gauge, event, ...)")],
    name: Annotated[str, typer.Argument(help="Metric name or event title")],
    value: Annotated[Optional[str], typer.Argument(help="Value, event text or check status")] = None,
    host: HostOption = None,
    port: PortOption = None,
    flavor: FlavorOption = None,
    tags: TagOption = None,
    sample_rate: SampleRateOption = 1.0,
    meta: MetaOption = None,
    strict: StrictOption = False,
    config_file: ConfigOption = None,
    log_level: Annotated[
        str, typer.Option("--log-level", help="debug, info, warning or error")
    ] = "warning",
) -> None:
    """Send one metric to the collector."""
    configure_logging(level=log_level)

    try:
        config = _resolve_config(config_file, host, port, flavor, strict)
        metric = _build_metric(kind, name, value, sample_rate, tags, meta)
        backend = UDPBackend(config)
        try:
            backend.collect(metric)
        finally:
            backend.close()
    except (MetricValidationError, ConfigError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Emitted {metric.kind.name.lower()} {metric.name} to {config.server}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

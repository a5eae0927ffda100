"""Prometheus metric definitions and exporter self-metrics."""

from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from .models import MetricKind

NAMESPACE = "gaiad"
EXPORTER_NAMESPACE = "gaiad_exporter"
LABEL_NAMES = ("node_id", "chain_id")

UPSTREAM_REQUEST_BUCKETS = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty name components with underscores."""

    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    """Static descriptor for one labeled metric family."""

    name: str
    documentation: str
    kind: MetricKind
    labelnames: tuple[str, ...] = LABEL_NAMES

    def new_family(self) -> Metric:
        """Return an empty family ready to receive samples."""

        if self.kind == "counter":
            return CounterMetricFamily(self.name, self.documentation, labels=self.labelnames)

        return GaugeMetricFamily(self.name, self.documentation, labels=self.labelnames)


LATEST_BLOCK_HEIGHT = MetricDefinition(
    name=build_fq_name(NAMESPACE, "", "latest_block_height"),
    documentation="Current block number (samples are exposed as gaiad_latest_block_height_total).",
    kind="counter",
)

LATEST_BLOCK_TIME_DIFF = MetricDefinition(
    name=build_fq_name(NAMESPACE, "", "latest_block_time_diff"),
    documentation="Difference between current time and the latest block time.",
    kind="gauge",
)

NUMBER_OF_PEERS = MetricDefinition(
    name=build_fq_name(NAMESPACE, "", "number_of_peers"),
    documentation="Number of peers.",
    kind="gauge",
)

CHAIN_METRIC_DEFINITIONS = (LATEST_BLOCK_HEIGHT, LATEST_BLOCK_TIME_DIFF, NUMBER_OF_PEERS)


@dataclass(slots=True)
class ExporterMetrics:
    up: Gauge
    scrape_duration: Gauge


@dataclass(slots=True)
class UpstreamMetrics:
    request_duration: Histogram
    errors: Counter

    def record_request_duration(self, api: str, duration_seconds: float) -> None:
        self.request_duration.labels(api=api).observe(duration_seconds)

    def record_error(self, api: str, error_type: str) -> None:
        self.errors.labels(api=api, error_type=error_type).inc()


@dataclass(slots=True)
class MetricsBundle:
    registry: CollectorRegistry
    exporter: ExporterMetrics
    upstream: UpstreamMetrics


def create_metrics(registry: CollectorRegistry | None = None) -> MetricsBundle:
    registry = registry or CollectorRegistry()

    exporter = ExporterMetrics(
        up=Gauge(
            build_fq_name(EXPORTER_NAMESPACE, "", "up"),
            "Indicates whether the exporter is serving (1 for up, 0 for down).",
            registry=registry,
        ),
        scrape_duration=Gauge(
            build_fq_name(EXPORTER_NAMESPACE, "scrape", "duration_seconds"),
            "Duration of the most recent successful scrape of the upstream daemon.",
            registry=registry,
        ),
    )

    upstream = UpstreamMetrics(
        request_duration=Histogram(
            build_fq_name(EXPORTER_NAMESPACE, "upstream", "request_duration_seconds"),
            "Duration of successful upstream API requests.",
            labelnames=("api",),
            buckets=UPSTREAM_REQUEST_BUCKETS,
            registry=registry,
        ),
        errors=Counter(
            build_fq_name(EXPORTER_NAMESPACE, "upstream", "errors"),
            "Total number of failed upstream API requests by error type.",
            labelnames=("api", "error_type"),
            registry=registry,
        ),
    )

    return MetricsBundle(
        registry=registry,
        exporter=exporter,
        upstream=upstream,
    )


__all__ = [
    "CHAIN_METRIC_DEFINITIONS",
    "EXPORTER_NAMESPACE",
    "ExporterMetrics",
    "LABEL_NAMES",
    "LATEST_BLOCK_HEIGHT",
    "LATEST_BLOCK_TIME_DIFF",
    "MetricDefinition",
    "MetricsBundle",
    "NAMESPACE",
    "NUMBER_OF_PEERS",
    "UpstreamMetrics",
    "build_fq_name",
    "create_metrics",
]

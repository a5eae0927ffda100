"""Prometheus collector that scrapes the upstream daemon on every collection."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterator

from prometheus_client.core import Metric
from prometheus_client.registry import Collector

from .exceptions import ScrapeError, UpstreamError
from .fetchers import NetworkFetcher, StatusFetcher
from .logging import build_log_extra, get_logger, timed
from .metrics import (
    CHAIN_METRIC_DEFINITIONS,
    LATEST_BLOCK_HEIGHT,
    LATEST_BLOCK_TIME_DIFF,
    NUMBER_OF_PEERS,
    MetricsBundle,
)
from .models import MetricSample, ScrapeLabels, ScrapeResult
from .upstream import UpstreamClient

LOGGER = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_samples(result: ScrapeResult) -> list[MetricSample]:
    """Convert one scrape's upstream documents into labeled samples.

    Every sample carries the identity captured from the status document.
    """
    labels = ScrapeLabels.from_status(result.status)

    return [
        MetricSample(
            name=LATEST_BLOCK_HEIGHT.name,
            kind=LATEST_BLOCK_HEIGHT.kind,
            value=result.status.latest_block_height,
            labels=labels,
        ),
        MetricSample(
            name=LATEST_BLOCK_TIME_DIFF.name,
            kind=LATEST_BLOCK_TIME_DIFF.kind,
            value=result.status.block_time_diff(result.observed_at),
            labels=labels,
        ),
        MetricSample(
            name=NUMBER_OF_PEERS.name,
            kind=NUMBER_OF_PEERS.kind,
            value=result.network.peer_count,
            labels=labels,
        ),
    ]


class GaiadCollector(Collector):
    """Fetches ``/status`` then ``/net_info`` and emits the chain metric families.

    Holds no state between collections; concurrent calls only share the
    read-only client configuration.
    """

    def __init__(
        self,
        client: UpstreamClient,
        *,
        metrics: MetricsBundle | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._status_fetcher = StatusFetcher(client)
        self._network_fetcher = NetworkFetcher(client)
        self._metrics = metrics
        self._clock = clock or _utc_now

    @property
    def client(self) -> UpstreamClient:
        return self._client

    def describe(self) -> list[Metric]:
        return [definition.new_family() for definition in CHAIN_METRIC_DEFINITIONS]

    def fetch(self) -> ScrapeResult:
        """Run both upstream requests for one scrape.

        Raises:
            ScrapeError: If either request or document extraction fails.
        """
        try:
            status = self._status_fetcher.fetch()
            observed_at = self._clock()
            network = self._network_fetcher.fetch()
        except UpstreamError as exc:
            if self._metrics is not None:
                self._metrics.upstream.record_error(exc.api or "unknown", exc.error_type)

            LOGGER.error(
                "Scrape of %s failed: %s",
                self._client.base_url or "<unset>",
                exc,
                extra=build_log_extra(api=exc.api, url=exc.url, error_type=exc.error_type),
            )

            raise ScrapeError(
                f"Scrape failed while calling {exc.api}: {exc.message}",
                error_type=exc.error_type,
                api=exc.api,
            ) from exc

        return ScrapeResult(status=status, network=network, observed_at=observed_at)

    def scrape(self) -> list[MetricSample]:
        with timed(LOGGER, "scrape_completed", extra=build_log_extra(url=self._client.base_url)) as timing:
            result = self.fetch()

        if self._metrics is not None:
            self._metrics.exporter.scrape_duration.set(timing.elapsed)

        return build_samples(result)

    def collect(self) -> Iterator[Metric]:
        samples = self.scrape()

        families = {definition.name: definition.new_family() for definition in CHAIN_METRIC_DEFINITIONS}

        for sample in samples:
            families[sample.name].add_metric(list(sample.labels.as_tuple()), sample.value)

        yield from families.values()


__all__ = [
    "GaiadCollector",
    "build_samples",
]

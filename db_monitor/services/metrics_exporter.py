"""Prometheus exposition of the metric state.

A custom collector reads ``MetricState.snapshot()`` on every scrape, so the
payload always reflects the latest result per target without any gauge
bookkeeping in the probe path. Each target gets three series labeled by
``host``:

- ``Db_take_time``: probe latency in milliseconds, 0 when down. The capital D
  is the name earlier deployments scraped, kept so dashboards keep working
- ``db_status``: 0 up, 1 down
- ``db_last_probe_timestamp_seconds``: when the result was observed
"""

import logging
from typing import Iterator, Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest, start_http_server
from prometheus_client.core import GaugeMetricFamily, Metric

from .metric_state import MetricState

HOST_LABEL = "host"


class MetricStateCollector:
    """Render the metric state as Prometheus gauge families."""

    def __init__(self, state: MetricState) -> None:
        self._state = state

    def collect(self) -> Iterator[Metric]:
        take_time = GaugeMetricFamily(
            "Db_take_time",
            "Time elapsed probing the database (ms)",
            labels=[HOST_LABEL],
        )
        status = GaugeMetricFamily(
            "db_status",
            "Check database status: 0 - up, 1 - down",
            labels=[HOST_LABEL],
        )
        observed_at = GaugeMetricFamily(
            "db_last_probe_timestamp_seconds",
            "Unix time of the latest probe result",
            labels=[HOST_LABEL],
        )

        for host, result in sorted(self._state.snapshot().items()):
            take_time.add_metric([host], result.latency_ms)
            status.add_metric([host], result.status.to_gauge_value())
            observed_at.add_metric([host], result.timestamp)

        yield take_time
        yield status
        yield observed_at


class MetricsExporter:
    """Serve the metric state over HTTP for Prometheus scraping."""

    def __init__(
        self,
        state: MetricState,
        logger: Optional[logging.Logger] = None,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)
        self.registry = registry or CollectorRegistry()
        self.registry.register(MetricStateCollector(state))
        self._server = None
        self._thread = None

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    @property
    def port(self) -> Optional[int]:
        """Bound port once started (useful when started on port 0)."""
        return self._server.server_port if self._server else None

    def render(self) -> bytes:
        return generate_latest(self.registry)

    def start(self, host: str, port: int) -> None:
        """Start the exposition HTTP server in a background thread."""
        if self._server is not None:
            raise RuntimeError("Metrics server already started")

        self._server, self._thread = start_http_server(port, addr=host, registry=self.registry)
        self.logger.info(f"Serving metrics on {host}:{self.port}/metrics")

    def stop(self) -> None:
        if self._server is None:
            return

        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        self.logger.info("Metrics server stopped")

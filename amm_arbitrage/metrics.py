"""
Prometheus metrics for the arbitrage monitor.

Exposes tick throughput, opportunity counts and non-fatal data errors.
"""

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)

from .utils import get_logger

logger = get_logger(__name__)


class MonitorMetrics:
    """
    Monitor metrics on a private registry.

    A private registry keeps several monitors (and test runs) from clashing
    on metric names in the process-wide default registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.ticks_processed_total = Counter(
            "amm_arbitrage_ticks_processed_total",
            "Total number of monitoring ticks processed",
            registry=self.registry,
        )
        self.ticks_dropped_total = Counter(
            "amm_arbitrage_ticks_dropped_total",
            "Ticks dropped because the pending queue was full",
            registry=self.registry,
        )
        self.opportunities_total = Counter(
            "amm_arbitrage_opportunities_total",
            "Opportunities emitted",
            ["hops"],
            registry=self.registry,
        )
        self.data_errors_total = Counter(
            "amm_arbitrage_data_errors_total",
            "Non-fatal data errors by kind",
            ["kind"],
            registry=self.registry,
        )
        self.paths_evaluated_total = Counter(
            "amm_arbitrage_paths_evaluated_total",
            "Candidate cycles evaluated",
            registry=self.registry,
        )
        self.tick_duration_seconds = Histogram(
            "amm_arbitrage_tick_duration_seconds",
            "Wall time spent processing one tick",
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )
        self.known_pairs = Gauge(
            "amm_arbitrage_known_pairs",
            "Pairs with at least one reserve snapshot",
            registry=self.registry,
        )

    def record_tick(self, duration_sec: float, known_pairs: int) -> None:
        self.ticks_processed_total.inc()
        self.tick_duration_seconds.observe(duration_sec)
        self.known_pairs.set(known_pairs)

    def record_opportunity(self, hops: int) -> None:
        self.opportunities_total.labels(hops=str(hops)).inc()

    def record_data_error(self, kind: str) -> None:
        self.data_errors_total.labels(kind=kind).inc()

    def render(self) -> bytes:
        """Prometheus text exposition of this registry."""
        return generate_latest(self.registry)

    def serve(self, port: int) -> None:
        start_http_server(port, registry=self.registry)
        logger.info(f"Metrics server listening on :{port}")

"""
Unit tests for Prometheus metrics
"""

import pytest
from prometheus_client import CollectorRegistry

from amm_arbitrage.metrics import MonitorMetrics


@pytest.fixture
def test_registry():
    """Create a test-specific registry"""
    return CollectorRegistry()


@pytest.fixture
def metrics(test_registry):
    return MonitorMetrics(test_registry)


class TestMonitorMetrics:
    def test_initialization(self, metrics, test_registry):
        assert metrics.registry is test_registry
        assert hasattr(metrics, "ticks_processed_total")
        assert hasattr(metrics, "opportunities_total")

    def test_tick_metrics(self, metrics, test_registry):
        metrics.record_tick(0.2, known_pairs=5)
        metrics.record_tick(0.4, known_pairs=6)

        assert test_registry.get_sample_value("amm_arbitrage_ticks_processed_total") == 2
        assert test_registry.get_sample_value("amm_arbitrage_known_pairs") == 6
        assert (
            test_registry.get_sample_value("amm_arbitrage_tick_duration_seconds_count")
            == 2
        )

    def test_labelled_counters(self, metrics, test_registry):
        metrics.record_opportunity(3)
        metrics.record_opportunity(3)
        metrics.record_data_error("market_data")

        assert (
            test_registry.get_sample_value(
                "amm_arbitrage_opportunities_total", {"hops": "3"}
            )
            == 2
        )
        assert (
            test_registry.get_sample_value(
                "amm_arbitrage_data_errors_total", {"kind": "market_data"}
            )
            == 1
        )

    def test_render(self, metrics):
        metrics.record_data_error("fee_estimate")
        output = metrics.render().decode("utf-8")
        assert "amm_arbitrage_data_errors_total" in output
        assert 'kind="fee_estimate"' in output

    def test_private_registries_do_not_clash(self):
        # Creating two instances must not raise duplicate-timeseries errors
        first = MonitorMetrics()
        second = MonitorMetrics()
        first.record_opportunity(2)
        assert (
            second.registry.get_sample_value(
                "amm_arbitrage_opportunities_total", {"hops": "2"}
            )
            is None
        )

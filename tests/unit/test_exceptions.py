"""Tests for the exceptions module."""

import pytest

from amm_arbitrage.exceptions import (
    ArbitrageError,
    ConfigurationError,
    DataError,
    DegeneratePairError,
    ExecutionError,
    FeeEstimateError,
    MarketDataUnavailable,
    MissingPairError,
    MonitorStateError,
)


def test_base_exception():
    """Test the base exception class."""
    error = ArbitrageError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = ArbitrageError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    error = ConfigurationError("Config error", {"config_file": "test.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "test.yaml"
    assert isinstance(error, ArbitrageError)


def test_monitor_state_error():
    error = MonitorStateError("Cannot restart", state="stopped")
    assert error.state == "stopped"
    assert isinstance(error, ArbitrageError)


@pytest.mark.parametrize(
    "cls", [DataError, MarketDataUnavailable, MissingPairError, DegeneratePairError]
)
def test_data_errors(cls):
    error = cls("No data", source="factory", pair="WETH/USDC")
    assert error.source == "factory"
    assert error.pair == "WETH/USDC"
    assert isinstance(error, DataError)
    assert isinstance(error, ArbitrageError)


def test_fee_estimate_error():
    error = FeeEstimateError("RPC down", endpoint="eth_gasPrice")
    assert error.endpoint == "eth_gasPrice"
    assert not isinstance(error, DataError)


def test_execution_error():
    error = ExecutionError("Swap reverted", path="WETH -> DAI -> WETH", tx_hash="0xabc")
    assert error.path == "WETH -> DAI -> WETH"
    assert error.tx_hash == "0xabc"
    assert isinstance(error, ArbitrageError)


def test_exception_chaining():
    try:
        try:
            raise ValueError("Original error")
        except ValueError as e:
            raise MarketDataUnavailable("Wrapped error") from e
    except MarketDataUnavailable as e:
        assert str(e) == "Wrapped error"
        assert isinstance(e.__cause__, ValueError)

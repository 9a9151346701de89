"""
Unit tests for amm_arbitrage.utils module.
"""

import logging
from decimal import Decimal

import pytest

from amm_arbitrage.utils import (
    floor_units,
    format_duration,
    from_base_units,
    get_current_timestamp,
    get_logger,
    normalize_address,
    to_base_units,
)


class TestTimestampUtils:
    def test_get_current_timestamp(self):
        timestamp = get_current_timestamp()
        assert isinstance(timestamp, float)
        assert timestamp > 0

    def test_format_duration(self):
        assert format_duration(0.5) == "500ms"
        assert format_duration(1.5) == "1.50s"
        assert format_duration(90) == "1.5m"
        assert format_duration(7200) == "2.0h"


class TestUnits:
    def test_to_base_units(self):
        assert to_base_units("1", 18) == 10**18
        assert to_base_units(Decimal("0.1234567"), 6) == 123456
        assert to_base_units(2, 0) == 2

    def test_from_base_units(self):
        assert from_base_units(1_500_000, 6) == Decimal("1.5")

    def test_floor_units(self):
        assert floor_units(Decimal("10.99")) == 10
        assert floor_units(Decimal("0.5")) == 0


class TestValidation:
    def test_normalize_address(self):
        assert normalize_address(" 0xABCdef ") == "0xabcdef"
        with pytest.raises(ValueError):
            normalize_address("")
        with pytest.raises(ValueError):
            normalize_address(None)


class TestLogging:
    def test_get_logger_adds_one_handler(self):
        logger = get_logger("amm_arbitrage.tests.single_handler")
        again = get_logger("amm_arbitrage.tests.single_handler")
        assert logger is again
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO

    def test_get_logger_keeps_explicit_level(self):
        name = "amm_arbitrage.tests.debug_level"
        logging.getLogger(name).setLevel(logging.DEBUG)
        assert get_logger(name).level == logging.DEBUG

"""
Common utilities and helper functions for the arbitrage monitor.

This module provides centralized helpers for timestamps, address
normalisation, unit conversion and logger construction.
"""

import logging
import time
from decimal import ROUND_DOWN, Decimal
from typing import Union


# Timestamp utilities
def get_current_timestamp() -> float:
    """Get current Unix timestamp as float."""
    return time.time()


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"


# Address utilities
def normalize_address(address: str) -> str:
    """Lower-case an EVM address so comparisons ignore checksum casing."""
    if not isinstance(address, str) or not address:
        raise ValueError(f"Invalid address: {address!r}")
    return address.strip().lower()


# Unit conversion
def to_base_units(amount: Union[int, float, str, Decimal], decimals: int) -> int:
    """Convert a human amount (e.g. 1.5 WETH) to integer base units, rounding down."""
    scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_base_units(raw: Union[int, Decimal], decimals: int) -> Decimal:
    """Convert integer base units to a human Decimal amount."""
    return Decimal(raw) / (Decimal(10) ** decimals)


def floor_units(value: Decimal) -> int:
    """Truncate a Decimal amount of base units to an int."""
    return int(value.to_integral_value(rounding=ROUND_DOWN))


# Logging utilities
def get_logger(name: str, level: Union[str, int] = logging.INFO) -> logging.Logger:
    """
    Get a logger with the monitor's console format.

    Args:
        name: Logger name (typically __name__)
        level: Level applied when the logger has none set yet

    Returns:
        Logger with a single stream handler
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger

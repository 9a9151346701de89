"""
Dependency injection interfaces for the monitor's external collaborators.

The core never talks to a chain directly: market data, fee rates and time are
supplied through these protocols so production wiring (web3) and tests
(static fixtures, deterministic clocks) plug in the same way.
"""

import time
from typing import Protocol, runtime_checkable

from .types import Asset, Pair


@runtime_checkable
class MarketDataSource(Protocol):
    """Supplies current reserves for a pair."""

    async def fetch_pair(self, asset_a: Asset, asset_b: Asset) -> Pair:
        """
        Return the current reserve snapshot for {asset_a, asset_b}.

        Raises:
            MarketDataUnavailable: If the pair cannot be resolved upstream
        """
        ...


@runtime_checkable
class FeeEstimator(Protocol):
    """Supplies the current network fee rate (wei per gas unit)."""

    async def current_rate(self) -> int:
        """
        Raises:
            FeeEstimateError: If the rate cannot be determined
        """
        ...


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        return time.time()


class DeterministicTimeProvider:
    """Deterministic time provider for testing and paper runs."""

    def __init__(self, start_time: float = 1640995200.0):  # 2022-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        return self._current_time

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds

    def set_time(self, timestamp: float) -> None:
        self._current_time = timestamp

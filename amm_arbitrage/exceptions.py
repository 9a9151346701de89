"""
Exception hierarchy for the AMM cycle arbitrage monitor.

Provides specific exception types for different error categories so a
monitoring tick can classify a failure and skip only the affected pair or path.
"""

from typing import Any, Dict, Optional


class ArbitrageError(Exception):
    """Base exception for all arbitrage monitor related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbitrageError):
    """Raised when there are configuration-related issues."""

    pass


class MonitorStateError(ArbitrageError):
    """Raised when a monitor lifecycle transition is not allowed."""

    def __init__(
        self,
        message: str,
        state: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.state = state


class DataError(ArbitrageError):
    """Raised when market data is missing or unusable."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        pair: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source
        self.pair = pair


class MarketDataUnavailable(DataError):
    """Raised by a market data source when a pair cannot be resolved upstream."""

    pass


class MissingPairError(DataError):
    """Raised when a path leg has no known pair snapshot."""

    pass


class DegeneratePairError(DataError):
    """Raised when a pair has a zero reserve on either side."""

    pass


class FeeEstimateError(ArbitrageError):
    """Raised when the network fee rate cannot be determined."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class ExecutionError(ArbitrageError):
    """Raised when trade submission fails."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.path = path
        self.tx_hash = tx_hash

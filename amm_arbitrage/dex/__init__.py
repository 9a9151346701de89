"""
Chain-facing collaborators: web3 market data, fee rates, ticks and execution.
"""

from .executor import DexExecutor, ExecutionConfig, ExecutionResult
from .market_data import (
    StaticFeeEstimator,
    StaticMarketDataSource,
    Web3FeeEstimator,
    Web3MarketDataSource,
)
from .ticks import BlockTickSource, IntervalTickSource

__all__ = [
    "DexExecutor",
    "ExecutionConfig",
    "ExecutionResult",
    "StaticFeeEstimator",
    "StaticMarketDataSource",
    "Web3FeeEstimator",
    "Web3MarketDataSource",
    "BlockTickSource",
    "IntervalTickSource",
]

"""
AMM Cycle Arbitrage Monitor.

Watches constant-product liquidity pairs, keeps a live token graph, searches it
for multi-hop cycles rooted at a base asset and reports the ones whose net
return after execution costs clears a profit threshold.
"""

PROJECT_NAME = "amm-cycle-arbitrage"
VERSION = "0.1.0"

# Export main components for easier imports
from amm_arbitrage.config import MonitorConfig, load_config, parse_config
from amm_arbitrage.costs import GasCostModel
from amm_arbitrage.evaluator import ArbitrageEvaluator
from amm_arbitrage.graph import TokenGraph
from amm_arbitrage.monitor import MonitorLoop, MonitorState
from amm_arbitrage.pair_store import PairStore
from amm_arbitrage.path_finder import PathFinder
from amm_arbitrage.simulator import TradeSimulator
from amm_arbitrage.types import (
    Asset,
    DataErrorEvent,
    Opportunity,
    Pair,
    Path,
    SimulatedTrade,
    TickEvent,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "MonitorConfig",
    "load_config",
    "parse_config",
    "GasCostModel",
    "ArbitrageEvaluator",
    "TokenGraph",
    "MonitorLoop",
    "MonitorState",
    "PairStore",
    "PathFinder",
    "TradeSimulator",
    "Asset",
    "DataErrorEvent",
    "Opportunity",
    "Pair",
    "Path",
    "SimulatedTrade",
    "TickEvent",
]

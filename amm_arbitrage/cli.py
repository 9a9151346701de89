"""
Command line entry point for the cycle arbitrage monitor.

MODES:
  1. Paper (default): monitor and log opportunities, no execution
  2. Dry Run: hand opportunities to the executor, which logs what it would send
  3. Live: execute real transactions (REQUIRES the private key env var)

Usage:
  # Paper monitoring
  amm-arb-monitor --config configs/mainnet.example.yaml

  # One tick and exit
  amm-arb-monitor --config configs/mainnet.example.yaml --once

  # Live execution (DANGEROUS - requires private key)
  export PRIVATE_KEY="0x..."
  amm-arb-monitor --config configs/mainnet.example.yaml --live

Environment Variables:
  RPC_URL: JSON-RPC endpoint (name configurable with rpc_url_env)
  PRIVATE_KEY: Signing key for --live (name configurable with
               execution.private_key_env)
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from web3 import Web3

import logging_config

from .config import MonitorConfig, load_config
from .dex import (
    BlockTickSource,
    DexExecutor,
    ExecutionConfig,
    IntervalTickSource,
    Web3FeeEstimator,
    Web3MarketDataSource,
)
from .exceptions import ArbitrageError, ConfigurationError
from .metrics import MonitorMetrics
from .monitor import MonitorLoop
from .types import TickEvent
from .utils import get_current_timestamp, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AMM cycle arbitrage monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to monitor config YAML file",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Optional .env file with RPC_URL / PRIVATE_KEY",
    )

    # Execution mode
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--paper",
        action="store_true",
        help="Paper mode (monitor only, no execution) [DEFAULT]",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (executor logs swaps, sends nothing)",
    )
    mode_group.add_argument(
        "--live",
        action="store_true",
        help="Live mode (execute real transactions - REQUIRES PRIVATE_KEY)",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Process a single tick and exit",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Serve Prometheus metrics on this port",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--debug", action="store_true", help="Verbose logging")
    verbosity.add_argument(
        "--quiet", "-q", action="store_true", help="Warnings and errors only"
    )

    return parser.parse_args(argv)


def get_execution_config(args, config: MonitorConfig) -> Optional[ExecutionConfig]:
    """
    Build execution configuration from args, config and environment.

    Returns:
        None in paper mode
    """
    settings = config.execution
    live = args.live or (
        settings.enabled and not settings.dry_run and not (args.paper or args.dry_run)
    )
    dry_run = args.dry_run or (settings.enabled and settings.dry_run and not args.paper)

    if not (live or dry_run):
        logger.info("Execution Mode: PAPER")
        return None

    private_key = os.getenv(settings.private_key_env)
    if live and not private_key:
        raise ConfigurationError(
            f"LIVE mode requires the {settings.private_key_env} environment variable"
        )
    if live and not config.router_address:
        raise ConfigurationError("LIVE mode requires router_address in config")

    base = config.base()
    exec_config = ExecutionConfig(
        private_key=private_key,
        router_address=config.router_address,
        max_gas_price_gwei=settings.max_gas_price_gwei,
        gas_limit=settings.gas_limit,
        deadline_sec=settings.deadline_sec,
        dry_run_mode=not live,
        min_net_profit=base.to_units(settings.min_net_profit),
        receipt_timeout_sec=settings.receipt_timeout_sec,
    )

    logger.info(f"Execution Mode: {'LIVE' if live else 'DRY RUN'}")
    if live:
        key_preview = f"{private_key[:6]}...{private_key[-4:]}"
        logger.info(f"Private Key: {key_preview}")
    logger.info(f"Min Net Profit: {settings.min_net_profit} {base.symbol}")
    logger.info(f"Max Gas: {settings.max_gas_price_gwei:.1f} gwei")
    return exec_config


def connect(config: MonitorConfig) -> Web3:
    rpc_url = config.resolve_rpc_url()
    if not rpc_url:
        raise ConfigurationError(
            f"No RPC endpoint: set {config.rpc_url_env} or rpc_url in config"
        )
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
    if not web3.is_connected():
        raise ConfigurationError(f"Cannot connect to RPC at {rpc_url}")
    logger.info(f"Connected to {config.network} (chain {web3.eth.chain_id})")
    return web3


def build_monitor(config: MonitorConfig, web3: Web3, metrics: MonitorMetrics):
    if not config.factory_address:
        raise ConfigurationError("factory_address is required for on-chain monitoring")
    market_data = Web3MarketDataSource(
        web3, config.factory_address, fee=config.pair_fee
    )
    fee_estimator = Web3FeeEstimator(web3, config.gas.max_gas_price_gwei)
    return MonitorLoop(config, market_data, fee_estimator, metrics=metrics)


def tick_source(config: MonitorConfig, web3: Web3):
    if config.tick.source == "block":
        return BlockTickSource(web3, poll_sec=config.tick.poll_sec)
    return IntervalTickSource(config.tick.poll_sec)


async def run(args: argparse.Namespace) -> int:
    logger.info(f"Loading config from {args.config}...")
    config = load_config(args.config, env_file=args.env_file)

    metrics = MonitorMetrics()
    metrics_port = args.metrics_port or config.metrics_port
    if metrics_port:
        metrics.serve(metrics_port)

    web3 = connect(config)
    monitor = build_monitor(config, web3, metrics)

    executor = None
    exec_config = get_execution_config(args, config)
    if exec_config is not None:
        executor = DexExecutor(web3, exec_config)
        monitor.add_listener(executor.submit)

    try:
        if args.once:
            await monitor.start()
            block = web3.eth.block_number
            opportunities = await monitor.process_tick(
                TickEvent(block, get_current_timestamp())
            )
            logger.info(f"Single tick done: {len(opportunities)} opportunities")
            if executor is not None:
                await executor.drain()
            await monitor.stop()
        else:
            await monitor.run_forever(tick_source(config, web3))
    finally:
        if executor is not None:
            logger.info(f"Execution stats: {executor.get_stats()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup()

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0
    except ArbitrageError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

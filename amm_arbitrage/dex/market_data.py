"""
Market data and fee rate collaborators for the monitor.

Web3MarketDataSource resolves Uniswap V2 style pairs through the factory and
reads their reserves; Web3FeeEstimator reads the node's gas price. The static
variants serve fixed snapshots for paper runs and tests.
"""

import asyncio
from decimal import Decimal
from typing import Dict, Iterable, Optional

from web3 import Web3
from web3.exceptions import Web3Exception

from ..exceptions import FeeEstimateError, MarketDataUnavailable
from ..types import DEFAULT_PAIR_FEE, Asset, Pair, pair_key
from ..utils import get_logger
from .abi import UNISWAP_V2_FACTORY_ABI, ZERO_ADDRESS
from .adapters.v2 import fetch_pool_async

logger = get_logger(__name__)


class Web3MarketDataSource:
    """
    Reads constant-product reserves from a Uniswap V2 style factory.

    Pair contract addresses are cached after the first successful lookup.
    """

    def __init__(
        self,
        web3: Web3,
        factory_address: str,
        fee: Decimal = DEFAULT_PAIR_FEE,
        max_retries: int = 3,
    ):
        self.web3 = web3
        self.fee = fee
        self.max_retries = max_retries
        self.factory = web3.eth.contract(
            address=Web3.to_checksum_address(factory_address),
            abi=UNISWAP_V2_FACTORY_ABI,
        )
        self._pair_addresses: Dict[str, str] = {}

    async def resolve_pair_address(self, asset_a: Asset, asset_b: Asset) -> str:
        key = pair_key(asset_a, asset_b)
        cached = self._pair_addresses.get(key)
        if cached is not None:
            return cached

        call = self.factory.functions.getPair(
            Web3.to_checksum_address(asset_a.address),
            Web3.to_checksum_address(asset_b.address),
        ).call
        loop = asyncio.get_running_loop()
        try:
            address = await loop.run_in_executor(None, call)
        except Exception as e:
            raise MarketDataUnavailable(
                f"getPair failed for {asset_a.symbol}/{asset_b.symbol}: {e}",
                source="factory",
                pair=key,
            ) from e

        if not address or address.lower() == ZERO_ADDRESS:
            raise MarketDataUnavailable(
                f"No pool for {asset_a.symbol}/{asset_b.symbol}",
                source="factory",
                pair=key,
            )

        address = Web3.to_checksum_address(address)
        self._pair_addresses[key] = address
        logger.debug(f"Resolved {asset_a.symbol}/{asset_b.symbol} -> {address}")
        return address

    async def fetch_pair(self, asset_a: Asset, asset_b: Asset) -> Pair:
        pair_addr = await self.resolve_pair_address(asset_a, asset_b)
        try:
            token0, token1, reserve0, reserve1 = await fetch_pool_async(
                self.web3, pair_addr, self.max_retries
            )
        except Web3Exception as e:
            raise MarketDataUnavailable(
                str(e), source="pair", pair=pair_key(asset_a, asset_b)
            ) from e

        token0, token1 = token0.lower(), token1.lower()
        if (token0, token1) == (asset_a.key, asset_b.key):
            reserve_a, reserve_b = reserve0, reserve1
        elif (token0, token1) == (asset_b.key, asset_a.key):
            reserve_a, reserve_b = reserve1, reserve0
        else:
            raise MarketDataUnavailable(
                f"Pool {pair_addr} holds {token0}/{token1}, "
                f"expected {asset_a.symbol}/{asset_b.symbol}",
                source="pair",
                pair=pair_key(asset_a, asset_b),
            )

        return Pair(
            asset_a=asset_a,
            asset_b=asset_b,
            reserve_a=reserve_a,
            reserve_b=reserve_b,
            fee=self.fee,
            address=pair_addr,
        )


class Web3FeeEstimator:
    """Current gas price in wei, optionally capped."""

    def __init__(self, web3: Web3, max_gas_price_gwei: Optional[float] = None):
        self.web3 = web3
        self.max_gas_price_wei = (
            Web3.to_wei(max_gas_price_gwei, "gwei") if max_gas_price_gwei else None
        )

    async def current_rate(self) -> int:
        loop = asyncio.get_running_loop()
        try:
            gas_price = await loop.run_in_executor(
                None, lambda: self.web3.eth.gas_price
            )
        except Exception as e:
            raise FeeEstimateError(
                f"gas_price query failed: {e}", endpoint="eth_gasPrice"
            ) from e

        gas_price = int(gas_price)
        if self.max_gas_price_wei is not None and gas_price > self.max_gas_price_wei:
            logger.debug(
                f"Gas price {Web3.from_wei(gas_price, 'gwei'):.2f} gwei capped at "
                f"{Web3.from_wei(self.max_gas_price_wei, 'gwei'):.2f} gwei"
            )
            gas_price = int(self.max_gas_price_wei)
        return gas_price


class StaticMarketDataSource:
    """Serves fixed pair snapshots; unknown pairs raise MarketDataUnavailable."""

    def __init__(self, pairs: Iterable[Pair] = ()):
        self._pairs: Dict[str, Pair] = {}
        self._failures: Dict[str, Exception] = {}
        self.fetch_count = 0
        for pair in pairs:
            self.set_pair(pair)

    def set_pair(self, pair: Pair) -> None:
        self._pairs[pair.key] = pair
        self._failures.pop(pair.key, None)

    def fail_pair(self, asset_a: Asset, asset_b: Asset, error: Exception) -> None:
        """Make every fetch of {asset_a, asset_b} raise error."""
        self._failures[pair_key(asset_a, asset_b)] = error

    async def fetch_pair(self, asset_a: Asset, asset_b: Asset) -> Pair:
        self.fetch_count += 1
        key = pair_key(asset_a, asset_b)
        if key in self._failures:
            raise self._failures[key]
        pair = self._pairs.get(key)
        if pair is None:
            raise MarketDataUnavailable(
                f"No snapshot for {asset_a.symbol}/{asset_b.symbol}",
                source="static",
                pair=key,
            )
        return pair


class StaticFeeEstimator:
    """Fixed fee rate, or a fixed error."""

    def __init__(self, rate: int = 0, error: Optional[Exception] = None):
        self.rate = rate
        self.error = error

    async def current_rate(self) -> int:
        if self.error is not None:
            raise self.error
        return self.rate

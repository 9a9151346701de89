"""
Uniswap V2 style adapter for constant-product AMM pools.

Implements reserve fetching and swap pricing using the x*y=k formula
with fees embedded in the swap calculation.
"""

import asyncio
from decimal import Decimal, localcontext
from typing import NamedTuple, Tuple, Union

from web3 import Web3
from web3.exceptions import Web3Exception

from ..abi import UNISWAP_V2_PAIR_ABI

# Digits used for pricing math, independent of the caller's decimal context
PRECISION = 50

Number = Union[int, Decimal]


class SwapQuote(NamedTuple):
    """Output, prices and impact of one constant-product swap."""

    amount_out: Decimal
    mid_price: Decimal
    execution_price: Decimal
    price_impact: Decimal


def _is_rate_limit(error_msg: str) -> bool:
    return (
        "429" in error_msg
        or "Too Many Requests" in error_msg
        or "-32005" in error_msg  # BSC/Ethereum rate limit code
        or "limit exceeded" in error_msg.lower()
    )


async def fetch_pool_async(
    web3: Web3, pair_addr: str, max_retries: int = 3
) -> Tuple[str, str, int, int]:
    """
    Fetch token addresses and reserves from a Uniswap V2 style pair.

    The synchronous RPC calls run in the default thread pool, with
    exponential backoff on rate limit errors.

    Args:
        web3: Web3 instance connected to the chain
        pair_addr: Checksummed address of the pair contract
        max_retries: Maximum number of attempts (default: 3)

    Returns:
        Tuple of (token0_addr, token1_addr, reserve0, reserve1)

    Raises:
        Web3Exception: If RPC calls fail after all retries
        ValueError: If pair address is invalid
    """
    if not Web3.is_checksum_address(pair_addr):
        raise ValueError(f"Invalid pair address: {pair_addr}")

    pair = web3.eth.contract(address=pair_addr, abi=UNISWAP_V2_PAIR_ABI)
    last_error = None

    for attempt in range(max_retries):
        try:
            loop = asyncio.get_running_loop()
            token0, token1, reserves = await asyncio.gather(
                loop.run_in_executor(None, pair.functions.token0().call),
                loop.run_in_executor(None, pair.functions.token1().call),
                loop.run_in_executor(None, pair.functions.getReserves().call),
            )
            return (
                Web3.to_checksum_address(token0),
                Web3.to_checksum_address(token1),
                int(reserves[0]),
                int(reserves[1]),
            )
        except Exception as e:
            last_error = e
            error_msg = str(e)
            if _is_rate_limit(error_msg) and attempt < max_retries - 1:
                # Exponential backoff with jitter: 2s, 4s, 8s
                await asyncio.sleep((2 ** (attempt + 1)) + (attempt * 0.5))
                continue
            raise Web3Exception(
                f"Failed to fetch pool {pair_addr}: {error_msg}"
            ) from e

    raise Web3Exception(
        f"Failed to fetch pool {pair_addr} after {max_retries} retries: {last_error}"
    ) from last_error


def swap_out(
    amount_in: Number, reserve_in: Number, reserve_out: Number, fee: Number
) -> Decimal:
    """
    Calculate output amount for a V2 swap using constant-product formula.

    Formula (with fee embedded):
        amountInWithFee = amountIn * (1 - fee)
        amountOut = reserveOut - (reserveIn * reserveOut) / (reserveIn + amountInWithFee)

    Which is algebraically the usual
    amountInWithFee * reserveOut / (reserveIn + amountInWithFee).

    Raises:
        ValueError: If inputs are invalid (negative, zero reserves, etc.)
    """
    amount_in = Decimal(amount_in)
    reserve_in = Decimal(reserve_in)
    reserve_out = Decimal(reserve_out)
    fee = Decimal(fee)

    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(
            f"Reserves must be positive: in={reserve_in}, out={reserve_out}"
        )
    if fee < 0 or fee >= 1:
        raise ValueError(f"Fee must be in [0, 1): {fee}")

    with localcontext() as ctx:
        ctx.prec = PRECISION
        amount_in_with_fee = amount_in * (Decimal(1) - fee)

        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in + amount_in_with_fee

        return numerator / denominator


def price_quote_in_out(
    amount_in: Number, reserve_in: Number, reserve_out: Number, fee: Number
) -> Tuple[Decimal, Decimal]:
    """
    Calculate both output amount and effective price for a V2 swap.

    Returns:
        Tuple of (amount_out, effective_price)
        where effective_price = amount_out / amount_in
    """
    amount_out = swap_out(amount_in, reserve_in, reserve_out, fee)
    with localcontext() as ctx:
        ctx.prec = PRECISION
        return amount_out, amount_out / Decimal(amount_in)


def quote(
    amount_in: Number, reserve_in: Number, reserve_out: Number, fee: Number
) -> SwapQuote:
    """
    Price a swap and report its price impact.

    mid price = reserveOut / reserveIn before the trade,
    price impact = (mid - execution) / mid.
    """
    amount_out, execution_price = price_quote_in_out(
        amount_in, reserve_in, reserve_out, fee
    )
    with localcontext() as ctx:
        ctx.prec = PRECISION
        mid_price = Decimal(reserve_out) / Decimal(reserve_in)
        price_impact = (mid_price - execution_price) / mid_price
    return SwapQuote(amount_out, mid_price, execution_price, price_impact)

"""
Multi-hop trade simulation over constant-product pairs.

Each leg is priced with the V2 swap formula and its output becomes the next
leg's input. Route mid price is the product of the legs' pre-trade mid
prices, so route price impact compares what the whole cycle would return at
zero size with what it returns at the requested size.
"""

from decimal import Decimal
from typing import List, Union

from .dex.adapters.v2 import quote
from .exceptions import DegeneratePairError, MissingPairError
from .pair_store import PairStore
from .types import LegQuote, Path, SimulatedTrade
from .utils import get_logger

logger = get_logger(__name__)


class TradeSimulator:
    """Applies the AMM pricing primitive leg by leg along a path."""

    def __init__(self, pair_store: PairStore):
        self.pair_store = pair_store

    def simulate(self, path: Path, amount_in: Union[int, Decimal]) -> SimulatedTrade:
        """
        Simulate selling amount_in of path.start along the path.

        Raises:
            ValueError: If amount_in is not positive
            MissingPairError: If a leg has no known pair
            DegeneratePairError: If a leg's pair has a zero reserve
        """
        amount_in = Decimal(amount_in)
        if amount_in <= 0:
            raise ValueError(f"amount_in must be positive: {amount_in}")

        legs: List[LegQuote] = []
        amount = amount_in
        route_mid = Decimal(1)

        for asset_in, asset_out in path.legs():
            pair = self.pair_store.get(asset_in, asset_out)
            if pair is None:
                raise MissingPairError(
                    f"No pair data for {asset_in.symbol}/{asset_out.symbol}",
                    source="pair_store",
                    pair=f"{asset_in.symbol}/{asset_out.symbol}",
                )
            if pair.is_degenerate:
                raise DegeneratePairError(
                    f"Pair {pair.name} has an empty reserve",
                    source="pair_store",
                    pair=pair.name,
                    details={"reserve_a": pair.reserve_a, "reserve_b": pair.reserve_b},
                )

            reserve_in, reserve_out, _ = pair.reserves_for(asset_in)
            q = quote(amount, reserve_in, reserve_out, pair.fee)
            leg = LegQuote(
                asset_in,
                asset_out,
                amount,
                q.amount_out,
                q.mid_price,
                q.execution_price,
                q.price_impact,
            )

            legs.append(leg)
            route_mid *= leg.mid_price
            amount = leg.amount_out

        execution_price = amount / amount_in
        price_impact = (route_mid - execution_price) / route_mid

        return SimulatedTrade(
            path=path,
            amount_in=amount_in,
            legs=tuple(legs),
            amount_out=amount,
            execution_price=execution_price,
            mid_price=route_mid,
            price_impact=price_impact,
        )

    @staticmethod
    def minimum_amount_out(trade: SimulatedTrade, tolerance) -> int:
        """minOut = output * (1 - tolerance), floored to base units."""
        return trade.minimum_amount_out(tolerance)

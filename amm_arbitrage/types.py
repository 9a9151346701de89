"""
Core data types for AMM cycle arbitrage.

Amounts and reserves are expressed in each asset's base units (wei-style
integers). Derived values produced by the simulator are Decimal so that
chained constant-product legs keep full precision.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .utils import floor_units, from_base_units, normalize_address, to_base_units

DEFAULT_PAIR_FEE = Decimal("0.003")


@dataclass(frozen=True, eq=False)
class Asset:
    """
    A token identity on one network.

    Two assets are equal iff their addresses are equal, ignoring checksum
    casing. Symbol and decimals are carried for display and unit conversion.
    """

    address: str
    decimals: int
    symbol: str

    def __post_init__(self):
        normalize_address(self.address)
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative: {self.decimals}")

    @property
    def key(self) -> str:
        return normalize_address(self.address)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Asset):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"Asset({self.symbol}, {self.address})"

    def to_units(self, amount) -> int:
        """Human amount -> base units."""
        return to_base_units(amount, self.decimals)

    def from_units(self, raw) -> Decimal:
        """Base units -> human amount."""
        return from_base_units(raw, self.decimals)

    @classmethod
    def from_config(cls, token) -> "Asset":
        return cls(address=token.address, decimals=token.decimals, symbol=token.symbol)


def pair_key(asset_a: Asset, asset_b: Asset) -> str:
    """Order-independent key for the pair {asset_a, asset_b}."""
    first, second = sorted((asset_a.key, asset_b.key))
    return f"{first}-{second}"


@dataclass(frozen=True)
class Pair:
    """
    Reserve snapshot of a constant-product liquidity pool.

    Attributes:
        asset_a: One side of the pool
        asset_b: The other side of the pool
        reserve_a: Reserve of asset_a in base units
        reserve_b: Reserve of asset_b in base units
        fee: Trading fee as decimal (e.g., 0.003 for 30 bps)
        address: Pool contract address, when known
        block_number: Block the reserves were read at, when known
    """

    asset_a: Asset
    asset_b: Asset
    reserve_a: int
    reserve_b: int
    fee: Decimal = DEFAULT_PAIR_FEE
    address: Optional[str] = None
    block_number: Optional[int] = None

    def __post_init__(self):
        if self.asset_a == self.asset_b:
            raise ValueError(f"Pair needs two distinct assets, got {self.asset_a}")
        for reserve in (self.reserve_a, self.reserve_b):
            if not isinstance(reserve, int) or isinstance(reserve, bool):
                raise ValueError(f"Reserves must be integers: {reserve!r}")
            if reserve < 0:
                raise ValueError(f"Reserves must be non-negative: {reserve}")
        if not Decimal(0) <= Decimal(self.fee) < Decimal(1):
            raise ValueError(f"Fee must be in [0, 1): {self.fee}")

    @property
    def key(self) -> str:
        return pair_key(self.asset_a, self.asset_b)

    @property
    def is_degenerate(self) -> bool:
        return self.reserve_a == 0 or self.reserve_b == 0

    @property
    def name(self) -> str:
        return f"{self.asset_a.symbol}/{self.asset_b.symbol}"

    def contains(self, asset: Asset) -> bool:
        return asset == self.asset_a or asset == self.asset_b

    def reserves_for(self, asset_in: Asset) -> Tuple[int, int, Asset]:
        """Return (reserve_in, reserve_out, asset_out) for a swap selling asset_in."""
        if asset_in == self.asset_a:
            return self.reserve_a, self.reserve_b, self.asset_b
        if asset_in == self.asset_b:
            return self.reserve_b, self.reserve_a, self.asset_a
        raise KeyError(f"{asset_in.symbol} is not part of pair {self.name}")

    def same_reserves(self, other: "Pair") -> bool:
        """True if other holds the same reserves for the same assets."""
        if other.key != self.key:
            return False
        r_in, r_out, _ = other.reserves_for(self.asset_a)
        return (r_in, r_out, Decimal(other.fee)) == (
            self.reserve_a,
            self.reserve_b,
            Decimal(self.fee),
        )


class Path(Sequence[Asset]):
    """
    Ordered walk over the token graph.

    A cycle starts and ends with the same base asset and repeats no
    intermediate asset.
    """

    __slots__ = ("_assets",)

    def __init__(self, assets: Sequence[Asset]):
        assets = tuple(assets)
        if len(assets) < 2:
            raise ValueError("A path needs at least two assets")
        for current, nxt in zip(assets, assets[1:]):
            if current == nxt:
                raise ValueError(f"Path repeats {current.symbol} on consecutive hops")
        inner = assets[:-1] if assets[0] == assets[-1] else assets
        if len(set(inner)) != len(inner):
            raise ValueError("Path repeats an intermediate asset")
        self._assets = assets

    def __getitem__(self, index):
        return self._assets[index]

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._assets)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            return self._assets == other._assets
        if isinstance(other, (list, tuple)):
            return self._assets == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._assets)

    def __repr__(self) -> str:
        return f"Path({self.describe()})"

    @property
    def hops(self) -> int:
        return len(self._assets) - 1

    @property
    def start(self) -> Asset:
        return self._assets[0]

    @property
    def end(self) -> Asset:
        return self._assets[-1]

    @property
    def is_cycle(self) -> bool:
        return self.start == self.end

    def legs(self) -> List[Tuple[Asset, Asset]]:
        return list(zip(self._assets, self._assets[1:]))

    def symbols(self) -> List[str]:
        return [asset.symbol for asset in self._assets]

    def addresses(self) -> List[str]:
        return [asset.address for asset in self._assets]

    def describe(self) -> str:
        return " -> ".join(self.symbols())


@dataclass(frozen=True)
class LegQuote:
    """Result of pricing one swap against one pair."""

    asset_in: Asset
    asset_out: Asset
    amount_in: Decimal
    amount_out: Decimal
    mid_price: Decimal
    execution_price: Decimal
    price_impact: Decimal


@dataclass(frozen=True)
class SimulatedTrade:
    """
    A multi-hop trade simulated against current reserves.

    leg_outputs[i] is the output of leg i, which is the input of leg i+1.
    """

    path: Path
    amount_in: Decimal
    legs: Tuple[LegQuote, ...]
    amount_out: Decimal
    execution_price: Decimal
    mid_price: Decimal
    price_impact: Decimal

    @property
    def leg_outputs(self) -> List[Decimal]:
        return [leg.amount_out for leg in self.legs]

    def minimum_amount_out(self, tolerance) -> int:
        """Lowest acceptable output (base units) for a slippage tolerance fraction."""
        tolerance = Decimal(str(tolerance))
        if not Decimal(0) <= tolerance < Decimal(1):
            raise ValueError(f"Slippage tolerance must be in [0, 1): {tolerance}")
        return floor_units(self.amount_out * (Decimal(1) - tolerance))


@dataclass(frozen=True)
class TickEvent:
    """One monitoring round, normally one per new block."""

    block_number: Optional[int]
    timestamp: float

    @property
    def reference(self) -> str:
        if self.block_number is not None:
            return f"block:{self.block_number}"
        return f"time:{self.timestamp:.3f}"


@dataclass(frozen=True)
class Opportunity:
    """
    A cycle whose simulated net return beats the configured threshold.

    All amounts are base units of the cycle's base asset.
    """

    path: Path
    amount_in: Decimal
    expected_gross_output: Decimal
    estimated_cost: Decimal
    net_profit: Decimal
    min_amount_out: int
    tick_reference: Optional[str] = None
    discovered_at: float = 0.0
    trade: Optional[SimulatedTrade] = field(default=None, compare=False, repr=False)

    @property
    def base_asset(self) -> Asset:
        return self.path.start

    @property
    def gross_profit(self) -> Decimal:
        return self.expected_gross_output - self.amount_in

    def to_dict(self) -> Dict[str, Any]:
        """Structured event payload."""
        return {
            "path": self.path.symbols(),
            "path_addresses": self.path.addresses(),
            "input_amount": str(self.amount_in),
            "expected_gross_output": str(self.expected_gross_output),
            "estimated_cost": str(self.estimated_cost),
            "net_profit": str(self.net_profit),
            "min_amount_out": str(self.min_amount_out),
            "tick_reference": self.tick_reference,
            "discovered_at": self.discovered_at,
        }

    def format_log(self) -> str:
        base = self.base_asset
        return (
            f"{self.path.describe()} | in {base.from_units(self.amount_in):.6f} "
            f"out {base.from_units(self.expected_gross_output):.6f} "
            f"cost {base.from_units(self.estimated_cost):.6f} "
            f"net {base.from_units(self.net_profit):+.6f} {base.symbol}"
        )


@dataclass(frozen=True)
class DataErrorEvent:
    """Non-fatal data problem raised during a tick."""

    kind: str  # market_data, fee_estimate, missing_pair, degenerate_pair, evaluation
    message: str
    pair_key: Optional[str] = None
    path: Optional[str] = None
    tick_reference: Optional[str] = None

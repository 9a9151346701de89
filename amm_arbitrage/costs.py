"""
Transaction cost estimation for multi-hop swaps.

The default model is a flat heuristic: a fixed gas allowance for the first
swap plus a marginal allowance for every additional hop, priced at the
current network fee rate. It is not a simulated gas trace and will over- or
under-estimate real costs; any object satisfying CostModel can replace it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Union, runtime_checkable

SWAP_BASE_GAS = 100_000
GAS_PER_HOP = 65_000


@runtime_checkable
class CostModel(Protocol):
    """Estimates execution cost in base-asset base units."""

    def estimate(self, hops: int, fee_rate: Union[int, Decimal]) -> Decimal:
        ...


@dataclass(frozen=True)
class GasCostModel:
    """
    Flat gas heuristic.

    Attributes:
        base_gas: Gas units for a single-hop swap
        gas_per_extra_hop: Marginal gas units for each hop after the first
        native_to_base_rate: Base-asset base units per wei of the native coin
            (1 when the base asset is the wrapped native coin)
    """

    base_gas: int = SWAP_BASE_GAS
    gas_per_extra_hop: int = GAS_PER_HOP
    native_to_base_rate: Decimal = Decimal(1)

    def gas_units(self, hops: int) -> int:
        if hops < 1:
            raise ValueError(f"hops must be at least 1: {hops}")
        return self.base_gas + self.gas_per_extra_hop * (hops - 1)

    def estimate(self, hops: int, fee_rate: Union[int, Decimal]) -> Decimal:
        """Cost of executing a hops-long route at fee_rate (wei per gas)."""
        fee_rate = Decimal(fee_rate)
        if fee_rate < 0:
            raise ValueError(f"fee_rate must be non-negative: {fee_rate}")
        return (
            Decimal(self.gas_units(hops)) * fee_rate * Decimal(self.native_to_base_rate)
        )

"""Tests for the flat gas cost heuristic."""

from decimal import Decimal

import pytest

from amm_arbitrage.costs import GAS_PER_HOP, SWAP_BASE_GAS, CostModel, GasCostModel


def test_gas_units_per_hop():
    model = GasCostModel()
    assert model.gas_units(1) == SWAP_BASE_GAS
    assert model.gas_units(3) == SWAP_BASE_GAS + 2 * GAS_PER_HOP


def test_estimate_scales_with_fee_rate():
    model = GasCostModel()
    # 230k gas at 20 gwei
    assert model.estimate(3, 20 * 10**9) == Decimal(230_000 * 20 * 10**9)
    assert model.estimate(3, 0) == 0


def test_native_to_base_rate():
    # e.g. USDC base: 1 wei of ETH is worth 3000e6 / 1e18 USDC units
    rate = Decimal(3000 * 10**6) / Decimal(10**18)
    model = GasCostModel(native_to_base_rate=rate)
    assert model.estimate(2, 10**9) == Decimal(165_000) * Decimal(10**9) * rate


def test_invalid_arguments():
    model = GasCostModel()
    with pytest.raises(ValueError):
        model.gas_units(0)
    with pytest.raises(ValueError):
        model.estimate(2, -1)


def test_protocol():
    assert isinstance(GasCostModel(), CostModel)

"""Tests for the token registry."""

import pytest

from amm_arbitrage.tokens import TokenRegistry
from amm_arbitrage.types import Asset

WETH = Asset("0x" + "1" * 40, 18, "WETH")
USDC = Asset("0x" + "2" * 40, 6, "USDC")
DAI = Asset("0x" + "3" * 40, 18, "DAI")
UNI = Asset("0x" + "4" * 40, 18, "UNI")


def test_all_pairs_covers_every_combination():
    registry = TokenRegistry([WETH, USDC, DAI, UNI])
    pairs = registry.all_pairs()
    assert len(pairs) == 6
    assert {frozenset(p) for p in pairs} == {
        frozenset(p)
        for p in [
            (WETH, USDC),
            (WETH, DAI),
            (WETH, UNI),
            (USDC, DAI),
            (USDC, UNI),
            (DAI, UNI),
        ]
    }


def test_add_is_idempotent_by_symbol():
    registry = TokenRegistry([WETH, USDC])
    assert registry.add(Asset("0x" + "9" * 40, 18, "WETH")) is WETH
    assert len(registry) == 2
    assert len(registry.all_pairs()) == 1


def test_lookup():
    registry = TokenRegistry([WETH, USDC])
    assert registry.get("USDC") is USDC
    assert registry.get("UNI") is None
    assert registry.symbols == ["WETH", "USDC"]
    assert list(registry) == [WETH, USDC]
    with pytest.raises(KeyError):
        registry.require("UNI")


def test_select_pairs_skips_duplicates():
    registry = TokenRegistry([WETH, USDC, DAI])
    selected = registry.select_pairs([["WETH", "USDC"], ["USDC", "WETH"], ["USDC", "DAI"]])
    assert selected == [(WETH, USDC), (USDC, DAI)]
    with pytest.raises(KeyError):
        registry.select_pairs([["WETH", "UNI"]])

"""
Token universe for one monitoring session.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .types import Asset


class TokenRegistry:
    """Symbol -> Asset lookup plus the candidate pairs to watch."""

    def __init__(self, assets: Iterable[Asset] = ()):
        self._by_symbol: Dict[str, Asset] = {}
        self._pairs: List[Tuple[Asset, Asset]] = []
        for asset in assets:
            self.add(asset)

    def add(self, asset: Asset) -> Asset:
        """Register asset, pairing it with every token already known."""
        if asset.symbol in self._by_symbol:
            return self._by_symbol[asset.symbol]
        for existing in self._by_symbol.values():
            if existing != asset:
                self._pairs.append((existing, asset))
        self._by_symbol[asset.symbol] = asset
        return asset

    def get(self, symbol: str) -> Optional[Asset]:
        return self._by_symbol.get(symbol)

    def require(self, symbol: str) -> Asset:
        asset = self.get(symbol)
        if asset is None:
            raise KeyError(f"Unknown token symbol: {symbol}")
        return asset

    def all_pairs(self) -> List[Tuple[Asset, Asset]]:
        return list(self._pairs)

    def select_pairs(
        self, symbol_pairs: Sequence[Sequence[str]]
    ) -> List[Tuple[Asset, Asset]]:
        """Resolve explicit [symbol, symbol] pairs, skipping duplicates."""
        seen = set()
        selected = []
        for sym_a, sym_b in symbol_pairs:
            a, b = self.require(sym_a), self.require(sym_b)
            key = frozenset((a.key, b.key))
            if key in seen:
                continue
            seen.add(key)
            selected.append((a, b))
        return selected

    @property
    def symbols(self) -> List[str]:
        return list(self._by_symbol)

    def __len__(self) -> int:
        return len(self._by_symbol)

    def __iter__(self):
        return iter(self._by_symbol.values())

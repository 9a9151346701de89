"""
Latest reserve snapshot per pair.
"""

from typing import Dict, List, Optional

from .graph import TokenGraph
from .types import Asset, Pair, pair_key
from .utils import get_logger

logger = get_logger(__name__)


class PairStore:
    """
    Holds one reserve snapshot per canonical pair key.

    Writes happen only during the refresh phase of a tick. Each upsert swaps
    a whole immutable Pair, so a reader sees either the old or the new
    snapshot of a pair, never a mix.
    """

    def __init__(self, graph: Optional[TokenGraph] = None):
        self._graph = graph if graph is not None else TokenGraph()
        self._pairs: Dict[str, Pair] = {}

    @property
    def graph(self) -> TokenGraph:
        return self._graph

    def upsert(self, pair: Pair) -> bool:
        """
        Store the snapshot for the pair's canonical key.

        Returns:
            True if the pair was not known before
        """
        key = pair.key
        existing = self._pairs.get(key)
        if existing is None:
            self._pairs[key] = pair
            self._graph.add_edge(pair.asset_a, pair.asset_b)
            logger.debug(
                f"Added pair {pair.name} ({len(self._pairs)} pairs, "
                f"{len(self._graph)} tokens)"
            )
            return True

        if not existing.same_reserves(pair):
            self._pairs[key] = pair
        return False

    def get(self, asset_a: Asset, asset_b: Asset) -> Optional[Pair]:
        return self._pairs.get(pair_key(asset_a, asset_b))

    def pairs(self) -> List[Pair]:
        return list(self._pairs.values())

    def clear(self) -> None:
        self._pairs.clear()
        self._graph.clear()

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, key: object) -> bool:
        return key in self._pairs

"""
Token connectivity graph.

Undirected adjacency over assets built on a NetworkX graph: an edge means a
liquidity pair exists between the two assets. Edges are only ever added, so
readers can safely walk the graph while it grows.
"""

from typing import Dict, List, Optional, Set

import networkx as nx

from .types import Asset
from .utils import normalize_address


class TokenGraph:
    """Pure in-memory index of which assets share a pair."""

    def __init__(self):
        self._graph = nx.Graph()
        self._index: Dict[str, int] = {}

    def _register(self, asset: Asset) -> str:
        node = asset.key
        if node not in self._graph:
            self._graph.add_node(node, asset=asset)
            self._index[node] = len(self._index)
        return node

    def add_edge(self, asset_a: Asset, asset_b: Asset) -> None:
        """Register both assets and the bidirectional edge. No-op if present."""
        if asset_a == asset_b:
            raise ValueError(f"Cannot connect {asset_a.symbol} to itself")
        node_a = self._register(asset_a)
        node_b = self._register(asset_b)
        if not self._graph.has_edge(node_a, node_b):
            self._graph.add_edge(node_a, node_b)

    def neighbors(self, asset: Asset) -> Set[Asset]:
        """Adjacent assets; empty for an unknown asset."""
        node = asset.key
        if node not in self._graph:
            return set()
        return {self._graph.nodes[n]["asset"] for n in self._graph.neighbors(node)}

    def has_edge(self, asset_a: Asset, asset_b: Asset) -> bool:
        return self._graph.has_edge(asset_a.key, asset_b.key)

    def asset_for(self, address: str) -> Optional[Asset]:
        node = normalize_address(address)
        if node not in self._graph:
            return None
        return self._graph.nodes[node]["asset"]

    def index_of(self, asset: Asset) -> Optional[int]:
        """Small integer id assigned on first sight."""
        return self._index.get(asset.key)

    def assets(self) -> List[Asset]:
        return [data["asset"] for _, data in self._graph.nodes(data=True)]

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def clear(self) -> None:
        self._graph.clear()
        self._index.clear()

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __contains__(self, asset: object) -> bool:
        return isinstance(asset, Asset) and asset.key in self._graph

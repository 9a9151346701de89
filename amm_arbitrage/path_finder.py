"""
Depth-bounded cycle search over the token graph.

Cycles are rooted at a base asset and found with a recursive depth-first
search. A visited set scoped to one search call keeps intermediate assets
unique inside a path while backtracking lets later branches reuse them.
"""

from typing import List, Set

from .graph import TokenGraph
from .types import Asset, Path
from .utils import get_logger

logger = get_logger(__name__)

# A cycle needs at least two real hops before the closing hop back to base.
MIN_HOPS_BEFORE_CLOSE = 2


class PathFinder:
    """Enumerates simple cycles through a base asset."""

    def __init__(self, graph: TokenGraph):
        self.graph = graph

    def _ordered_neighbors(self, asset: Asset) -> List[Asset]:
        # Stable order keeps searches reproducible between ticks
        return sorted(
            self.graph.neighbors(asset),
            key=lambda a: (self.graph.index_of(a), a.key),
        )

    def find_cycles(self, base_asset: Asset, max_hops: int) -> List[Path]:
        """
        Find cycles that start and end at base_asset.

        Args:
            base_asset: Asset every cycle starts and ends with
            max_hops: Upper bound on edges traversed, closing hop included

        Returns:
            Paths in DFS discovery order (callers must not rely on the order)
        """
        if max_hops < MIN_HOPS_BEFORE_CLOSE or base_asset not in self.graph:
            return []

        cycles: List[Path] = []
        visited: Set[str] = {base_asset.key}
        path: List[Asset] = [base_asset]

        def explore(current: Asset) -> None:
            hops = len(path) - 1

            if (
                hops >= MIN_HOPS_BEFORE_CLOSE
                and hops + 1 <= max_hops
                and self.graph.has_edge(current, base_asset)
            ):
                cycles.append(Path(path + [base_asset]))

            # Closing does not end the branch: longer cycles through current
            # are still explored, as long as they can be closed in max_hops
            if hops + 2 > max_hops:
                return

            for neighbor in self._ordered_neighbors(current):
                if neighbor == base_asset:
                    # Closing is handled above; never bounce straight back
                    continue
                if neighbor.key in visited:
                    continue

                visited.add(neighbor.key)
                path.append(neighbor)
                explore(neighbor)
                path.pop()
                visited.discard(neighbor.key)

        explore(base_asset)

        logger.debug(
            f"Cycle search from {base_asset.symbol} (max {max_hops} hops): "
            f"{len(cycles)} cycles over {len(self.graph)} tokens"
        )
        return cycles

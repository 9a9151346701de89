"""Tests for the depth-bounded cycle search."""

import unittest

from hypothesis import given, settings
from hypothesis import strategies as st

from amm_arbitrage.graph import TokenGraph
from amm_arbitrage.path_finder import PathFinder
from amm_arbitrage.types import Asset


def make_asset(i: int) -> Asset:
    return Asset(f"0x{i + 1:040x}", 18, f"T{i}")


X, Y, Z, W = (make_asset(i) for i in range(4))


def build_graph(edges) -> TokenGraph:
    graph = TokenGraph()
    for a, b in edges:
        graph.add_edge(a, b)
    return graph


class TestFindCycles(unittest.TestCase):
    def test_triangle(self):
        finder = PathFinder(build_graph([(X, Y), (Y, Z), (X, Z)]))
        cycles = finder.find_cycles(X, 3)
        self.assertIn([X, Y, Z, X], cycles)
        self.assertIn([X, Z, Y, X], cycles)
        self.assertEqual(len(cycles), 2)

    def test_no_back_and_forth(self):
        finder = PathFinder(build_graph([(X, Y)]))
        self.assertEqual(finder.find_cycles(X, 3), [])

    def test_max_hops_one_yields_nothing(self):
        finder = PathFinder(build_graph([(X, Y), (Y, Z), (X, Z)]))
        self.assertEqual(finder.find_cycles(X, 1), [])

    def test_max_hops_two_yields_nothing(self):
        # The shortest cycle needs two hops out plus one back
        finder = PathFinder(build_graph([(X, Y), (Y, Z), (X, Z)]))
        self.assertEqual(finder.find_cycles(X, 2), [])

    def test_unknown_or_isolated_base(self):
        finder = PathFinder(build_graph([(Y, Z)]))
        self.assertEqual(finder.find_cycles(X, 3), [])

    def test_square_needs_four_hops(self):
        finder = PathFinder(build_graph([(X, Y), (Y, Z), (Z, W), (W, X)]))
        self.assertEqual(finder.find_cycles(X, 3), [])
        cycles = finder.find_cycles(X, 4)
        self.assertEqual(
            sorted(c.describe() for c in cycles),
            ["T0 -> T1 -> T2 -> T3 -> T0", "T0 -> T3 -> T2 -> T1 -> T0"],
        )

    def test_finds_short_and_long_cycles_through_same_prefix(self):
        edges = [(X, Y), (Y, Z), (Z, X), (Z, W), (W, X)]
        cycles = PathFinder(build_graph(edges)).find_cycles(X, 4)
        self.assertIn([X, Y, Z, X], cycles)
        self.assertIn([X, Y, Z, W, X], cycles)

    def test_branches_reuse_assets(self):
        edges = [(X, Y), (X, W), (Y, Z), (W, Z), (Z, X)]
        cycles = PathFinder(build_graph(edges)).find_cycles(X, 3)
        self.assertIn([X, Y, Z, X], cycles)
        self.assertIn([X, W, Z, X], cycles)

    def test_closing_node_keeps_extending(self):
        graph = build_graph([(X, Y), (Y, Z), (Z, X), (Z, W), (W, X)])
        cycles = PathFinder(graph).find_cycles(X, 4)
        self.assertIn([X, Y, Z, X], cycles)
        self.assertIn([X, Y, Z, W, X], cycles)

    def test_deterministic_order(self):
        graph = build_graph([(X, Y), (Y, Z), (X, Z), (Z, W), (W, X)])
        finder = PathFinder(graph)
        self.assertEqual(finder.find_cycles(X, 4), finder.find_cycles(X, 4))


@settings(max_examples=50, deadline=None)
@given(
    edges=st.lists(
        st.tuples(st.integers(0, 6), st.integers(0, 6)).filter(lambda t: t[0] != t[1]),
        max_size=20,
    ),
    max_hops=st.integers(0, 5),
)
def test_cycles_are_valid(edges, max_hops):
    graph = build_graph([(make_asset(i), make_asset(j)) for i, j in edges])
    base = make_asset(0)
    cycles = PathFinder(graph).find_cycles(base, max_hops)

    for path in cycles:
        assert path.start == base and path.end == base
        assert 3 <= path.hops <= max_hops
        inner = list(path)[1:-1]
        assert base not in inner
        assert len(set(inner)) == len(inner)
        for a, b in path.legs():
            assert graph.has_edge(a, b)

    assert len(set(cycles)) == len(cycles)

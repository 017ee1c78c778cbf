"""Shared fixtures for Motifscope tests."""

import itertools
import threading

import pytest

from motifscope import Motifscope
from motifscope.engine import Motif, Network


@pytest.fixture()
def ms():
    """Fresh in-memory Motifscope instance."""
    return Motifscope()


@pytest.fixture()
def square() -> Network:
    """4-cycle A-B-C-D-A, all links of type "E", nodes inserted in order."""
    net = Network()
    for node_id in "ABCD":
        net.add_node(node_id)
    for a, b in [("A", "B"), ("B", "C"), ("C", "D"), ("D", "A")]:
        net.add_link(a, b, "E")
    return net


@pytest.fixture()
def mixed_network() -> Network:
    """Seven nodes, two link types, alternating node types.

    Even nodes are "kinase", odd nodes "substrate".

    E links: 0-1 1-2 2-0 2-3 3-4 4-2 4-5 5-6 6-4 1-3 0-5
    F links: 0-3 1-4 2-5 3-6 0-2
    """
    net = Network()
    for i in range(7):
        net.add_node(f"n{i}", type="kinase" if i % 2 == 0 else "substrate")
    e_links = [(0, 1), (1, 2), (2, 0), (2, 3), (3, 4), (4, 2), (4, 5), (5, 6), (6, 4), (1, 3), (0, 5)]
    for a, b in e_links:
        net.add_link(f"n{a}", f"n{b}", "E")
    for a, b in [(0, 3), (1, 4), (2, 5), (3, 6), (0, 2)]:
        net.add_link(f"n{a}", f"n{b}", "F")
    return net


def raw_mappings(network: Network, motif: Motif) -> list[tuple]:
    """Every injective, type-respecting mapping, automorphic copies included."""
    size = len(motif)
    found = []
    for nodes in itertools.permutations(network.nodes(), size):
        if any(
            motif.node_type(p) is not None and nodes[p].type != motif.node_type(p)
            for p in range(size)
        ):
            continue
        if all(
            network.are_connected(nodes[link.source], nodes[link.target], link.type)
            for link in motif.links
        ):
            found.append(nodes)
    return found


def canonical(nodes, group) -> tuple[str, ...]:
    """Smallest relabelling of a mapping over the motif's automorphisms."""
    return min(tuple(nodes[perm[i]].id for i in range(len(nodes))) for perm in group)


def brute_force(network: Network, motif: Motif) -> set[tuple[str, ...]]:
    """Occurrences deduplicated by automorphism, as canonical id tuples."""
    group = motif.automorphism_group()
    return {canonical(nodes, group) for nodes in raw_mappings(network, motif)}


def complete_graph(cls, size: int):
    """K_size with nodes v0..v{size-1} and links of type "E"."""
    net = cls()
    for i in range(size):
        for j in range(i + 1, size):
            net.add_link(f"v{i}", f"v{j}", "E")
    return net


class PausingNetwork(Network):
    """Network that pauses the search thread after a number of adjacency checks.

    When the budget runs out, ``reached`` is set and the search thread
    blocks until ``resume`` is set, so another thread can act mid-search.
    """

    def __init__(self, budget: int = -1) -> None:
        super().__init__()
        self.budget = budget
        self.reached = threading.Event()
        self.resume = threading.Event()

    def are_connected(self, a, b, link_type):
        self.budget -= 1
        if self.budget == 0:
            self.reached.set()
            self.resume.wait(timeout=30)
        return super().are_connected(a, b, link_type)

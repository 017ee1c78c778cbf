"""Motif symmetry analysis and the commit/rollback state of a search.

Every automorphism of a motif maps one occurrence onto the same set of
network nodes under a different position assignment. To report each
physical occurrence once, the motif's automorphism group is turned into a
list of ordering conditions ``(a, b)`` meaning "the node at position ``a``
must have a smaller network index than the node at position ``b``":

    1. Take the lowest position ``v`` whose orbit under the remaining
       group is non-trivial.
    2. Require ``index(v) < index(w)`` for every other ``w`` in that orbit.
    3. Restrict the group to the stabiliser of ``v`` and repeat until only
       the identity remains.

Exactly one member of each automorphism class satisfies all conditions
(Grochow & Kellis, "Network Motif Discovery Using Subgraph Enumeration and
Symmetry-Breaking", 2007).
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from .candidates import CandidateIterator
from .network import Network, NetworkNode

if TYPE_CHECKING:
    from .motif import Motif

Permutation = tuple[int, ...]


def motif_graph(motif: "Motif") -> nx.Graph:
    """The motif as an ``nx.Graph``: ``type`` on nodes, ``types`` on edges."""
    g = nx.Graph()
    for position in range(len(motif)):
        g.add_node(position, type=motif.node_type(position))
    for link in motif.links:
        g.add_edge(
            link.source,
            link.target,
            types=motif.link_types_between(link.source, link.target),
        )
    return g


def automorphism_group(motif: "Motif") -> list[Permutation]:
    """Enumerate all automorphisms of a motif.

    A permutation ``p`` is an automorphism when every position keeps its
    node type and, for every pair ``(i, j)``, the link types between ``i``
    and ``j`` equal those between ``p[i]`` and ``p[j]``. Permutations are
    sorted, so the identity comes first.
    """
    g = motif_graph(motif)
    nm = nx.isomorphism.categorical_node_match("type", None)
    em = nx.isomorphism.categorical_edge_match("types", frozenset())
    matcher = nx.isomorphism.GraphMatcher(g, g, node_match=nm, edge_match=em)
    size = len(motif)
    return sorted(
        tuple(mapping[position] for position in range(size))
        for mapping in matcher.isomorphisms_iter()
    )


def orbits(size: int, group: Iterable[Permutation]) -> list[list[int]]:
    """Partition positions into orbits under the group, sorted by first member."""
    group = list(group)
    seen: set[int] = set()
    result = []
    for position in range(size):
        if position in seen:
            continue
        orbit = sorted({perm[position] for perm in group} | {position})
        seen.update(orbit)
        result.append(orbit)
    return result


def symmetry_conditions(size: int, group: Iterable[Permutation]) -> list[tuple[int, int]]:
    """Ordering conditions that keep one assignment per automorphism class.

    Returns:
        List of (a, b) pairs: index of node at a < index of node at b
    """
    remaining = list(group)
    conditions: list[tuple[int, int]] = []
    while len(remaining) > 1:
        for v in range(size):
            orbit = {perm[v] for perm in remaining}
            if len(orbit) > 1:
                break
        else:
            break
        conditions.extend((v, w) for w in sorted(orbit) if w != v)
        remaining = [perm for perm in remaining if perm[v] == v]
    return conditions


@dataclass(frozen=True)
class Commitment:
    """One successful node assignment on the commitment stack."""

    position: int
    node: NetworkNode
    iterator: CandidateIterator


class SymmetryHandler:
    """Commits and rolls back node assignments for one search.

    Owns the partial mapping, the in-use node set and the commitment stack;
    shares the per-position iterator list with the finder. Commitments must
    be undone in reverse order.
    """

    def __init__(
        self,
        network: Network,
        motif: "Motif",
        iterators: list[CandidateIterator],
    ) -> None:
        size = len(motif)
        if len(iterators) != size:
            raise ValueError(f"Expected {size} candidate iterators, got {len(iterators)}")
        self.network = network
        self.motif = motif
        self.iterators = iterators
        self.mapping: list[NetworkNode | None] = [None] * size
        self.mapped_positions: list[int] = []
        self._commitments: list[Commitment] = []
        self._in_use: set[NetworkNode] = set()

        self.group = motif.automorphism_group()
        self.conditions = symmetry_conditions(size, self.group)
        # position -> positions whose node must have a smaller / larger index
        self._smaller: list[list[int]] = [[] for _ in range(size)]
        self._larger: list[list[int]] = [[] for _ in range(size)]
        for a, b in self.conditions:
            self._larger[a].append(b)
            self._smaller[b].append(a)
        # position -> [(neighbour, sorted link types)]
        self._constraints: list[list[tuple[int, list[str]]]] = [
            [(q, sorted(motif.link_types_between(p, q))) for q in motif.neighbors(p)]
            for p in range(size)
        ]

    @property
    def commitments(self) -> list[Commitment]:
        return list(self._commitments)

    def is_in_use(self, node: NetworkNode) -> bool:
        return node in self._in_use

    # ========== Commit / Rollback ==========

    def map_node(self, position: int, node: NetworkNode) -> bool:
        """Try to commit ``node`` to ``position``.

        Returns False, leaving all state untouched, if the node is already
        used, a committed neighbour lacks a required link to it, or the
        assignment violates a symmetry condition.

        Raises:
            RuntimeError: If the position is already committed
        """
        if self.mapping[position] is not None:
            raise RuntimeError(f"Position {position} is already mapped")
        if node in self._in_use:
            return False
        for neighbour, link_types in self._constraints[position]:
            fixed = self.mapping[neighbour]
            if fixed is None:
                continue
            for link_type in link_types:
                if not self.network.are_connected(fixed, node, link_type):
                    return False
        for other in self._smaller[position]:
            fixed = self.mapping[other]
            if fixed is not None and fixed.index >= node.index:
                return False
        for other in self._larger[position]:
            fixed = self.mapping[other]
            if fixed is not None and node.index >= fixed.index:
                return False

        self.mapping[position] = node
        self.mapped_positions.append(position)
        self._in_use.add(node)
        self._commitments.append(Commitment(position, node, self.iterators[position]))
        return True

    def unmap_node(self, position: int, node: NetworkNode) -> None:
        """Undo the most recent successful map_node.

        Raises:
            RuntimeError: If (position, node) is not the top commitment
        """
        if not self._commitments:
            raise RuntimeError("No committed assignment to undo")
        top = self._commitments[-1]
        if top.position != position or top.node != node:
            raise RuntimeError(
                f"Out-of-order unmap: expected ({top.position}, {top.node.id!r}), "
                f"got ({position}, {node.id!r})"
            )
        self._commitments.pop()
        self.mapped_positions.pop()
        self.mapping[position] = None
        self._in_use.discard(node)

    # ========== Search Order ==========

    def refined_iterator(self, position: int) -> CandidateIterator:
        """Seed of ``position`` refined against every committed neighbour.

        Refinements are applied in commitment order, so the chain depth
        equals the number of committed link constraints on the position.
        """
        iterator = self.iterators[position].root()
        constraints = dict(self._constraints[position])
        for committed in self.mapped_positions:
            link_types = constraints.get(committed)
            if link_types is None:
                continue
            fixed = self.mapping[committed]
            for link_type in link_types:
                iterator = iterator.refine(self.network, fixed, link_type)
        return iterator

    def next_best_position(self, unmapped: Iterable[int]) -> int | None:
        """Pick the unmapped position with the fewest candidates.

        Installs the refined iterator for the chosen position in the shared
        iterator list; the caller undoes this with restore_position().
        Ties go to the lowest position id.
        """
        best: CandidateIterator | None = None
        for position in sorted(unmapped):
            iterator = self.refined_iterator(position)
            if best is None or len(iterator) < len(best):
                best = iterator
                if not iterator:
                    break
        if best is None:
            return None
        self.iterators[best.position] = best
        return best.position

    def restore_position(self, position: int) -> None:
        """Reinstate the seed iterator replaced by next_best_position()."""
        self.iterators[position] = self.iterators[position].root()

    def satisfies_conditions(self, nodes: Sequence[NetworkNode]) -> bool:
        """True if a complete assignment meets every symmetry condition."""
        return all(nodes[a].index < nodes[b].index for a, b in self.conditions)

"""Candidate sets for motif positions.

A CandidateIterator holds the network nodes still admissible for one motif
position. Refining against a newly fixed neighbour produces a child
iterator that points back at its parent, so backtracking restores the
previous candidate set with unrefine() instead of recomputing it.
"""

from collections.abc import Iterable, Iterator, Sequence

from .network import Network, NetworkNode


class CandidateIterator:
    """Admissible network nodes for one motif position at one search state.

    Attributes:
        position: The motif position this set belongs to
        parent: The iterator this one was refined from (None for a seed)
        depth: Number of refinements applied since the seed
    """

    __slots__ = ("position", "parent", "depth", "_nodes", "_members")

    def __init__(
        self,
        position: int,
        nodes: Sequence[NetworkNode],
        parent: "CandidateIterator | None" = None,
    ) -> None:
        self.position = position
        self.parent = parent
        self.depth = 0 if parent is None else parent.depth + 1
        self._nodes: tuple[NetworkNode, ...] = tuple(nodes)
        self._members: frozenset[NetworkNode] = frozenset(self._nodes)

    @classmethod
    def seed(
        cls,
        network: Network,
        position: int,
        link_types: Iterable[str],
        node_type: str | None = None,
    ) -> "CandidateIterator":
        """Coarse initial set: nodes touching every required link type.

        Neighbour-agnostic; used before any neighbour of the position is
        fixed. Order follows the network's node index.
        """
        per_type = [network.nodes_with_link_type(t) for t in dict.fromkeys(link_types)]
        if not per_type:
            raise ValueError(f"Position {position} has no link types to seed from")
        per_type.sort(key=len)
        nodes = per_type[0]
        for others in per_type[1:]:
            allowed = set(others)
            nodes = [n for n in nodes if n in allowed]
        if node_type is not None:
            nodes = [n for n in nodes if n.type == node_type]
        return cls(position, nodes)

    def refine(
        self,
        network: Network,
        fixed_node: NetworkNode,
        link_type: str,
    ) -> "CandidateIterator":
        """Child iterator restricted to neighbours of ``fixed_node`` under ``link_type``."""
        nodes = [n for n in network.neighbors(fixed_node, link_type) if n in self._members]
        return CandidateIterator(self.position, nodes, parent=self)

    def unrefine(self) -> "CandidateIterator":
        """The iterator this one was refined from.

        Raises:
            RuntimeError: If called on a seed iterator
        """
        if self.parent is None:
            raise RuntimeError(f"Seed iterator for position {self.position} has no parent")
        return self.parent

    def root(self) -> "CandidateIterator":
        """Walk back to the seed iterator of this chain."""
        iterator = self
        while iterator.parent is not None:
            iterator = iterator.unrefine()
        return iterator

    @property
    def candidates(self) -> tuple[NetworkNode, ...]:
        return self._nodes

    def current_candidates(self) -> tuple[NetworkNode, ...]:
        return self._nodes

    def __contains__(self, node: object) -> bool:
        return node in self._members

    def __iter__(self) -> Iterator[NetworkNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return (
            f"CandidateIterator(position={self.position}, size={len(self._nodes)}, "
            f"depth={self.depth})"
        )

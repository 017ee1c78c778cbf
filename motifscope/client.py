"""Motifscope client — the primary interface for building networks and finding motifs."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from motifscope.engine.finder import MotifFinder
from motifscope.engine.motif import Motif, MotifInstance
from motifscope.engine.network import Network, NetworkLink, NetworkNode
from motifscope.engine.persistence import load_network, save_network
from motifscope.engine.symmetry import orbits, symmetry_conditions
from motifscope.models import (
    Link,
    NetworkStats,
    Node,
    Occurrence,
    SearchResult,
    SymmetryReport,
)

# --- Conversion helpers: engine types <-> pydantic models ---


def _engine_node_to_model(nn: NetworkNode) -> Node:
    return Node(id=nn.id, type=nn.type, properties=dict(nn.properties))


def _engine_link_to_model(nl: NetworkLink) -> Link:
    return Link(source=nl.source, target=nl.target, type=nl.type)


def _instances_to_occurrences(instances: set[MotifInstance]) -> list[Occurrence]:
    ordered = sorted(instances, key=lambda inst: [node.index for node in inst])
    return [Occurrence(nodes=inst.node_ids) for inst in ordered]


def _used_links_to_pairs(links: set[frozenset[NetworkNode]]) -> list[tuple[str, str]]:
    pairs = [sorted(pair, key=lambda node: node.index) for pair in links]
    pairs.sort(key=lambda pair: (pair[0].index, pair[1].index))
    return [(a.id, b.id) for a, b in pairs]


class Motifscope:
    """A typed network with motif search.

    Constructor patterns:
        - ``Motifscope()`` — empty in-memory network
        - ``Motifscope("net.json")`` / ``Motifscope("net.tsv")`` — load the
          file if it exists; ``save()`` and ``close()`` write back to it

    Example:
        ```python
        ms = Motifscope()
        ms.link("a", "b", type="ppi")
        ms.link("b", "c", type="ppi")
        ms.link("c", "a", type="ppi")

        result = ms.find("AAA", link_types={"A": "ppi"})
        result.count  # 1
        ```
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        default_type: str | None = None,
        network: Network | None = None,
    ) -> None:
        self._path = Path(path) if path else None
        if network is not None:
            self._network = network
        elif self._path is not None and self._path.exists():
            self._network = load_network(self._path, default_type=default_type)
        else:
            self._network = Network()
        self._active: list[MotifFinder] = []
        self._active_lock = threading.Lock()

    @property
    def network(self) -> Network:
        """The underlying engine network."""
        return self._network

    def close(self) -> None:
        """Write the network back to its file. No-op for in-memory instances."""
        self.save()

    def save(self, path: str | Path | None = None) -> None:
        """Persist the network.

        Args:
            path: Target file; defaults to the path given at construction.
                No-op when neither is set.
        """
        target = Path(path) if path else self._path
        if target is not None:
            save_network(self._network, target)

    def __enter__(self) -> Motifscope:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # --- Nodes ---

    def node(self, id: str, *, type: str = "unknown", **properties: Any) -> Node:
        """Create or update a node.

        Args:
            id: Unique node identifier.
            type: Node classification, matched by typed motif positions.
            **properties: Arbitrary key-value metadata.

        Raises:
            ValueError: If ``id`` is an empty string.
        """
        if not id:
            raise ValueError("Node ID must be a non-empty string")
        return _engine_node_to_model(self._network.add_node(id, type, **properties))

    def get_node(self, id: str) -> Node | None:
        nn = self._network.get_node(id)
        return _engine_node_to_model(nn) if nn else None

    def has_node(self, id: str) -> bool:
        return self._network.has_node(id)

    def nodes(self, *, type: str | None = None) -> list[Node]:
        """Nodes in insertion order, optionally filtered by type."""
        return [_engine_node_to_model(n) for n in self._network.nodes(type)]

    # --- Links ---

    def link(self, source: str, target: str, *, type: str) -> Link:
        """Create an undirected typed link. Nodes are auto-created.

        Raises:
            ValueError: If either ID is empty or source equals target.
        """
        if not source or not target:
            raise ValueError("Node IDs must be non-empty strings")
        return _engine_link_to_model(self._network.add_link(source, target, type))

    def links(self, *, type: str | None = None) -> list[Link]:
        return [_engine_link_to_model(link) for link in self._network.links(type)]

    def has_link(self, source: str, target: str, *, type: str) -> bool:
        return self._network.has_link(source, target, type)

    def remove_link(self, source: str, target: str, *, type: str) -> bool:
        """Remove a link. Returns ``True`` if it existed."""
        return self._network.remove_link(source, target, type)

    def neighbors(self, id: str, *, type: str) -> list[str]:
        return [n.id for n in self._network.neighbors(id, type)]

    def stats(self) -> NetworkStats:
        s = self._network.stats()
        return NetworkStats(
            node_count=s["num_nodes"],
            link_count=s["num_links"],
            nodes_by_type=s["nodes_by_type"],
            links_by_type=s["links_by_type"],
        )

    # --- Motifs ---

    @staticmethod
    def motif(
        notation: str | Motif,
        *,
        link_types: Mapping[str, str] | None = None,
        node_types: Sequence[str | None] | None = None,
    ) -> Motif:
        """Build a motif from the compact notation (or pass one through).

        Raises:
            TypeError: If ``notation`` is neither a string nor a Motif.
            ValueError: If the notation is malformed.
        """
        if isinstance(notation, Motif):
            return notation
        if isinstance(notation, str):
            return Motif.from_string(notation, link_types=link_types, node_types=node_types)
        raise TypeError(f"Expected motif notation or Motif, got: {type(notation).__name__}")

    def find(
        self,
        motif: str | Motif,
        *,
        track_links: bool = False,
        link_types: Mapping[str, str] | None = None,
        node_types: Sequence[str | None] | None = None,
    ) -> SearchResult:
        """Find every occurrence of a motif.

        Args:
            motif: A Motif, or compact notation such as ``"AAA"``.
            track_links: Also report the network links used by any occurrence.
            link_types: Maps notation codes to link types.
            node_types: Node type per motif position (``None`` for any).

        Returns:
            SearchResult with one Occurrence per physical occurrence,
            sorted by node insertion order.
        """
        resolved = self.motif(motif, link_types=link_types, node_types=node_types)
        finder = MotifFinder(self._network)
        with self._active_lock:
            self._active.append(finder)
        try:
            instances = finder.find(resolved, track_links=track_links)
        finally:
            with self._active_lock:
                self._active.remove(finder)
        used = finder.used_links
        return SearchResult(
            motif=resolved.name,
            size=len(resolved),
            occurrences=_instances_to_occurrences(instances),
            used_links=_used_links_to_pairs(used) if used is not None else None,
            cancelled=finder.cancelled,
        )

    def count(
        self,
        motif: str | Motif,
        *,
        link_types: Mapping[str, str] | None = None,
        node_types: Sequence[str | None] | None = None,
    ) -> int:
        """Number of occurrences of a motif."""
        return self.find(motif, link_types=link_types, node_types=node_types).count

    def cancel(self) -> int:
        """Cancel every search currently running on this client.

        Returns:
            Number of searches signalled.
        """
        with self._active_lock:
            active = list(self._active)
        for finder in active:
            finder.cancel()
        return len(active)

    def symmetry(
        self,
        motif: str | Motif,
        *,
        link_types: Mapping[str, str] | None = None,
        node_types: Sequence[str | None] | None = None,
    ) -> SymmetryReport:
        """Describe the automorphism group of a motif."""
        resolved = self.motif(motif, link_types=link_types, node_types=node_types)
        group = resolved.automorphism_group()
        size = len(resolved)
        return SymmetryReport(
            motif=resolved.name,
            size=size,
            group_order=len(group),
            automorphisms=[list(perm) for perm in group],
            orbits=orbits(size, group),
            conditions=symmetry_conditions(size, group),
        )

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return self._network.to_dict()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Motifscope:
        return cls(network=Network.from_dict(data))

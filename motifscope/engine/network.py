"""Typed target network searched by the motif finder.

An undirected multigraph whose links carry a type string. Nodes receive a
stable insertion index that gives the engine a total order over nodes
(used to break motif symmetries).

Thread Safety:
    All operations on Network are protected by an internal RLock. A motif
    search holds the lock for its whole duration via batch(), so writers in
    other threads block until the search returns:

        with network.batch():
            network.add_link("a", "b", "ppi")
            network.add_link("b", "c", "ppi")
"""

import threading
from collections import defaultdict
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NetworkNode:
    """A node of the target network.

    Equality and hashing use ``id`` only, so nodes can be collected in sets
    and compared across lookups.

    Attributes:
        id: Unique identifier for the node
        type: Node type (e.g., "protein", "gene")
        index: Insertion order within the owning network
        properties: Arbitrary key-value metadata

    Raises:
        TypeError: If id or type is not a string
    """

    id: str
    type: str = field(default="unknown", compare=False)
    index: int = field(default=-1, compare=False)
    properties: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise TypeError(f"Node id must be a string, got: {type(self.id).__name__}")
        if not isinstance(self.type, str):
            raise TypeError(f"Node type must be a string, got: {type(self.type).__name__}")

    def __repr__(self) -> str:
        return f"NetworkNode({self.id!r})"


@dataclass(frozen=True)
class NetworkLink:
    """An undirected, typed link between two distinct nodes.

    Raises:
        TypeError: If any field is not a string
        ValueError: If source and target are the same node
    """

    source: str
    target: str
    type: str

    def __post_init__(self) -> None:
        for name in ("source", "target", "type"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise TypeError(f"Link {name} must be a string, got: {type(value).__name__}")
        if self.source == self.target:
            raise ValueError(f"Self-links are not supported: {self.source!r}")

    @property
    def key(self) -> tuple[frozenset[str], str]:
        """Orientation-free identity of the link."""
        return (frozenset((self.source, self.target)), self.type)


class Network:
    """Typed network with per-type adjacency indexes.

    Provides the lookups the search engine needs:
    - nodes_with_link_type(): every node touching a link of a type
    - neighbors(): neighbours of a node under one link type
    - are_connected(): exact adjacency test
    """

    def __init__(self) -> None:
        self._nodes: dict[str, NetworkNode] = {}
        self._links: dict[tuple[frozenset[str], str], NetworkLink] = {}
        self._next_index = 0
        # type -> node id -> neighbour ids
        self._adjacency: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
        # type -> nodes touching that type, sorted by index (rebuilt lazily)
        self._sorted_by_type: dict[str, list[NetworkNode]] = {}
        self._lock = threading.RLock()

    def __getstate__(self) -> dict[str, Any]:
        """Support for pickle/deepcopy - exclude the lock."""
        with self._lock:
            state = self.__dict__.copy()
            del state["_lock"]
            state["_adjacency"] = {t: dict(adj) for t, adj in self._adjacency.items()}
            return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        """Support for pickle/deepcopy - recreate the lock and indexes."""
        adjacency = state.pop("_adjacency")
        self.__dict__.update(state)
        self._adjacency = defaultdict(lambda: defaultdict(set))
        for link_type, adj in adjacency.items():
            for node_id, neighbour_ids in adj.items():
                self._adjacency[link_type][node_id] = set(neighbour_ids)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._nodes

    # ========== Thread Safety ==========

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold the lock across several operations.

        Provides isolation, NOT rollback: if an exception occurs mid-batch,
        earlier changes persist.

        Yields:
            None
        """
        with self._lock:
            yield

    # ========== Node Operations ==========

    def add_node(self, node_id: str, type: str = "unknown", **properties: Any) -> NetworkNode:
        """Add a node, or update the type and properties of an existing one.

        An existing node keeps its index so search order stays stable.
        """
        with self._lock:
            existing = self._nodes.get(node_id)
            if existing is not None:
                merged = dict(existing.properties)
                merged.update(properties)
                node = NetworkNode(node_id, type, existing.index, merged)
                self._nodes[node_id] = node
                self._sorted_by_type.clear()
                return node
            node = NetworkNode(node_id, type, self._next_index, dict(properties))
            self._next_index += 1
            self._nodes[node_id] = node
            return node

    def get_node(self, node_id: str) -> NetworkNode | None:
        """Get a node by ID, or None if not found."""
        with self._lock:
            return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        with self._lock:
            return node_id in self._nodes

    def nodes(self, type: str | None = None) -> list[NetworkNode]:
        """All nodes in index order, optionally filtered by node type."""
        with self._lock:
            result = sorted(self._nodes.values(), key=lambda n: n.index)
            if type is not None:
                result = [n for n in result if n.type == type]
            return result

    # ========== Link Operations ==========

    def add_link(self, source: str, target: str, type: str) -> NetworkLink:
        """Add an undirected typed link. Missing endpoints are auto-created.

        Adding the same link twice (in either orientation) is a no-op.
        """
        link = NetworkLink(source, target, type)
        with self._lock:
            existing = self._links.get(link.key)
            if existing is not None:
                return existing
            for node_id in (source, target):
                if node_id not in self._nodes:
                    self.add_node(node_id)
            self._links[link.key] = link
            self._adjacency[type][source].add(target)
            self._adjacency[type][target].add(source)
            self._sorted_by_type.pop(type, None)
            return link

    def remove_link(self, source: str, target: str, type: str) -> bool:
        """Remove a link. Returns True if removed, False if not found."""
        key = (frozenset((source, target)), type)
        with self._lock:
            if key not in self._links:
                return False
            del self._links[key]
            adjacency = self._adjacency[type]
            for a, b in ((source, target), (target, source)):
                adjacency[a].discard(b)
                # Clean up empty sets so nodes_with_link_type stays exact
                if not adjacency[a]:
                    del adjacency[a]
            if not adjacency:
                del self._adjacency[type]
            self._sorted_by_type.pop(type, None)
            return True

    def has_link(self, source: str, target: str, type: str) -> bool:
        with self._lock:
            return (frozenset((source, target)), type) in self._links

    def links(self, type: str | None = None) -> list[NetworkLink]:
        """All links, optionally filtered by link type."""
        with self._lock:
            if type is None:
                return list(self._links.values())
            return [link for link in self._links.values() if link.type == type]

    def link_types(self) -> list[str]:
        """Sorted list of link types present in the network."""
        with self._lock:
            return sorted(self._adjacency)

    # ========== Search Lookups ==========

    def nodes_with_link_type(self, link_type: str) -> list[NetworkNode]:
        """All nodes touching at least one link of the given type, in index order."""
        with self._lock:
            cached = self._sorted_by_type.get(link_type)
            if cached is None:
                adjacency = self._adjacency.get(link_type, {})
                cached = sorted(
                    (self._nodes[nid] for nid in adjacency),
                    key=lambda n: n.index,
                )
                self._sorted_by_type[link_type] = cached
            return list(cached)

    def neighbors(self, node: NetworkNode | str, link_type: str) -> list[NetworkNode]:
        """Neighbours of a node under one link type, in index order."""
        node_id = node if isinstance(node, str) else node.id
        with self._lock:
            adjacency = self._adjacency.get(link_type)
            if adjacency is None:
                return []
            neighbour_ids = adjacency.get(node_id, ())
            return sorted((self._nodes[nid] for nid in neighbour_ids), key=lambda n: n.index)

    def are_connected(
        self,
        a: NetworkNode | str,
        b: NetworkNode | str,
        link_type: str,
    ) -> bool:
        """True if a link of the given type joins a and b."""
        a_id = a if isinstance(a, str) else a.id
        b_id = b if isinstance(b, str) else b.id
        with self._lock:
            adjacency = self._adjacency.get(link_type)
            if adjacency is None:
                return False
            return b_id in adjacency.get(a_id, ())

    def degree(self, node: NetworkNode | str, link_type: str | None = None) -> int:
        """Number of links at a node, optionally for one link type."""
        node_id = node if isinstance(node, str) else node.id
        with self._lock:
            if link_type is not None:
                return len(self._adjacency.get(link_type, {}).get(node_id, ()))
            return sum(len(adj.get(node_id, ())) for adj in self._adjacency.values())

    # ========== Statistics & Serialization ==========

    def stats(self) -> dict[str, Any]:
        """Get network statistics.

        Returns:
            Dict with num_nodes, num_links, nodes_by_type, links_by_type
        """
        with self._lock:
            nodes_by_type: dict[str, int] = defaultdict(int)
            for node in self._nodes.values():
                nodes_by_type[node.type] += 1
            links_by_type: dict[str, int] = defaultdict(int)
            for link in self._links.values():
                links_by_type[link.type] += 1
            return {
                "num_nodes": len(self._nodes),
                "num_links": len(self._links),
                "nodes_by_type": dict(nodes_by_type),
                "links_by_type": dict(links_by_type),
            }

    def to_dict(self) -> dict[str, Any]:
        """Export to a plain dict. Nodes are listed in index order."""
        with self._lock:
            return {
                "nodes": [
                    {"id": n.id, "type": n.type, "properties": n.properties}
                    for n in self.nodes()
                ],
                "links": [
                    {"source": link.source, "target": link.target, "type": link.type}
                    for link in self._links.values()
                ],
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Network":
        """Import from a plain dict produced by to_dict()."""
        network = cls()
        for node_data in data.get("nodes", []):
            network.add_node(
                str(node_data["id"]),
                node_data.get("type", "unknown"),
                **node_data.get("properties", {}),
            )
        for link_data in data.get("links", []):
            network.add_link(
                str(link_data["source"]),
                str(link_data["target"]),
                link_data["type"],
            )
        return network

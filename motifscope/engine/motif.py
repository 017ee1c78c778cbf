"""Motif (pattern graph) and motif instance types.

A motif has ``size`` positions numbered ``0..size-1`` joined by typed,
undirected links. Positions may additionally require a node type.

Compact notation (``Motif.from_string``): the lower triangle of the
adjacency matrix read row by row, i.e. pairs (1,0), (2,0), (2,1), (3,0),
(3,1), (3,2), ... A ``0`` means "no link"; any other character is a link
code. ``"A0A"`` is a path 0-1-2, ``"AAA"`` a triangle.
"""

import math
from collections import defaultdict, deque
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .network import NetworkNode

NO_LINK = "0"


@dataclass(frozen=True)
class MotifLink:
    """A required typed link between two motif positions.

    Raises:
        TypeError: If positions are not ints or type is not a string
        ValueError: If source and target are the same position
    """

    source: int
    target: int
    type: str

    def __post_init__(self) -> None:
        if not isinstance(self.source, int) or not isinstance(self.target, int):
            raise TypeError("Motif link endpoints must be integer positions")
        if not isinstance(self.type, str):
            raise TypeError(f"Motif link type must be a string, got: {type(self.type).__name__}")
        if self.source == self.target:
            raise ValueError(f"Motif link cannot join position {self.source} to itself")


class Motif:
    """A small labelled pattern graph.

    Validation fails fast on malformed input: positions out of range,
    positions without links, or a disconnected pattern all raise ValueError.
    """

    def __init__(
        self,
        size: int,
        links: Sequence[MotifLink | tuple[int, int, str]],
        node_types: Sequence[str | None] | None = None,
        name: str | None = None,
    ) -> None:
        if not isinstance(size, int) or size < 2:
            raise ValueError(f"Motif needs at least 2 positions, got: {size!r}")
        if node_types is not None and len(node_types) != size:
            raise ValueError(
                f"node_types has {len(node_types)} entries, expected one per position ({size})"
            )

        self._size = size
        self._node_types: tuple[str | None, ...] = (
            tuple(node_types) if node_types is not None else (None,) * size
        )
        self._links: list[MotifLink] = []
        # position -> sorted (neighbour, type) pairs
        self._required: list[list[tuple[int, str]]] = [[] for _ in range(size)]
        # unordered pair -> link types
        self._pair_types: dict[frozenset[int], set[str]] = defaultdict(set)

        for raw in links:
            link = raw if isinstance(raw, MotifLink) else MotifLink(*raw)
            for position in (link.source, link.target):
                if not 0 <= position < size:
                    raise ValueError(
                        f"Motif link {link.source}-{link.target} references position "
                        f"{position} outside [0, {size})"
                    )
            pair = frozenset((link.source, link.target))
            if link.type in self._pair_types[pair]:
                continue
            self._pair_types[pair].add(link.type)
            self._links.append(link)
            self._required[link.source].append((link.target, link.type))
            self._required[link.target].append((link.source, link.type))

        for position, required in enumerate(self._required):
            if not required:
                raise ValueError(f"Motif position {position} has no links")
            required.sort()
        self._check_connected()

        if name is None:
            try:
                name = self.to_string()
            except ValueError:
                # Multi-typed pairs or long type names have no compact form
                name = f"motif{size}"
        self.name = name
        self._automorphisms: list[tuple[int, ...]] | None = None

    def _check_connected(self) -> None:
        seen = {0}
        queue = deque([0])
        while queue:
            position = queue.popleft()
            for neighbour, _ in self._required[position]:
                if neighbour not in seen:
                    seen.add(neighbour)
                    queue.append(neighbour)
        if len(seen) != self._size:
            missing = sorted(set(range(self._size)) - seen)
            raise ValueError(f"Motif is not connected; unreachable positions: {missing}")

    # ========== Structure ==========

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"Motif({self.name!r}, size={self._size})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Motif):
            return NotImplemented
        return (
            self._size == other._size
            and self._node_types == other._node_types
            and self.link_set() == other.link_set()
        )

    def __hash__(self) -> int:
        return hash((self._size, self._node_types, self.link_set()))

    def position_count(self) -> int:
        return self._size

    @property
    def links(self) -> list[MotifLink]:
        return list(self._links)

    def link_set(self) -> frozenset[tuple[frozenset[int], str]]:
        """Orientation-free set of (pair, type) entries."""
        return frozenset((pair, t) for pair, types in self._pair_types.items() for t in types)

    def required_edges(self, position: int) -> list[tuple[int, str]]:
        """(neighbour_position, link_type) pairs the position must satisfy."""
        self._check_position(position)
        return list(self._required[position])

    def neighbors(self, position: int) -> list[int]:
        self._check_position(position)
        return sorted({neighbour for neighbour, _ in self._required[position]})

    def link_types_between(self, a: int, b: int) -> frozenset[str]:
        return frozenset(self._pair_types.get(frozenset((a, b)), ()))

    def link_types_of(self, position: int) -> list[str]:
        """Distinct link types incident to a position, sorted."""
        self._check_position(position)
        return sorted({t for _, t in self._required[position]})

    def node_type(self, position: int) -> str | None:
        self._check_position(position)
        return self._node_types[position]

    @property
    def node_types(self) -> tuple[str | None, ...]:
        return self._node_types

    def automorphism_group(self) -> list[tuple[int, ...]]:
        """All position permutations preserving typed adjacency (cached).

        The identity permutation is always first.
        """
        if self._automorphisms is None:
            from .symmetry import automorphism_group

            self._automorphisms = automorphism_group(self)
        return list(self._automorphisms)

    def _check_position(self, position: int) -> None:
        if not 0 <= position < self._size:
            raise ValueError(f"Position {position} outside [0, {self._size})")

    # ========== Compact Notation ==========

    @classmethod
    def from_string(
        cls,
        notation: str,
        link_types: Mapping[str, str] | None = None,
        node_types: Sequence[str | None] | None = None,
    ) -> "Motif":
        """Parse the compact lower-triangular notation.

        Args:
            notation: One character per position pair, "0" for no link
            link_types: Maps link codes to link type names; codes missing
                from the mapping are used as type names directly
            node_types: Optional node type per position

        Raises:
            ValueError: If the length is not a triangular number or the
                resulting pattern is invalid
        """
        if not notation:
            raise ValueError("Motif notation must not be empty")
        # len = n(n-1)/2  =>  n = (1 + sqrt(1 + 8 len)) / 2
        size = (1 + math.isqrt(1 + 8 * len(notation))) // 2
        if size * (size - 1) // 2 != len(notation):
            raise ValueError(
                f"Motif notation {notation!r} has {len(notation)} characters; "
                "expected a triangular number (1, 3, 6, 10, ...)"
            )
        mapping = dict(link_types or {})
        links = []
        chars = iter(notation)
        for i in range(1, size):
            for j in range(i):
                code = next(chars)
                if code == NO_LINK:
                    continue
                links.append(MotifLink(j, i, mapping.get(code, code)))
        return cls(size, links, node_types=node_types, name=notation)

    def to_string(self, link_codes: Mapping[str, str] | None = None) -> str:
        """Render the compact notation.

        Args:
            link_codes: Maps link type names to one-character codes; types
                missing from the mapping must already be one character

        Raises:
            ValueError: If a pair has several link types or a type has no
                one-character code
        """
        codes = dict(link_codes or {})
        out = []
        for i in range(1, self._size):
            for j in range(i):
                types = self._pair_types.get(frozenset((i, j)))
                if not types:
                    out.append(NO_LINK)
                    continue
                if len(types) > 1:
                    raise ValueError(f"Positions {j}-{i} carry several link types: {sorted(types)}")
                (link_type,) = types
                code = codes.get(link_type, link_type)
                if len(code) != 1 or code == NO_LINK:
                    raise ValueError(f"Link type {link_type!r} has no one-character code")
                out.append(code)
        return "".join(out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "size": self._size,
            "node_types": list(self._node_types),
            "links": [
                {"source": link.source, "target": link.target, "type": link.type}
                for link in self._links
            ],
        }


@dataclass(frozen=True)
class MotifInstance:
    """One occurrence of a motif: the network node mapped to each position.

    Value-comparable and hashable by content.
    """

    nodes: tuple[NetworkNode, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, position: int) -> NetworkNode:
        return self.nodes[position]

    def __iter__(self) -> Iterator[NetworkNode]:
        return iter(self.nodes)

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    @property
    def node_set(self) -> frozenset[NetworkNode]:
        return frozenset(self.nodes)

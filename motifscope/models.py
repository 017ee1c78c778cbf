"""Pydantic models for the Motifscope public API.

These are thin wrappers over the engine types (engine.network,
engine.motif), providing validation and serialization for the
client-facing API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class Node(BaseModel):
    """A node of the target network."""

    id: str
    type: str = "unknown"
    properties: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        parts = [f"Node({self.id!r}, type={self.type!r}"]
        if self.properties:
            parts.append(f", properties={self.properties!r}")
        parts.append(")")
        return "".join(parts)


class Link(BaseModel):
    """An undirected, typed link between two distinct nodes."""

    source: str
    target: str
    type: str

    @model_validator(mode="after")
    def _check_distinct(self) -> Link:
        if self.source == self.target:
            raise ValueError(f"Self-links are not supported: {self.source!r}")
        return self

    def __repr__(self) -> str:
        return f"Link({self.source!r} -{self.type}- {self.target!r})"


class Occurrence(BaseModel):
    """One motif occurrence: node IDs listed by motif position."""

    nodes: list[str]

    def __repr__(self) -> str:
        return f"Occurrence({self.nodes!r})"

    @property
    def node_set(self) -> set[str]:
        return set(self.nodes)


class SearchResult(BaseModel):
    """All occurrences of one motif, plus optional link usage.

    ``used_links`` is only populated when the search tracked links; each
    entry is a sorted pair of node IDs. ``cancelled`` marks a partial
    result.
    """

    motif: str
    size: int
    occurrences: list[Occurrence] = Field(default_factory=list)
    used_links: list[tuple[str, str]] | None = None
    cancelled: bool = False

    @property
    def count(self) -> int:
        return len(self.occurrences)

    def __len__(self) -> int:
        return len(self.occurrences)


class NetworkStats(BaseModel):
    """Summary counts for a network, broken down by type."""

    node_count: int
    link_count: int
    nodes_by_type: dict[str, int]
    links_by_type: dict[str, int]


class SymmetryReport(BaseModel):
    """Automorphism structure of a motif.

    ``conditions`` are (a, b) position pairs: in every reported occurrence
    the node at position a was inserted into the network before the node
    at position b.
    """

    motif: str
    size: int
    group_order: int
    automorphisms: list[list[int]]
    orbits: list[list[int]]
    conditions: list[tuple[int, int]]

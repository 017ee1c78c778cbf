"""Motifscope — enumerate every occurrence of a typed motif in a typed network."""

__version__ = "0.1.0"

from motifscope.client import Motifscope
from motifscope.engine.motif import Motif, MotifLink
from motifscope.models import (
    Link,
    NetworkStats,
    Node,
    Occurrence,
    SearchResult,
    SymmetryReport,
)

__all__ = [
    "Link",
    "Motif",
    "MotifLink",
    "Motifscope",
    "NetworkStats",
    "Node",
    "Occurrence",
    "SearchResult",
    "SymmetryReport",
    "__version__",
]

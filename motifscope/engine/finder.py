"""Backtracking motif search.

MotifFinder enumerates every occurrence of a motif in a network:

    finder = MotifFinder(network)
    instances = finder.find(Motif.from_string("AAA"))

The search seeds one candidate set per motif position, starts at the
position with the fewest seeds, and then repeatedly expands the position
whose refined candidate set is smallest. Automorphic duplicates are pruned
during the search by SymmetryHandler, not filtered afterwards.

Thread Safety:
    A search runs on the calling thread and holds the network lock for its
    duration. cancel() may be called from any other thread; the running
    search stops trying candidates and returns what it found so far.
    A MotifFinder runs one search at a time.
"""

import logging
import threading
import time

from .candidates import CandidateIterator
from .motif import Motif, MotifInstance
from .network import Network, NetworkNode
from .symmetry import SymmetryHandler

logger = logging.getLogger("motifscope.engine")


class MotifFinder:
    """Finds all instances of a motif in a network."""

    def __init__(self, network: Network) -> None:
        self.network = network
        self._cancelled = threading.Event()
        self._used_links: set[frozenset[NetworkNode]] | None = None
        # Per-search state, reset at the end of every find()
        self._motif: Motif | None = None
        self._handler: SymmetryHandler | None = None
        self._instances: set[MotifInstance] = set()
        self._unmapped: set[int] = set()
        self._track_links = False
        self._steps = 0

    # ========== Public API ==========

    def find(self, motif: Motif, track_links: bool = False) -> set[MotifInstance]:
        """Find all instances of ``motif``.

        Args:
            motif: Pattern to search for
            track_links: If True, collect the network links used by the
                result set; read them afterwards from ``used_links``

        Returns:
            Set of instances, one per physical occurrence. Partial if the
            search was cancelled.

        Raises:
            RuntimeError: If this finder is already running a search
        """
        if self._handler is not None:
            raise RuntimeError("MotifFinder is already running a search")

        size = len(motif)
        started = time.perf_counter()
        with self.network.batch():
            iterators = [
                CandidateIterator.seed(
                    self.network,
                    position,
                    motif.link_types_of(position),
                    motif.node_type(position),
                )
                for position in range(size)
            ]
            root = min(range(size), key=lambda p: (len(iterators[p]), p))
            logger.debug(
                "Searching motif %s (%d positions) from position %d with %d seeds",
                motif.name,
                size,
                root,
                len(iterators[root]),
            )

            self._motif = motif
            self._handler = SymmetryHandler(self.network, motif, iterators)
            self._instances = set()
            self._unmapped = set(range(size))
            self._track_links = track_links
            self._used_links = set() if track_links else None
            self._steps = 0
            try:
                self._expand(root, 0)
                instances = self._instances
            finally:
                steps = self._steps
                self._motif = None
                self._handler = None
                self._instances = set()
                self._unmapped = set()

        elapsed = time.perf_counter() - started
        if self.cancelled:
            logger.info(
                "Search for motif %s cancelled after %d steps; returning %d partial instances",
                motif.name,
                steps,
                len(instances),
            )
        else:
            logger.info(
                "Found %d instances of motif %s in %.3fs (%d steps)",
                len(instances),
                motif.name,
                elapsed,
                steps,
            )
        return instances

    def cancel(self) -> None:
        """Stop the running search (and any later one) from another thread."""
        if not self._cancelled.is_set():
            logger.info("Cancellation requested")
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def used_links(self) -> set[frozenset[NetworkNode]] | None:
        """Links used by the last search, or None if it did not track links."""
        if self._used_links is None:
            return None
        return set(self._used_links)

    # ========== Search ==========

    def _expand(self, position: int, depth: int) -> None:
        """Try every candidate for ``position`` and recurse.

        Note: Assumes the caller holds the network lock.
        """
        handler = self._handler
        assert handler is not None and self._motif is not None
        is_last = depth == len(self._motif) - 1
        self._unmapped.discard(position)

        for node in handler.iterators[position].candidates:
            if self._cancelled.is_set():
                break
            self._steps += 1
            if not handler.map_node(position, node):
                continue
            if is_last:
                self._emit(handler.mapping)
            else:
                next_position = handler.next_best_position(self._unmapped)
                if next_position is not None:
                    if not self._cancelled.is_set():
                        self._expand(next_position, depth + 1)
                    handler.restore_position(next_position)
            handler.unmap_node(position, node)

        self._unmapped.add(position)

    def _emit(self, mapping: list[NetworkNode | None]) -> None:
        nodes = tuple(node for node in mapping if node is not None)
        assert len(nodes) == len(mapping), "emitting an incomplete mapping"
        self._instances.add(MotifInstance(nodes))
        if self._track_links and self._used_links is not None and self._motif is not None:
            for link in self._motif.links:
                self._used_links.add(frozenset((mapping[link.source], mapping[link.target])))

from motifscope.engine.candidates import CandidateIterator
from motifscope.engine.finder import MotifFinder
from motifscope.engine.motif import Motif, MotifInstance, MotifLink
from motifscope.engine.network import Network, NetworkLink, NetworkNode
from motifscope.engine.persistence import load_edge_list, load_network, save_network
from motifscope.engine.symmetry import (
    Commitment,
    SymmetryHandler,
    automorphism_group,
    motif_graph,
    orbits,
    symmetry_conditions,
)

__all__ = [
    "NetworkNode",
    "NetworkLink",
    "Network",
    "MotifLink",
    "Motif",
    "MotifInstance",
    "CandidateIterator",
    "Commitment",
    "SymmetryHandler",
    "automorphism_group",
    "motif_graph",
    "orbits",
    "symmetry_conditions",
    "MotifFinder",
    "save_network",
    "load_network",
    "load_edge_list",
]

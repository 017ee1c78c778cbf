"""Tests for symmetry conditions and SymmetryHandler commit/rollback."""

import pytest

from motifscope.engine import (
    CandidateIterator,
    Motif,
    SymmetryHandler,
    automorphism_group,
    motif_graph,
    orbits,
    symmetry_conditions,
)


def make_handler(network, motif):
    iterators = [
        CandidateIterator.seed(network, p, motif.link_types_of(p), motif.node_type(p))
        for p in range(len(motif))
    ]
    return SymmetryHandler(network, motif, iterators)


@pytest.fixture()
def square_motif() -> Motif:
    return Motif.from_string("A0AA0A", link_types={"A": "E"})


class TestAutomorphisms:
    """Tests for the motif graph and its automorphism group."""

    def test_motif_graph_attributes(self):
        motif = Motif(3, [(0, 1, "E"), (0, 1, "F"), (1, 2, "E")], node_types=["k", None, "k"])
        g = motif_graph(motif)
        assert sorted(g.nodes) == [0, 1, 2]
        assert g.nodes[0]["type"] == "k"
        assert g.nodes[1]["type"] is None
        assert g.edges[1, 0]["types"] == frozenset({"E", "F"})
        assert g.edges[2, 1]["types"] == frozenset({"E"})

    def test_sorted_with_identity_first(self):
        group = automorphism_group(Motif.from_string("A0AA0A"))
        assert group[0] == (0, 1, 2, 3)
        assert group == sorted(group)

    def test_multi_typed_pair_breaks_symmetry(self):
        # Path 0-1-2 where only the 0-1 pair also carries an F link
        motif = Motif(3, [(0, 1, "E"), (0, 1, "F"), (1, 2, "E")])
        assert automorphism_group(motif) == [(0, 1, 2)]

    def test_node_type_none_matches_only_none(self):
        motif = Motif.from_string("A", node_types=["k", None])
        assert automorphism_group(motif) == [(0, 1)]


class TestSymmetryConditions:
    """Tests for the orbit/stabiliser tie-break conditions."""

    @pytest.mark.parametrize(
        ("notation", "expected"),
        [
            ("A", [(0, 1)]),
            ("A0A", [(0, 2)]),
            ("AAA", [(0, 1), (0, 2), (1, 2)]),
            ("A0AA0A", [(0, 1), (0, 2), (0, 3), (1, 3)]),
            ("AA0A00", [(1, 2), (1, 3), (2, 3)]),
            ("AAB", [(1, 2)]),
        ],
    )
    def test_conditions(self, notation, expected):
        motif = Motif.from_string(notation)
        assert symmetry_conditions(len(motif), motif.automorphism_group()) == expected

    def test_asymmetric_motif_has_no_conditions(self):
        # 0-1 E, 1-2 F, 2-3 E, 1-3 E: no non-trivial automorphism
        motif = Motif(4, [(0, 1, "E"), (1, 2, "F"), (2, 3, "E"), (1, 3, "E")])
        assert automorphism_group(motif) == [(0, 1, 2, 3)]
        assert symmetry_conditions(4, automorphism_group(motif)) == []

    def test_orbits(self):
        motif = Motif.from_string("AA0A00")
        assert orbits(4, motif.automorphism_group()) == [[0], [1, 2, 3]]


class TestMapNode:
    """Tests for SymmetryHandler.map_node()/unmap_node()."""

    def test_commit_records_state(self, square, square_motif):
        handler = make_handler(square, square_motif)
        a = square.get_node("A")
        assert handler.map_node(0, a)
        assert handler.mapping[0] is a
        assert handler.mapped_positions == [0]
        assert handler.is_in_use(a)
        (commitment,) = handler.commitments
        assert (commitment.position, commitment.node) == (0, a)

    def test_node_in_use_rejected(self, square, square_motif):
        handler = make_handler(square, square_motif)
        a = square.get_node("A")
        assert handler.map_node(0, a)
        assert not handler.map_node(1, a)
        assert handler.mapped_positions == [0]

    def test_missing_link_rejected(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.map_node(0, square.get_node("A"))
        # Position 1 must be linked to position 0; A and C are not linked
        assert not handler.map_node(1, square.get_node("C"))
        assert handler.mapping[1] is None

    def test_non_neighbour_position_not_checked_for_links(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.map_node(0, square.get_node("A"))
        # Positions 0 and 2 are opposite corners; only the ordering applies
        assert handler.map_node(2, square.get_node("C"))

    def test_symmetry_violation_rejected(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.map_node(0, square.get_node("B"))
        # Condition (0, 1): A was inserted before B, so A cannot follow B here
        assert not handler.map_node(1, square.get_node("A"))
        assert handler.map_node(1, square.get_node("C"))

    def test_reverse_condition_checked(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.map_node(1, square.get_node("A"))
        # Condition (0, 1) seen from the other side
        assert not handler.map_node(0, square.get_node("B"))

    def test_unmap_restores_state(self, square, square_motif):
        handler = make_handler(square, square_motif)
        a, b = square.get_node("A"), square.get_node("B")
        handler.map_node(0, a)
        handler.map_node(1, b)
        handler.unmap_node(1, b)
        handler.unmap_node(0, a)
        assert handler.mapping == [None, None, None, None]
        assert handler.mapped_positions == []
        assert handler.commitments == []
        assert not handler.is_in_use(a)
        assert handler.map_node(1, a)

    def test_unmap_out_of_order_raises(self, square, square_motif):
        handler = make_handler(square, square_motif)
        a, b = square.get_node("A"), square.get_node("B")
        handler.map_node(0, a)
        handler.map_node(1, b)
        with pytest.raises(RuntimeError, match="Out-of-order"):
            handler.unmap_node(0, a)

    def test_unmap_empty_raises(self, square, square_motif):
        handler = make_handler(square, square_motif)
        with pytest.raises(RuntimeError, match="No committed"):
            handler.unmap_node(0, square.get_node("A"))

    def test_map_twice_raises(self, square, square_motif):
        handler = make_handler(square, square_motif)
        handler.map_node(0, square.get_node("A"))
        with pytest.raises(RuntimeError, match="already mapped"):
            handler.map_node(0, square.get_node("B"))


class TestNextBestPosition:
    """Tests for search-order selection."""

    def test_picks_smallest_refined_set(self, square, square_motif):
        handler = make_handler(square, square_motif)
        handler.map_node(0, square.get_node("A"))
        # 1 and 3 are refined to {B, D}; 2 keeps all four seeds
        assert handler.next_best_position({1, 2, 3}) == 1
        installed = handler.iterators[1]
        assert [n.id for n in installed] == ["B", "D"]
        assert installed.depth == 1

    def test_restore_reinstates_seed(self, square, square_motif):
        handler = make_handler(square, square_motif)
        seed = handler.iterators[1]
        handler.map_node(0, square.get_node("A"))
        handler.next_best_position({1, 2, 3})
        handler.restore_position(1)
        assert handler.iterators[1] is seed

    def test_refines_against_every_committed_neighbour(self, square, square_motif):
        handler = make_handler(square, square_motif)
        handler.map_node(0, square.get_node("A"))
        handler.map_node(2, square.get_node("C"))
        iterator = handler.refined_iterator(3)
        assert iterator.depth == 2
        assert [n.id for n in iterator] == ["B", "D"]

    def test_empty_candidate_set_wins(self, square):
        motif = Motif.from_string("AAA", link_types={"A": "E"})
        handler = make_handler(square, motif)
        handler.map_node(0, square.get_node("A"))
        handler.map_node(1, square.get_node("B"))
        assert handler.next_best_position({2}) == 2
        assert len(handler.iterators[2]) == 0

    def test_no_unmapped_positions(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.next_best_position(set()) is None

    def test_tie_goes_to_lowest_position(self, square, square_motif):
        handler = make_handler(square, square_motif)
        assert handler.next_best_position({3, 2, 1}) == 1


class TestHandlerSetup:
    """Tests for SymmetryHandler construction."""

    def test_iterator_count_must_match(self, square, square_motif):
        with pytest.raises(ValueError, match="Expected 4 candidate iterators"):
            SymmetryHandler(square, square_motif, [])

    def test_satisfies_conditions(self, square, square_motif):
        handler = make_handler(square, square_motif)
        a, b, c, d = (square.get_node(x) for x in "ABCD")
        assert handler.satisfies_conditions([a, b, c, d])
        assert not handler.satisfies_conditions([b, c, d, a])

import pytest
import pynini
from pynini import Weight

from wordlat import (CompactLatticeWeight, Lattice, LatticeArc,
                     LabelSequenceRegistry, decode_label, expand_fst,
                     registry_to_symbols)

A, B, C, DELIM = 1, 2, 3, 4


def W(graph, acoustic=0.0, alignment=()):
    return CompactLatticeWeight(graph, acoustic, alignment)


def make_lattice(num_states, arcs, finals, start=0):
    """
    Lattice from (src, ilabel, olabel, weight, dest) arcs
    and {state: final weight}.
    """
    lat = Lattice()
    lat.add_states(num_states)
    lat.set_start(start)
    for (src, ilabel, olabel, weight, dest) in arcs:
        lat.add_arc(src, LatticeArc(ilabel, olabel, weight, dest))
    for q, w in finals.items():
        lat.set_final(q, w)
    return lat


def word_arcs(lat, registry, olabel_registry=None):
    """
    Arcs as (src, ilabels, olabels, weight, dest), decoded
    through the registries, sorted by src/dest/labels.
    """
    if olabel_registry is None:
        olabel_registry = registry
    arcs = [(q, registry.sequence(t.ilabel),
             olabel_registry.sequence(t.olabel), t.weight, t.nextstate)
            for q in lat.states() for t in lat.arcs(q)]
    return sorted(arcs, key=lambda x: (x[0], x[4], x[1], x[2]))


def test_single_symbol_words():
    # 0 -a-> 1 -DELIM-> 2 -b-> 3
    lat = make_lattice(4, [(0, A, A, W(1), 1), (1, DELIM, DELIM, W(1), 2),
                           (2, B, B, W(1), 3)], {3: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry)
    assert olat.num_states() == 4
    assert olat.start() == 0
    assert olat.is_final(3)
    assert word_arcs(olat, registry) == [
        (0, (A, ), (A, ), W(1), 1),
        (1, (DELIM, ), (DELIM, ), W(1), 2),
        (2, (B, ), (B, ), W(1), 3),
    ]
    # Epsilon, delimiter, a, b.
    assert registry.size() == 4
    assert registry.code_of(()) == 0


def test_collapse_word():
    # 0 -a-> 1 -b-> 2 -DELIM-> 3
    lat = make_lattice(4, [(0, A, A, W(1.5, 0.25, (7, )), 1),
                           (1, B, B, W(2.0, 0.5, (8, 9)), 2),
                           (2, DELIM, DELIM, W(0.5), 3)], {3: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry)
    # State 1 is no longer on any path: 0, 2, 3 -> 0, 1, 2.
    assert olat.num_states() == 3
    assert word_arcs(olat, registry) == [
        (0, (A, B), (A, B), W(3.5, 0.75, (7, 8, 9)), 1),
        (1, (DELIM, ), (DELIM, ), W(0.5), 2),
    ]


def test_max_length_drops_long_words():
    # 0 -a-> 1 -b-> 2 -c-> 3 -DELIM-> 4
    arcs = [(0, A, A, W(1), 1), (1, B, B, W(1), 2), (2, C, C, W(1), 3),
            (3, DELIM, DELIM, W(1), 4)]
    lat = make_lattice(5, arcs, {4: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, max_length=1)
    assert olat.num_states() == 0
    assert olat.num_arcs() == 0

    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, max_length=3)
    assert word_arcs(olat, registry)[0][1] == (A, B, C)


def test_max_length_zero_keeps_epsilon_segments():
    # 0 -eps-> 1 -DELIM-> 2 -a-> 3
    lat = make_lattice(4, [(0, 0, 0, W(1), 1), (1, DELIM, DELIM, W(2), 2),
                           (2, A, A, W(3), 3)], {2: W(0), 3: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, max_length=0)
    assert word_arcs(olat, registry) == [
        (0, (), (), W(1), 1),
        (1, (DELIM, ), (DELIM, ), W(2), 2),
    ]


def test_cycles_bounded_by_max_length():
    # 0 -a-> 1 -b-> 2 -c-> 1, 2 -DELIM-> 3
    arcs = [(0, A, A, W(1), 1), (1, B, B, W(2), 2), (2, C, C, W(4), 1),
            (2, DELIM, DELIM, W(0), 3)]
    lat = make_lattice(4, arcs, {3: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, max_length=6)
    words = {
        ilabels: weight.cost()
        for (src, ilabels, olabels, weight, dest) in word_arcs(olat, registry)
        if ilabels != (DELIM, )
    }
    # Path weight is the product (sum of costs) along each path.
    assert words == {
        (A, B): 3.0,
        (A, B, C, B): 9.0,
        (A, B, C, B, C, B): 15.0,
    }
    for q in olat.states():
        for t in olat.arcs(q):
            assert len(registry.sequence(t.olabel)) <= 6


def test_parallel_paths_are_not_merged():
    lat = make_lattice(3, [(0, A, A, W(1), 1), (0, A, A, W(2), 1),
                           (1, DELIM, DELIM, W(0), 2)], {2: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry)
    arcs = word_arcs(olat, registry)
    assert [(x[0], x[1], x[4]) for x in arcs[:2]] == \
        [(0, (A, ), 1), (0, (A, ), 1)]
    assert sorted(x[3].cost() for x in arcs[:2]) == [1.0, 2.0]
    assert len(arcs) == 3


def test_no_delimiters_enumerates_paths():
    lat = make_lattice(3, [(0, A, A, W(1), 1), (1, B, B, W(1), 2),
                           (0, C, C, W(5), 2)], {2: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, set(), registry)
    arcs = word_arcs(olat, registry)
    assert olat.num_states() == 2
    assert sorted((x[1], x[3].cost()) for x in arcs) == \
        [((A, B), 2.0), ((C, ), 5.0)]


def test_no_internal_delimiters_or_self_loops():
    # Delimiter self-loop on state 1 is the only self-loop kept.
    arcs = [(0, A, A, W(1), 1), (1, DELIM, DELIM, W(1), 1),
            (1, B, B, W(1), 2), (2, C, C, W(1), 3), (3, 5, 5, W(1), 4),
            (4, A, A, W(1), 5)]
    lat = make_lattice(6, arcs, {5: W(0)})
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM, 5}, registry)
    for (src, ilabels, olabels, weight, dest) in word_arcs(olat, registry):
        if DELIM in ilabels or 5 in ilabels:
            assert len(ilabels) == 1
        if src == dest:
            assert ilabels == (DELIM, )
    words = [x[1] for x in word_arcs(olat, registry)]
    assert (B, C) in words
    assert (A, ) in words


def test_match_input_side():
    # a:a DELIM:eps b:b
    arcs = [(0, A, A, W(1), 1), (1, DELIM, 0, W(1), 2), (2, B, B, W(1), 3)]
    lat = make_lattice(4, arcs, {3: W(0)})

    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, match_input=True)
    assert [(x[1], x[2]) for x in word_arcs(olat, registry)] == \
        [((A, ), (A, )), ((DELIM, ), ()), ((B, ), (B, ))]

    # Delimiter does not appear on the output side.
    registry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, registry, match_input=False)
    assert [(x[1], x[2]) for x in word_arcs(olat, registry)] == \
        [((A, DELIM, B), (A, B))]


def test_separate_output_registry():
    arcs = [(0, A, C, W(1), 1), (1, DELIM, DELIM, W(1), 2)]
    lat = make_lattice(3, arcs, {2: W(0)})
    iregistry = LabelSequenceRegistry()
    oregistry = LabelSequenceRegistry()
    olat = expand_fst(lat, {DELIM}, iregistry, olabel_registry=oregistry)
    assert [(x[1], x[2]) for x in word_arcs(olat, iregistry, oregistry)] == \
        [((A, ), (C, )), ((DELIM, ), (DELIM, ))]
    assert (A, ) in iregistry and (A, ) not in oregistry
    assert (C, ) in oregistry and (C, ) not in iregistry


def test_deterministic_and_symbols_round_trip():
    arcs = [(0, A, A, W(1), 1), (0, B, B, W(2), 1), (1, C, C, W(1), 2),
            (2, DELIM, DELIM, W(1), 3), (3, A, A, W(1), 4),
            (3, 0, 0, W(1), 4)]
    lat = make_lattice(5, arcs, {4: W(0)})

    registry1 = LabelSequenceRegistry()
    olat1 = expand_fst(lat, {DELIM}, registry1)
    registry2 = LabelSequenceRegistry()
    olat2 = expand_fst(lat, {DELIM}, registry2)
    assert word_arcs(olat1, registry1) == word_arcs(olat2, registry2)

    symbols = registry_to_symbols(registry1)
    for q in olat1.states():
        for t in olat1.arcs(q):
            assert decode_label(symbols, t.ilabel) == \
                registry1.sequence(t.ilabel)
    words = [x[1] for x in word_arcs(olat1, registry1)]
    assert () in words  # epsilon-only word 3 -> 4
    assert decode_label(symbols, 0) == ()


def test_input_is_not_modified():
    lat = make_lattice(3, [(0, A, A, W(1), 1), (1, B, B, W(1), 2)],
                       {2: W(0)})
    before = str(lat)
    expand_fst(lat, {DELIM}, LabelSequenceRegistry())
    assert str(lat) == before


def test_empty_lattice():
    olat = expand_fst(Lattice(), {DELIM}, LabelSequenceRegistry())
    assert olat.num_states() == 0


def test_pynini_fst():
    # Same as test_collapse_word, over the tropical semiring.
    fst = pynini.Fst()
    for _ in range(4):
        fst.add_state()
    fst.set_start(0)
    fst.set_final(3)
    one = Weight.one('tropical')
    fst.add_arc(0, pynini.Arc(A, A, Weight('tropical', 1.5), 1))
    fst.add_arc(1, pynini.Arc(B, B, Weight('tropical', 2.0), 2))
    fst.add_arc(2, pynini.Arc(DELIM, DELIM, one, 3))

    registry = LabelSequenceRegistry()
    ofst = expand_fst(fst, {DELIM}, registry)
    assert isinstance(ofst, pynini.Fst)
    assert ofst.num_states() == 3
    words = []
    for q in ofst.states():
        for t in ofst.arcs(q):
            words.append((registry.sequence(t.ilabel), float(t.weight)))
    assert sorted(words) == [((A, B), pytest.approx(3.5)),
                             ((DELIM, ), pytest.approx(0.0))]

    # Lattice built from the Fst expands the same way.
    registry2 = LabelSequenceRegistry()
    olat = expand_fst(Lattice.from_fst(fst), {DELIM}, registry2)
    assert [(x[1], x[3].cost()) for x in word_arcs(olat, registry2)] == \
        [((A, B), 3.5), ((DELIM, ), 0.0)]

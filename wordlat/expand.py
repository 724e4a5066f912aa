# Expansion of character-level lattices into word-level lattices.
#
# Every path segment between two delimiter crossings (or between a
# delimiter crossing and a final state) is collapsed into a single
# arc whose input/output labels are codes of the label sequences
# read along the segment, and whose weight is the product of the
# weights on the segment. The number of output arcs can grow
# exponentially with the branching between delimiters, so inputs
# should be pruned and max_length bounded.
from collections import namedtuple

from wordlat import config
from wordlat.semiring import get_semiring

# Partial path from word-boundary state origin to state,
# with accumulated weight and non-epsilon labels.
FrontierEntry = namedtuple(
    'FrontierEntry', ['origin', 'state', 'weight', 'ilabels', 'olabels'])


def expand_fst(ifst,
               delimiters,
               registry,
               max_length=None,
               match_input=False,
               olabel_registry=None,
               semiring=None):
    """
    Word-level machine equivalent to ifst (Lattice or pynini Fst).
    Args:
        delimiters: labels that separate words (never epsilon)
        registry: LabelSequenceRegistry for input label sequences
        max_length: maximum number of labels in a word on the
            matched side (config.max_length by default)
        match_input: find delimiters on input labels instead of
            output labels
        olabel_registry: registry for output label sequences
            (registry by default, as in a shared symbol table)
        semiring: weight operations (inferred from ifst by default)
    Returns a new machine of the same type as ifst, whose states
    are those of ifst that remain on successful paths.
    [nondestructive]
    """
    if max_length is None:
        max_length = config.max_length
    if olabel_registry is None:
        olabel_registry = registry
    if semiring is None:
        semiring = get_semiring(ifst.weight_type())
    delimiters = frozenset(delimiters)
    epsilon = config.epsilon

    def match_label(t):
        return t.ilabel if match_input else t.olabel

    # Output machine has the same states and final weights.
    ofst = type(ifst)(ifst.arc_type())
    for _ in ifst.states():
        ofst.add_state()
    for q in ifst.states():
        ofst.set_final(q, ifst.final(q))
    q0 = ifst.start()
    if q0 < 0:
        return ofst.connect()
    ofst.set_start(q0)

    # Keep delimiter arcs as single-label words; their destinations
    # (and the start state) are the states at which words begin.
    boundaries = [q0]
    boundary_set = set(boundaries)
    for q in ifst.states():
        for t in ifst.arcs(q):
            if match_label(t) not in delimiters:
                continue
            ilabels = (t.ilabel, ) if t.ilabel != epsilon else ()
            olabels = (t.olabel, ) if t.olabel != epsilon else ()
            ofst.add_arc(
                q,
                semiring.make_arc(registry.code_of(ilabels),
                                  olabel_registry.code_of(olabels),
                                  t.weight, t.nextstate))
            if t.nextstate not in boundary_set:
                boundary_set.add(t.nextstate)
                boundaries.append(t.nextstate)

    one = semiring.one()
    stack = [FrontierEntry(q, q, one, (), ()) for q in boundaries]
    npopped = 0
    while stack:
        origin, src, weight, ilabels, olabels = stack.pop()
        npopped += 1
        has_delim_arc = False
        for t in ifst.arcs(src):
            label = match_label(t)
            if label in delimiters:
                has_delim_arc = True
                continue
            length = len(ilabels) if match_input else len(olabels)
            if label != epsilon:
                length += 1
            if length > max_length:
                continue
            stack.append(
                FrontierEntry(
                    origin, t.nextstate, semiring.times(weight, t.weight),
                    ilabels + (t.ilabel, ) if t.ilabel != epsilon else ilabels,
                    olabels + (t.olabel, ) if t.olabel != epsilon else olabels))

        # Word ends where a delimiter follows or at a final state.
        if origin != src and \
            (has_delim_arc or not semiring.is_zero(ifst.final(src))):
            ofst.add_arc(
                origin,
                semiring.make_arc(registry.code_of(ilabels),
                                  olabel_registry.code_of(olabels), weight,
                                  src))

    config.logger.debug(f'{len(boundaries)} word-boundary states, '
                        f'{npopped} partial paths expanded')
    ofst.connect()
    return ofst

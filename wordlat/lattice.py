# Mutable lattices with two-dimensional (graph, acoustic) weights,
# plus the scaling and beam-pruning operations applied before
# expansion. The Lattice interface mirrors the subset of
# pynini.Fst used in this package, so that algorithms can accept
# either kind of machine.
import numpy as np

import pynini
from pynini import Weight

from wordlat import config
from wordlat.semiring import CompactLatticeWeight, get_semiring

NO_STATE_ID = -1  # OpenFst convention.


class LatticeArc():
    """
    Arc of Lattice (same attributes as pynini.Arc).
    """

    __slots__ = ('ilabel', 'olabel', 'weight', 'nextstate')

    def __init__(self, ilabel, olabel, weight, nextstate):
        self.ilabel = ilabel
        self.olabel = olabel
        self.weight = weight
        self.nextstate = nextstate

    def copy(self):
        return LatticeArc(self.ilabel, self.olabel, self.weight,
                          self.nextstate)

    def __eq__(self, other):
        if not isinstance(other, type(self)):
            return NotImplemented
        return (self.ilabel, self.olabel, self.weight, self.nextstate) \
            == (other.ilabel, other.olabel, other.weight, other.nextstate)

    def __hash__(self):
        return hash((self.ilabel, self.olabel, self.weight, self.nextstate))

    def __repr__(self):
        return (f'LatticeArc({self.ilabel}, {self.olabel}, '
                f'{self.weight}, {self.nextstate})')


class Lattice():
    """
    Bare-bones weighted automaton over CompactLatticeWeight.
    States are dense ids [0, N); label 0 is epsilon.
    """

    def __init__(self, arc_type=config.arc_type):
        if arc_type != config.arc_type:
            raise ValueError(f'Lattice cannot have arc type {arc_type}')
        self._arcs = []  # State id -> list of outgoing arcs.
        self._finals = []  # State id -> final weight.
        self._start = NO_STATE_ID
        self._isymbols = None
        self._osymbols = None

    # Symbol tables.

    def input_symbols(self):
        return self._isymbols

    def output_symbols(self):
        return self._osymbols

    def set_input_symbols(self, isymbols):
        self._isymbols = isymbols
        return self

    def set_output_symbols(self, osymbols):
        self._osymbols = osymbols
        return self

    def arc_type(self):
        return config.arc_type

    def weight_type(self):
        return config.arc_type

    # States.

    def add_state(self):
        """ Add new state and return its id. """
        self._arcs.append([])
        self._finals.append(CompactLatticeWeight.zero())
        return len(self._arcs) - 1

    def add_states(self, n):
        for _ in range(n):
            self.add_state()
        return self

    def states(self):
        return iter(range(len(self._arcs)))

    def num_states(self):
        return len(self._arcs)

    def start(self):
        return self._start

    def set_start(self, q):
        self._check_state(q)
        self._start = q
        return self

    def final(self, q):
        self._check_state(q)
        return self._finals[q]

    def set_final(self, q, weight=None):
        """
        Set final weight of state.
        note: default weight is one, not zero.
        """
        self._check_state(q)
        if weight is None:
            weight = CompactLatticeWeight.one()
        self._finals[q] = weight
        return self

    def is_final(self, q):
        return not self.final(q).is_zero()

    def finals(self):
        """ Iterator over ids of states with non-zero final weight. """
        return filter(self.is_final, self.states())

    def _check_state(self, q):
        if not 0 <= q < len(self._arcs):
            raise IndexError(f'State id {q} out of range')

    # Arcs.

    def add_arc(self, src, arc):
        self._check_state(src)
        self._check_state(arc.nextstate)
        if not isinstance(arc, LatticeArc):
            arc = LatticeArc(arc.ilabel, arc.olabel, arc.weight,
                             arc.nextstate)
        self._arcs[src].append(arc)
        return self

    def arcs(self, q):
        """ Iterator over arcs out of a state. """
        self._check_state(q)
        return iter(self._arcs[q])

    def num_arcs(self, q=None):
        """
        Number of arcs from designated state (out-degree)
        or total number of arcs.
        """
        if q is None:
            return sum(len(q_arcs) for q_arcs in self._arcs)
        self._check_state(q)
        return len(self._arcs[q])

    def delete_arcs(self, q):
        """ Remove all arcs from a state. [destructive] """
        self._check_state(q)
        self._arcs[q] = []
        return self

    # Trimming.

    def accessible(self, forward=True):
        """
        Ids of states accessible from initial state (forward)
        -or- coaccessible from final states (backward).
        """
        if forward:
            if self._start == NO_STATE_ID:
                return set()
            Q = set([self._start])
            T = {src: set(t.nextstate for t in self._arcs[src])
                 for src in self.states()}
        else:
            Q = set(self.finals())
            T = {}
            for src in self.states():
                for t in self._arcs[src]:
                    T.setdefault(t.nextstate, set()).add(src)

        Q_old = set()
        Q_new = set(Q)
        while len(Q_new) != 0:
            Q_old, Q_new = Q_new, Q_old
            Q_new.clear()
            for src in filter(lambda q1: q1 in T, Q_old):
                for dest in filter(lambda q2: q2 not in Q, T[src]):
                    Q.add(dest)
                    Q_new.add(dest)
        return Q

    def coaccessible(self):
        return self.accessible(forward=False)

    def delete_states(self, states):
        """
        Remove states and their incoming/outgoing arcs, renumbering
        the remaining states densely in their original order.
        [destructive]
        """
        states = set(states)
        if not states:
            return self
        state_map = {}
        for q in self.states():
            if q not in states:
                state_map[q] = len(state_map)
        arcs, finals = [], []
        for q, q_id in state_map.items():
            arcs.append([
                LatticeArc(t.ilabel, t.olabel, t.weight,
                           state_map[t.nextstate]) for t in self._arcs[q]
                if t.nextstate in state_map
            ])
            finals.append(self._finals[q])
        self._arcs = arcs
        self._finals = finals
        self._start = state_map.get(self._start, NO_STATE_ID)
        return self

    def connect(self):
        """
        Remove states and arcs that are not on successful paths.
        [destructive]
        """
        live_states = self.accessible() & self.coaccessible()
        dead_states = set(self.states()) - live_states
        return self.delete_states(dead_states)

    def topological_order(self):
        """
        State ids in topological order, or None if this
        lattice has a cycle.
        """
        indegree = [0] * self.num_states()
        for q in self.states():
            for t in self._arcs[q]:
                indegree[t.nextstate] += 1
        order = [q for q in self.states() if indegree[q] == 0]
        i = 0
        while i < len(order):
            for t in self._arcs[order[i]]:
                indegree[t.nextstate] -= 1
                if indegree[t.nextstate] == 0:
                    order.append(t.nextstate)
            i += 1
        if len(order) != self.num_states():
            return None
        return order

    # Copy / convert.

    def copy(self):
        lat = Lattice()
        lat._arcs = [[t.copy() for t in q_arcs] for q_arcs in self._arcs]
        lat._finals = list(self._finals)
        lat._start = self._start
        lat._isymbols = self._isymbols
        lat._osymbols = self._osymbols
        return lat

    def to_fst(self, arc_type='standard'):
        """
        Convert to pynini Fst with the total cost of each lattice
        weight (alignments are dropped).
        """
        fst = pynini.Fst(arc_type)
        weight_type = fst.weight_type()
        for _ in self.states():
            fst.add_state()
        if self._start != NO_STATE_ID:
            fst.set_start(self._start)
        for q in self.states():
            if self.is_final(q):
                fst.set_final(q,
                              Weight(weight_type, self._finals[q].cost()))
            for t in self._arcs[q]:
                fst.add_arc(
                    q,
                    pynini.Arc(t.ilabel, t.olabel,
                               Weight(weight_type, t.weight.cost()),
                               t.nextstate))
        if self._isymbols is not None:
            fst.set_input_symbols(self._isymbols)
        if self._osymbols is not None:
            fst.set_output_symbols(self._osymbols)
        return fst

    @classmethod
    def from_fst(cls, fst):
        """
        Wrap the weights of a pynini Fst as graph costs
        (acoustic costs are zero).
        """
        semiring = get_semiring(fst.weight_type())

        def convert(w):
            if semiring.is_zero(w):
                return CompactLatticeWeight.zero()
            return CompactLatticeWeight(float(w), 0.0)

        lat = Lattice()
        for _ in fst.states():
            lat.add_state()
        start = fst.start()
        if start != NO_STATE_ID:
            lat.set_start(start)
        for q in fst.states():
            lat.set_final(q, convert(fst.final(q)))
            for t in fst.arcs(q):
                lat.add_arc(
                    q,
                    LatticeArc(t.ilabel, t.olabel, convert(t.weight),
                               t.nextstate))
        if fst.input_symbols() is not None:
            lat.set_input_symbols(fst.input_symbols().copy())
        if fst.output_symbols() is not None:
            lat.set_output_symbols(fst.output_symbols().copy())
        return lat

    def info(self):
        nstate = self.num_states()
        nfinal = len(list(self.finals()))
        narc = self.num_arcs()
        return f'{nstate} states ({nfinal} final) | {narc} arcs'

    def __str__(self):
        lines = []
        for q in self.states():
            for t in self._arcs[q]:
                lines.append(f'{q}\t{t.nextstate}\t{t.ilabel}\t'
                             f'{t.olabel}\t{t.weight}')
            if self.is_final(q):
                lines.append(f'{q}\t{self._finals[q]}')
        return '\n'.join(lines)


# # # # # # # # # #
# Operations.


def scale_lattice(lat, graph_scale=1.0, acoustic_scale=1.0):
    """
    Scale graph and acoustic costs of arcs and final weights.
    [destructive]
    """
    if graph_scale == 1.0 and acoustic_scale == 1.0:
        return lat
    for q in lat.states():
        arcs = [
            LatticeArc(t.ilabel, t.olabel,
                       t.weight.scale(graph_scale, acoustic_scale),
                       t.nextstate) for t in lat.arcs(q)
        ]
        lat.delete_arcs(q)
        for t in arcs:
            lat.add_arc(q, t)
        lat.set_final(q, lat.final(q).scale(graph_scale, acoustic_scale))
    return lat


def prune_lattice(lat, beam):
    """
    Remove arcs and final weights that are not on any path whose
    cost is within beam of the best path, then trim the lattice.
    The lattice must be acyclic; a cyclic lattice is left as is
    and False is returned.
    [destructive]
    """
    if beam < 0:
        raise ValueError(f'Pruning beam must be non-negative ({beam})')
    order = lat.topological_order()
    if order is None:
        config.logger.warning('Cycles detected in lattice; not pruning.')
        return False
    start = lat.start()
    if start == NO_STATE_ID:
        return True

    # Best cost from the start state (alpha) and
    # into the final states (beta).
    n = lat.num_states()
    alpha = np.full(n, np.inf)
    alpha[start] = 0.0
    for q in order:
        if alpha[q] == np.inf:
            continue
        for t in lat.arcs(q):
            cost = alpha[q] + t.weight.cost()
            if cost < alpha[t.nextstate]:
                alpha[t.nextstate] = cost
    beta = np.full(n, np.inf)
    for q in reversed(order):
        beta[q] = lat.final(q).cost()
        for t in lat.arcs(q):
            beta[q] = min(beta[q], t.weight.cost() + beta[t.nextstate])

    best = beta[start]
    if not np.isfinite(best):
        config.logger.warning('Lattice has no successful path.')
        lat.connect()
        return True
    cutoff = best + beam

    for q in lat.states():
        if alpha[q] + lat.final(q).cost() > cutoff:
            lat.set_final(q, CompactLatticeWeight.zero())
        arcs = list(lat.arcs(q))
        live_arcs = [
            t for t in arcs
            if alpha[q] + t.weight.cost() + beta[t.nextstate] <= cutoff
        ]
        if len(live_arcs) != len(arcs):
            lat.delete_arcs(q)
            for t in live_arcs:
                lat.add_arc(q, t)
    lat.connect()
    return True

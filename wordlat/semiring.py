# Semirings over which lattices are expanded, pruned and scaled.
#
# The expansion algorithm only needs times(), one() and is_zero().
#
# * PyniniSemiring delegates to pynini.Weight (tropical, log, log64).
# * CompactLatticeSemiring implements the two-dimensional lattice
# weight of Kaldi (graph cost, acoustic cost) together with the
# alignment (string of transition ids) carried by compact lattices.
# ref. Povey, D. et al. (2012). Generating exact lattices in the WFST
# framework. In ICASSP (pp. 4213-4216).
import math
from functools import total_ordering

import pynini
from pynini import Arc, Weight

from wordlat import config


class Semiring():
    """
    Capability interface used by the algorithms in this package.
    """

    weight_type = None

    def one(self):
        """ Multiplicative identity. """
        raise NotImplementedError

    def zero(self):
        """ Additive identity. """
        raise NotImplementedError

    def times(self, w1, w2):
        raise NotImplementedError

    def plus(self, w1, w2):
        raise NotImplementedError

    def is_zero(self, w):
        """ Check whether w is the additive identity (non-final). """
        return w == self.zero()

    def make_arc(self, ilabel, olabel, weight, nextstate):
        """ Arc suitable for machines carrying this weight type. """
        raise NotImplementedError

    def __repr__(self):
        return f'{type(self).__name__}({self.weight_type!r})'


class PyniniSemiring(Semiring):
    """
    Semiring of pynini / OpenFst weights
    ("tropical" | "log" | "log64").
    """

    def __init__(self, weight_type='tropical'):
        self.weight_type = weight_type
        self._one = Weight.one(weight_type)
        self._zero = Weight.zero(weight_type)

    def one(self):
        return self._one

    def zero(self):
        return self._zero

    def times(self, w1, w2):
        return pynini.times(w1, w2)

    def plus(self, w1, w2):
        return pynini.plus(w1, w2)

    def is_zero(self, w):
        return w == self._zero

    def make_arc(self, ilabel, olabel, weight, nextstate):
        return Arc(ilabel, olabel, weight, nextstate)


@total_ordering
class CompactLatticeWeight():
    """
    Lattice weight (graph cost, acoustic cost) with alignment.
    Ordering is by natural order of the semiring: a weight is
    'less' than another if it is better (lower total cost,
    ties broken by lower graph - acoustic difference).
    """

    __slots__ = ('graph', 'acoustic', 'alignment')

    def __init__(self, graph=0.0, acoustic=0.0, alignment=()):
        self.graph = float(graph)
        self.acoustic = float(acoustic)
        self.alignment = tuple(alignment)

    @classmethod
    def one(cls):
        return cls(0.0, 0.0, ())

    @classmethod
    def zero(cls):
        return cls(math.inf, math.inf, ())

    def is_zero(self):
        return self.graph == math.inf or self.acoustic == math.inf

    def cost(self):
        """ Total cost (graph + acoustic). """
        return self.graph + self.acoustic

    def scale(self, graph_scale=1.0, acoustic_scale=1.0):
        """ Scale graph and acoustic costs (zero stays zero). """
        if self.is_zero():
            return self
        return CompactLatticeWeight(self.graph * graph_scale,
                                    self.acoustic * acoustic_scale,
                                    self.alignment)

    def _key(self):
        return (self.cost(), self.graph - self.acoustic)

    def __eq__(self, other):
        if not isinstance(other, CompactLatticeWeight):
            return NotImplemented
        if self.is_zero() or other.is_zero():
            return self.is_zero() and other.is_zero()
        return (self.graph, self.acoustic, self.alignment) == \
            (other.graph, other.acoustic, other.alignment)

    def __lt__(self, other):
        if not isinstance(other, CompactLatticeWeight):
            return NotImplemented
        if self.is_zero():
            return False
        if other.is_zero():
            return True
        return self._key() < other._key()

    def __hash__(self):
        if self.is_zero():
            return hash((math.inf, math.inf))
        return hash((self.graph, self.acoustic, self.alignment))

    def __float__(self):
        return self.cost()

    def __str__(self):
        tids = '_'.join(str(x) for x in self.alignment)
        return f'{self.graph:g},{self.acoustic:g},{tids}'

    def __repr__(self):
        return (f'CompactLatticeWeight({self.graph:g}, '
                f'{self.acoustic:g}, {self.alignment})')

    @classmethod
    def from_string(cls, text):
        """
        Parse "graph,acoustic[,t1_t2_...]" (Kaldi text format).
        """
        fields = text.split(',')
        if len(fields) not in (2, 3):
            raise ValueError(f'Bad lattice weight: {text!r}')
        alignment = ()
        if len(fields) == 3 and fields[2] != '':
            alignment = tuple(int(x) for x in fields[2].split('_'))
        return cls(float(fields[0]), float(fields[1]), alignment)


class CompactLatticeSemiring(Semiring):
    """
    Semiring of CompactLatticeWeight. times() adds costs and
    concatenates alignments; plus() keeps the better weight.
    """

    weight_type = config.arc_type

    def one(self):
        return CompactLatticeWeight.one()

    def zero(self):
        return CompactLatticeWeight.zero()

    def times(self, w1, w2):
        if w1.is_zero() or w2.is_zero():
            return CompactLatticeWeight.zero()
        return CompactLatticeWeight(w1.graph + w2.graph,
                                    w1.acoustic + w2.acoustic,
                                    w1.alignment + w2.alignment)

    def plus(self, w1, w2):
        return w1 if w1 <= w2 else w2

    def is_zero(self, w):
        return w.is_zero()

    def make_arc(self, ilabel, olabel, weight, nextstate):
        from wordlat.lattice import LatticeArc
        return LatticeArc(ilabel, olabel, weight, nextstate)


_semirings = {
    'tropical': PyniniSemiring('tropical'),
    'log': PyniniSemiring('log'),
    'log64': PyniniSemiring('log64'),
    config.arc_type: CompactLatticeSemiring(),
}


def get_semiring(weight_type):
    """
    Semiring for a weight type as reported by
    Fst.weight_type() / Lattice.weight_type().
    """
    try:
        return _semirings[weight_type]
    except KeyError:
        raise ValueError(f'Unsupported weight type: {weight_type}') \
            from None

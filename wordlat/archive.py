# Kaldi text archives of compact lattices ("ark,t:" specifiers).
#
# Each record is a key line followed by one line per arc and per
# final state, terminated by an empty line:
#   utt1
#   0	1	5	1.5,2.25,1_1_2
#   0	1	6	3,0.5,
#   1	0,0,
#
# Arc lines are "src dst label weight" (acceptor) or
# "src dst ilabel olabel weight"; final lines are "state [weight]".
# Weights are "graph,acoustic[,transition ids joined by _]". The
# start state is the first state mentioned in the record.
import sys
from pathlib import Path

from wordlat import config
from wordlat.errors import ArchiveFormatError
from wordlat.lattice import Lattice, LatticeArc
from wordlat.semiring import CompactLatticeWeight


def parse_specifier(specifier):
    """
    Filename (or '-' for stdin/stdout) of an archive specifier
    such as "ark:foo.lat", "ark,t:foo.lat" or "foo.lat".
    """
    specifier = str(specifier)
    if ':' in specifier:
        prefix, filename = specifier.split(':', 1)
        options = prefix.split(',')
        if options[0] != 'ark':
            raise ArchiveFormatError(
                f'Unsupported archive specifier: {specifier}')
        if filename == '':
            raise ArchiveFormatError(f'Missing filename: {specifier}')
        return filename
    return specifier


def read_archive(rspecifier):
    """
    Iterator over (key, Lattice) pairs in archive order.
    The archive is opened immediately, so a missing file
    raises here rather than on the first record.
    """
    filename = parse_specifier(rspecifier)
    if filename == '-':
        return read_lattices(sys.stdin, '<stdin>')
    f = open(filename, 'r', encoding='utf-8')
    return _read_and_close(f, filename)


def _read_and_close(f, source):
    with f:
        yield from read_lattices(f, source)


def read_lattices(lines, source=None):
    """
    Iterator over (key, Lattice) pairs from lines of text.
    """
    key = None
    record = []
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if key is None:
            if line == '':
                continue
            key = line.split()[0]
            record = []
            continue
        if line == '':
            yield key, parse_lattice(record, source)
            key = None
            continue
        record.append((lineno, line))
    if key is not None:
        # Final record without terminating blank line.
        yield key, parse_lattice(record, source)


def parse_lattice(record, source=None):
    """
    Lattice from list of (line number, line) pairs.
    """
    lat = Lattice()

    def state(field, lineno):
        try:
            q = int(field)
        except ValueError:
            raise ArchiveFormatError(f'Bad state id: {field!r}', source,
                                     lineno) from None
        if q < 0:
            raise ArchiveFormatError(f'Bad state id: {field!r}', source,
                                     lineno)
        while lat.num_states() <= q:
            lat.add_state()
        if lat.start() < 0:
            lat.set_start(q)
        return q

    def weight(field, lineno):
        try:
            return CompactLatticeWeight.from_string(field)
        except ValueError:
            raise ArchiveFormatError(f'Bad weight: {field!r}', source,
                                     lineno) from None

    def label(field, lineno):
        try:
            return int(field)
        except ValueError:
            raise ArchiveFormatError(f'Bad label: {field!r}', source,
                                     lineno) from None

    for lineno, line in record:
        fields = line.split()
        if len(fields) <= 2:
            # Final state.
            q = state(fields[0], lineno)
            w = weight(fields[1], lineno) if len(fields) == 2 else None
            lat.set_final(q, w)
            continue
        src = state(fields[0], lineno)
        dest = state(fields[1], lineno)
        if len(fields) == 3:
            ilabel = olabel = label(fields[2], lineno)
            w = CompactLatticeWeight.one()
        elif len(fields) == 4 and ',' in fields[3]:
            ilabel = olabel = label(fields[2], lineno)
            w = weight(fields[3], lineno)
        elif len(fields) == 4:
            ilabel = label(fields[2], lineno)
            olabel = label(fields[3], lineno)
            w = CompactLatticeWeight.one()
        elif len(fields) == 5:
            ilabel = label(fields[2], lineno)
            olabel = label(fields[3], lineno)
            w = weight(fields[4], lineno)
        else:
            raise ArchiveFormatError(f'Too many fields: {line!r}', source,
                                     lineno)
        lat.add_arc(src, LatticeArc(ilabel, olabel, w, dest))
    return lat


def format_lattice(lat):
    """
    Lines of text for lattice, starting with the start state.
    Labels are printed with the lattice's symbol tables if present.
    """
    isymbols = lat.input_symbols()
    osymbols = lat.output_symbols()
    acceptor = all(t.ilabel == t.olabel for q in lat.states()
                   for t in lat.arcs(q))

    def label_str(label, symbols):
        if symbols is None:
            return str(label)
        name = symbols.find(label)
        return name if name != '' else str(label)

    lines = []
    start = lat.start()
    if start < 0:
        return lines
    states = [start] + [q for q in lat.states() if q != start]
    for q in states:
        for t in lat.arcs(q):
            ilabel = label_str(t.ilabel, isymbols)
            if acceptor:
                lines.append(f'{q}\t{t.nextstate}\t{ilabel}\t{t.weight}')
            else:
                olabel = label_str(t.olabel, osymbols)
                lines.append(f'{q}\t{t.nextstate}\t{ilabel}\t{olabel}\t'
                             f'{t.weight}')
        if lat.is_final(q):
            lines.append(f'{q}\t{lat.final(q)}')
    return lines


class ArchiveWriter():
    """
    Writer of lattices to a text archive, used as context manager:
        with ArchiveWriter('ark,t:out.lat') as writer:
            writer.write(key, lat)
    """

    def __init__(self, wspecifier):
        self.filename = parse_specifier(wspecifier)
        self._f = None
        self.num_written = 0

    def open(self):
        if self.filename == '-':
            self._f = sys.stdout
        else:
            Path(self.filename).parent.mkdir(parents=True, exist_ok=True)
            self._f = open(self.filename, 'w', encoding='utf-8')
        return self

    def write(self, key, lat):
        if self._f is None:
            self.open()
        if not key or any(c.isspace() for c in key):
            raise ArchiveFormatError(f'Bad archive key: {key!r}')
        self._f.write(f'{key} \n')
        for line in format_lattice(lat):
            self._f.write(line + '\n')
        self._f.write('\n')
        self.num_written += 1

    def close(self):
        if self._f is not None and self._f is not sys.stdout:
            self._f.close()
        elif self._f is sys.stdout:
            self._f.flush()
        self._f = None
        config.logger.debug(f'Wrote {self.num_written} lattices '
                            f'to {self.filename}')

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

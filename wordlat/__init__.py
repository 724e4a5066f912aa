from wordlat import config
from wordlat.errors import ArchiveFormatError, ConfigurationError
from wordlat.semiring import (Semiring, PyniniSemiring, CompactLatticeWeight,
                              CompactLatticeSemiring, get_semiring)
from wordlat.lattice import (NO_STATE_ID, Lattice, LatticeArc, scale_lattice,
                             prune_lattice)
from wordlat.sequences import LabelSequenceRegistry
from wordlat.symbols import (sequence_name, parse_sequence_name,
                             registry_to_symbols, write_symbols, decode_label)
from wordlat.expand import FrontierEntry, expand_fst
from wordlat.archive import ArchiveWriter, read_archive, read_lattices
from wordlat.pipeline import (parse_delimiters, check_scales,
                              convert_lattice, lattice_char_to_word)

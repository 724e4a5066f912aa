# Conversion of archives of character-level lattices into
# word-level lattices: scale -> prune -> rescale -> expand.
import math

from wordlat import config
from wordlat.archive import ArchiveWriter, read_archive
from wordlat.errors import ConfigurationError
from wordlat.expand import expand_fst
from wordlat.lattice import prune_lattice, scale_lattice
from wordlat.sequences import LabelSequenceRegistry
from wordlat.symbols import registry_to_symbols, write_symbols


def parse_delimiters(text):
    """
    Set of delimiter labels from whitespace-separated integers.
    An empty set is allowed: every path is then expanded whole.
    """
    if not isinstance(text, str):
        text = ' '.join(str(x) for x in text)
    delimiters = set()
    for field in text.split():
        try:
            label = int(field)
        except ValueError:
            raise ConfigurationError(
                f'Bad delimiter symbol: {field!r}') from None
        if label == config.epsilon:
            raise ConfigurationError(
                'Epsilon (0) cannot be a delimiter symbol!')
        if label < 0:
            raise ConfigurationError(
                f'Delimiter symbols must be positive ({label})')
        delimiters.add(label)
    return delimiters


def check_scales(graph_scale, acoustic_scale):
    if graph_scale <= 0.0 or acoustic_scale <= 0.0:
        raise ConfigurationError('--acoustic-scale and --graph-scale must '
                                 'be strictly greater than 0.0!')


def convert_lattice(lat,
                    delimiters,
                    registry,
                    acoustic_scale=1.0,
                    graph_scale=1.0,
                    beam=math.inf,
                    max_length=None,
                    match_input=False):
    """
    Word-level lattice for one character-level lattice. Pruning is
    done on scaled weights; the weights of the result are in the
    original scale. [lat is modified in place]
    """
    scaled = (acoustic_scale != 1.0 or graph_scale != 1.0)
    if scaled:
        scale_lattice(lat, graph_scale, acoustic_scale)
    if beam != math.inf:
        prune_lattice(lat, beam)
    if scaled:
        scale_lattice(lat, 1.0 / graph_scale, 1.0 / acoustic_scale)
    return expand_fst(lat,
                      delimiters,
                      registry,
                      max_length=max_length,
                      match_input=match_input)


def lattice_char_to_word(delimiters,
                         rspecifier,
                         wspecifier,
                         acoustic_scale=1.0,
                         graph_scale=1.0,
                         beam=math.inf,
                         max_length=None,
                         save_symbols='',
                         match_input=False):
    """
    Convert every lattice in archive rspecifier and write the
    results under the same keys to wspecifier. If save_symbols
    is empty, each output lattice gets its own symbol table;
    otherwise all lattices share one table, written to
    save_symbols at the end. Returns the number of lattices.
    """
    if isinstance(delimiters, str):
        delimiters = parse_delimiters(delimiters)
    elif config.epsilon in delimiters:
        raise ConfigurationError('Epsilon (0) cannot be a delimiter symbol!')
    check_scales(graph_scale, acoustic_scale)
    if max_length is not None and max_length < 0:
        raise ConfigurationError(f'Bad maximum length ({max_length})')

    shared = (save_symbols != '')
    registry = LabelSequenceRegistry()
    num_done = 0
    # Input is opened first; a bad rspecifier leaves the output untouched.
    records = read_archive(rspecifier)
    with ArchiveWriter(wspecifier) as writer:
        for key, lat in records:
            if not shared:
                registry = LabelSequenceRegistry()
            olat = convert_lattice(lat,
                                   delimiters,
                                   registry,
                                   acoustic_scale=acoustic_scale,
                                   graph_scale=graph_scale,
                                   beam=beam,
                                   max_length=max_length,
                                   match_input=match_input)
            if not shared:
                symbols = registry_to_symbols(registry)
                olat.set_input_symbols(symbols)
                olat.set_output_symbols(symbols)
            writer.write(key, olat)
            config.logger.debug(f'{key}: {olat.info()}')
            num_done += 1

    if shared:
        write_symbols(registry, save_symbols)
    config.logger.info(f'Done {num_done} lattices.')
    return num_done

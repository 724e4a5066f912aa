# Symbol tables for word labels: each code of a LabelSequenceRegistry
# is named by its elementary labels joined with config.separator
# ("3_12_7"), and the empty sequence is named "0".
import pynini

from wordlat import config


def sequence_name(seq):
    """ Symbol name of label sequence. """
    if len(seq) == 0:
        return config.epsilon_name
    return config.separator.join(str(x) for x in seq)


def parse_sequence_name(name):
    """ Label sequence of symbol name (inverse of sequence_name). """
    if name == config.epsilon_name:
        return ()
    return tuple(int(x) for x in name.split(config.separator))


def registry_to_symbols(registry, symbols=None):
    """
    Add one symbol per registered sequence, in code order, to
    symbols (new pynini.SymbolTable by default). Each symbol
    must receive its registry code.
    """
    if symbols is None:
        symbols = pynini.SymbolTable()
    for code, seq in sorted(registry.items()):
        key = symbols.add_symbol(sequence_name(seq), code)
        if key != code:
            raise AssertionError(
                f'Symbol {sequence_name(seq)} added with key {key} '
                f'instead of {code}')
    return symbols


def write_symbols(registry, outfile):
    """
    Write symbol table of registry in text format
    (one "name<tab>code" line per sequence, by code).
    """
    symbols = registry_to_symbols(registry)
    symbols.write_text(str(outfile))
    config.logger.info(f'Wrote {symbols.num_symbols()} symbols '
                       f'to {outfile}')
    return symbols


def decode_label(symbols, code):
    """ Label sequence represented by code in symbol table. """
    name = symbols.find(code)
    if name == '':  # pynini returns '' for missing keys.
        raise KeyError(f'No symbol for code {code}')
    return parse_sequence_name(name)

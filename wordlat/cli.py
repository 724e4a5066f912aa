import math
import sys

import click
import typer

from wordlat import config
from wordlat.pipeline import lattice_char_to_word

usage = """
Convert character-level lattices into word-level lattices by expanding
the subpaths in between any of two separator symbols.

Keep in mind that this lattice expansion has an exponential cost. For
instance, if the set of separator symbols was empty, all paths from the
input lattice would be expanded, so that each arc in the output lattice
would be a full path from the input lattice. The growth is constrained
by the separator symbols, and can be further limited by pruning the
input lattices (--beam) and by bounding the length of the output words
(--max-length).

e.g.: lattice-char-to-word "3 4" ark,t:1.lat ark,t:1-words.lat
"""

app = typer.Typer(add_completion=False)


@app.command(help=usage)
def lattice_char_to_word_cmd(
    separator_symbols: str = typer.Argument(
        ..., help='Whitespace-separated list of separator labels.'),
    lat_rspecifier: str = typer.Argument(..., help='Input lattice archive.'),
    lat_wspecifier: str = typer.Argument(..., help='Output lattice archive.'),
    acoustic_scale: float = typer.Option(
        1.0, '--acoustic-scale',
        help='Scaling factor for acoustic likelihoods in the lattices.'),
    graph_scale: float = typer.Option(
        1.0, '--graph-scale',
        help='Scaling factor for graph probabilities in the lattices.'),
    beam: float = typer.Option(
        math.inf, '--beam',
        help='Pruning beam (applied after acoustic scaling).'),
    max_length: int = typer.Option(
        config.max_length, '--max-length',
        help='Max. length (in characters) for a word.'),
    save_symbols: str = typer.Option(
        '', '--save-symbols',
        help='If given, all lattices will use the same symbol table, which '
        'will be written to this file. Otherwise each lattice contains '
        'its own symbol table.'),
    match_input: bool = typer.Option(
        False, '--match-input/--match-output',
        help='Look for separator symbols on input (or output) labels.'),
    verbose: int = typer.Option(0, '--verbose', '-v', help='Verbose level.'),
) -> None:
    config.init({'verbosity': verbose})
    lattice_char_to_word(separator_symbols,
                         lat_rspecifier,
                         lat_wspecifier,
                         acoustic_scale=acoustic_scale,
                         graph_scale=graph_scale,
                         beam=beam,
                         max_length=max_length,
                         save_symbols=save_symbols,
                         match_input=match_input)


def main(argv=None):
    """
    Run command line; returns exit status (1 on any error).
    """
    try:
        ret = app(args=argv,
                  prog_name='lattice-char-to-word',
                  standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return 1
    except click.exceptions.Abort:
        return 1
    except Exception as e:
        config.logger.error(str(e))
        return 1
    if isinstance(ret, int):
        return ret
    return 0


if __name__ == '__main__':
    sys.exit(main())

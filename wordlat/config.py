import logging

epsilon = 0  # Epsilon label (OpenFst convention).
epsilon_name = '0'  # Symbol name of the empty label sequence.
separator = '_'  # Joins elementary labels in symbol names.
max_length = 2147483647  # Default bound on word length (int32 max).
arc_type = 'compactlattice'  # Arc/weight type of wordlat.Lattice.

verbosity = 0


def init(param={}):
    """ Set globals with dictionary or module. """
    global epsilon_name, separator, max_length, verbosity
    if not isinstance(param, dict):
        param = vars(param)
    if 'epsilon_name' in param:
        epsilon_name = param['epsilon_name']
    if 'separator' in param:
        separator = param['separator']
    if 'max_length' in param:
        max_length = param['max_length']
    if 'verbosity' in param:
        verbosity = param['verbosity']
        logger.setLevel(logging.DEBUG if verbosity > 0 else logging.INFO)
    return None


# Logging
logger = logging.getLogger(__name__)
_formatter = logging.Formatter('%(levelname)s (%(name)s): %(message)s')
_handler = logging.StreamHandler()
_handler.setFormatter(_formatter)
logger.addHandler(_handler)
logger.setLevel(logging.INFO)

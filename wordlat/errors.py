class ConfigurationError(ValueError):
    """
    Bad delimiter set, scale factor or argument; raised
    before any lattice is processed.
    """


class ArchiveFormatError(ValueError):
    """ Malformed record in a lattice archive. """

    def __init__(self, message, source=None, lineno=None):
        self.source = source
        self.lineno = lineno
        if lineno is not None:
            message = f'{source or "<archive>"}:{lineno}: {message}'
        super().__init__(message)

# Registry of label sequences (runs of elementary labels collapsed
# into a single word label). Codes are dense and assigned in order
# of first occurrence; the empty sequence (epsilon) is always code 0.


class LabelSequenceRegistry():
    """
    Bidirectional map: label sequence (tuple of ints) <-> code.
    Codes are identifiers only; their magnitude depends on the
    order in which sequences are first seen.
    """

    def __init__(self):
        self._seq2code = {(): 0}  # Epsilon.
        self._code2seq = [()]

    def code_of(self, seq):
        """
        Code of sequence, registering it with the next
        unused code if it is new.
        """
        seq = tuple(seq)
        code = self._seq2code.get(seq)
        if code is None:
            code = len(self._code2seq)
            self._seq2code[seq] = code
            self._code2seq.append(seq)
        return code

    def sequence(self, code):
        """ Sequence registered under code. """
        return self._code2seq[code]

    def size(self):
        """ Number of registered sequences (including epsilon). """
        return len(self._code2seq)

    __len__ = size

    def items(self):
        """ Iterator over (code, sequence) pairs in code order. """
        return enumerate(self._code2seq)

    def __contains__(self, seq):
        return tuple(seq) in self._seq2code

    def __repr__(self):
        return f'LabelSequenceRegistry(size={self.size()})'

class CIFError(Exception):
    """Base class of errors raised while reading CIF data."""
    pass


class CIFSyntaxError(CIFError):
    """Raised for lines that do not fit the CIF grammar."""

    def __init__(self, line_num, text):
        CIFError.__init__(self, line_num, text)
        self.line_num = line_num
        self.text = text

    def __str__(self):
        return "[line: %d] %s" % (self.line_num, self.text)


class CIFLookupError(CIFError, KeyError):
    """None of the requested tags are present."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class CIFLoopError(CIFError):
    """Shape or naming problems of a loop_ construct."""
    pass

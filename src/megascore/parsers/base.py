"""Parser exceptions."""


class ParserError(Exception):
    """Base exception for parser errors."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class FormatError(ParserError, ValueError):
    """
    Raised when a container cannot be decoded.

    Covers truncated buffers, unparseable numeric header fields and signals
    whose digital range is zero. No partial recording is ever returned.
    """

"""Errors raised by the response-shaping layer."""


class ShapingError(Exception):
    """Base class for document and event shaping failures."""


class ParseError(ShapingError):
    """A document is not well-formed JSON.

    Recoverable: callers fall back to showing the raw text.
    """


class MalformedEventsError(ShapingError):
    """An events payload matches none of the recognised shapes."""

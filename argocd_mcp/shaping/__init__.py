"""Response shaping: manifest normalization, structural diff, event
normalization and output bounding.

Everything here is pure and synchronous. Inputs are never modified.
"""

from .bounds import (
    DEFAULT_LIMITS,
    Limits,
    ResponseBounder,
    bound,
    effective_limit,
    truncate_lines,
    truncate_string,
)
from .diff import DiffEntry, DiffKind, canonical, diff, diff_documents, format_diff
from .documents import (
    MANAGED_FIELDS,
    json_to_yaml,
    parse,
    render,
    strip_field,
    strip_managed_fields,
)
from .errors import MalformedEventsError, ParseError, ShapingError
from .events import EventRecord, normalize

__all__ = [
    # Documents
    "MANAGED_FIELDS",
    "parse",
    "strip_field",
    "render",
    "json_to_yaml",
    "strip_managed_fields",
    # Diff
    "DiffKind",
    "DiffEntry",
    "canonical",
    "diff",
    "diff_documents",
    "format_diff",
    # Events
    "EventRecord",
    "normalize",
    # Bounds
    "Limits",
    "DEFAULT_LIMITS",
    "ResponseBounder",
    "bound",
    "effective_limit",
    "truncate_string",
    "truncate_lines",
    # Errors
    "ShapingError",
    "ParseError",
    "MalformedEventsError",
]

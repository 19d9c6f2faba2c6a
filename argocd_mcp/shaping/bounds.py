"""Size ceilings for everything returned to the model.

Tool results can be arbitrarily large (hundreds of applications, megabyte
manifests). ``ResponseBounder`` walks any JSON-like value and cuts it down
along three axes: sequence length, string characters, and string lines. It
reports whether anything was cut so the caller can flag a partial result.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Optional

TRUNCATION_MARKER = "... (truncated)"
ELLIPSIS = "..."


@dataclass(frozen=True)
class Limits:
    """Ceilings applied to tool output. Fixed for the lifetime of a server."""

    max_items: int = 50
    max_events: int = 20
    max_diff_resources: int = 20
    max_manifests: int = 20
    max_lines: int = 100
    max_chars: int = 50_000

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValueError(f"{f.name} must be a positive integer, got {value!r}")

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_LIMITS = Limits()


def truncate_string(s: str, max_chars: int) -> str:
    """Cut ``s`` to at most ``max_chars`` characters, ending in ``...`` when cut."""
    if len(s) <= max_chars:
        return s
    if max_chars <= len(ELLIPSIS):
        return "." * max_chars
    return s[: max_chars - len(ELLIPSIS)] + ELLIPSIS


def truncate_lines(s: str, max_lines: int) -> str:
    """Keep at most ``max_lines`` lines, the last one being a truncation marker."""
    lines = s.split("\n")
    if len(lines) <= max_lines:
        return s
    return "\n".join(lines[: max_lines - 1] + [TRUNCATION_MARKER])


def effective_limit(requested: Optional[int], ceiling: int) -> int:
    """Item limit for one call: ``requested`` may lower ``ceiling``, never raise it."""
    if requested is None or requested <= 0:
        return ceiling
    return min(requested, ceiling)


class ResponseBounder:
    """Applies a ``Limits`` instance to arbitrary JSON-like values.

    Example:
        bounder = ResponseBounder(Limits(max_items=3))
        value, truncated = bounder.bound({"apps": list(range(10))})
        # value == {"apps": [0, 1, 2]}, truncated is True
    """

    def __init__(self, limits: Limits = DEFAULT_LIMITS):
        self.limits = limits

    def bound_string(self, s: str) -> tuple[str, bool]:
        limits = self.limits
        out = truncate_string(s, limits.max_chars)
        out = truncate_lines(out, limits.max_lines)
        # The marker line can push a string that was at the character
        # ceiling back over it.
        out = truncate_string(out, limits.max_chars)
        return out, out != s

    def bound(self, value: Any) -> tuple[Any, bool]:
        """Return a bounded copy of ``value`` and whether anything was cut.

        Mappings keep every key; only their values are bounded. Sequences
        keep a prefix of at most ``max_items`` elements. Numbers, booleans
        and ``None`` pass through.
        """
        if isinstance(value, str):
            return self.bound_string(value)

        if isinstance(value, dict):
            truncated = False
            out = {}
            for key, item in value.items():
                out[key], cut = self.bound(item)
                truncated = truncated or cut
            return out, truncated

        if isinstance(value, (list, tuple)):
            truncated = len(value) > self.limits.max_items
            out_list = []
            for item in value[: self.limits.max_items]:
                bounded, cut = self.bound(item)
                out_list.append(bounded)
                truncated = truncated or cut
            return out_list, truncated

        return value, False

    def bound_list(
        self,
        items: list,
        total: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> tuple[dict[str, Any], bool]:
        """Build a list envelope with ``items``, ``total`` and ``limited``.

        Args:
            items: Full list of items.
            total: Untruncated count, when ``items`` is already a page of a
                larger result. Defaults to ``len(items)``.
            limit: Per-call item limit; never raises ``max_items``.
        """
        if total is None:
            total = len(items)
        keep = effective_limit(limit, self.limits.max_items)

        shown, truncated = self.bound(list(items[:keep]))
        envelope = {
            "items": shown,
            "total": total,
            "limited": total > len(shown),
        }
        return envelope, truncated or envelope["limited"]


def bound(value: Any, limits: Limits = DEFAULT_LIMITS) -> tuple[Any, bool]:
    """Shortcut for ``ResponseBounder(limits).bound(value)``."""
    return ResponseBounder(limits).bound(value)

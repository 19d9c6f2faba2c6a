"""Construction of ``CallToolResult`` values.

Every successful result is bounded by a ``ResponseBounder`` and serialized
as indented JSON in a single text block.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.types import CallToolResult, TextContent

from ..shaping import DEFAULT_LIMITS, ResponseBounder


def text_result(text: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)])


def error_result(message: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def result(
    data: Any,
    bounder: ResponseBounder | None = None,
    truncated: bool = False,
) -> CallToolResult:
    """Bound ``data`` and return it as a JSON text result.

    Mappings that lost content get a top-level ``"truncated": true``. Pass
    ``truncated=True`` when the caller already cut something out of ``data``.
    """
    bounder = bounder or ResponseBounder(DEFAULT_LIMITS)
    bounded, cut = bounder.bound(data)
    truncated = truncated or cut
    if truncated and isinstance(bounded, dict):
        bounded["truncated"] = True
    try:
        return text_result(_dumps(bounded))
    except (TypeError, ValueError) as e:
        return error_result(f"Failed to format response: {e}")


def result_list(
    items: list[Any],
    total: int | None = None,
    bounder: ResponseBounder | None = None,
    limit: int | None = None,
) -> CallToolResult:
    """Return ``items`` in a list envelope with ``total`` and ``limited``.

    Args:
        items: Items to show, possibly already cut to a page.
        total: Count before any cut; defaults to ``len(items)``.
        bounder: Bounder holding the active limits.
        limit: Per-call item limit.
    """
    bounder = bounder or ResponseBounder(DEFAULT_LIMITS)
    envelope, truncated = bounder.bound_list(items, total=total, limit=limit)
    if truncated:
        envelope["truncated"] = True
    try:
        return text_result(_dumps(envelope))
    except (TypeError, ValueError) as e:
        return error_result(f"Failed to format response: {e}")

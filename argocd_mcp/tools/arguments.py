"""Typed accessors for tool call arguments.

Each returns ``default`` when the key is absent or holds a value of the
wrong type; arguments come from a model and are never trusted.
"""

from __future__ import annotations

from typing import Any, Mapping


def arg_str(arguments: Mapping[str, Any], key: str, default: str = "") -> str:
    value = arguments.get(key)
    return value if isinstance(value, str) else default


def arg_bool(arguments: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = arguments.get(key)
    return value if isinstance(value, bool) else default


def arg_int(arguments: Mapping[str, Any], key: str, default: int = 0) -> int:
    """Integer argument. JSON numbers may arrive as floats; bools never count."""
    value = arguments.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def arg_dict(arguments: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = arguments.get(key)
    return value if isinstance(value, dict) else {}


def arg_list(arguments: Mapping[str, Any], key: str) -> list[Any]:
    value = arguments.get(key)
    return value if isinstance(value, list) else []


def arg_str_list(arguments: Mapping[str, Any], key: str) -> list[str]:
    """List of strings, dropping non-string entries."""
    return [item for item in arg_list(arguments, key) if isinstance(item, str)]

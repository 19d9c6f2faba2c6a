"""Structural diff between a desired (target) and an observed (live) manifest.

Objects are compared key by key and sequences position by position. Lists
are never matched by content, so a reordered list reads as a series of
changes at each index.

Entry order is fixed: for an object pair, entries for the target's keys come
first (in the target's key order), followed by ``added`` entries for keys
only the live side has.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .documents import MANAGED_FIELDS, DocumentTree, parse, strip_field
from .errors import ParseError


class DiffKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass(frozen=True)
class DiffEntry:
    """One difference between target and live at ``path``.

    ``added`` entries only carry ``live_value``, ``removed`` entries only
    ``target_value``; ``changed`` entries carry both.
    """

    path: str
    kind: DiffKind
    target_value: Any = None
    live_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {"path": self.path, "kind": self.kind.value}
        if self.kind is not DiffKind.ADDED:
            data["target"] = self.target_value
        if self.kind is not DiffKind.REMOVED:
            data["live"] = self.live_value
        return data

    def to_line(self) -> str:
        """Render as a single human-readable diff line."""
        if self.kind is DiffKind.REMOVED:
            return f"  {self.path}: {canonical(self.target_value)} (REMOVED)"
        if self.kind is DiffKind.ADDED:
            return f"  {self.path}: {canonical(self.live_value)} (ADDED)"
        return (
            f"  {self.path}: {canonical(self.live_value)} -> "
            f"{canonical(self.target_value)}"
        )


def canonical(value: Any) -> str:
    """Canonical text of a value, used for equality and display.

    Strings are returned verbatim, so ``"1"`` and ``1`` compare equal.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def diff(target: DocumentTree, live: DocumentTree) -> list[DiffEntry]:
    """Compare two document trees and return their differences in order."""
    entries: list[DiffEntry] = []
    _compare_values("", target, live, entries)
    return entries


def diff_documents(
    target_text: str,
    live_text: str,
    strip_fields: tuple[str, ...] = (MANAGED_FIELDS,),
) -> list[DiffEntry]:
    """Diff two JSON manifests.

    An empty document on either side means there is nothing to compare. If
    either side is not valid JSON both are compared as opaque strings.
    """
    if not target_text or not live_text:
        return []

    try:
        target = parse(target_text)
        live = parse(live_text)
    except ParseError:
        return diff(target_text, live_text)

    for field_name in strip_fields:
        target = strip_field(target, field_name)
        live = strip_field(live, field_name)
    return diff(target, live)


def format_diff(entries: list[DiffEntry]) -> str:
    """Join entries into the line-per-change text shown to the model."""
    return "\n".join(entry.to_line() for entry in entries)


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else str(key)


def _compare_values(
    path: str, target: Any, live: Any, entries: list[DiffEntry]
) -> None:
    if isinstance(target, dict) and isinstance(live, dict):
        _compare_objects(path, target, live, entries)
    elif isinstance(target, list) and isinstance(live, list):
        _compare_sequences(path, target, live, entries)
    elif _differs(target, live):
        entries.append(DiffEntry(path, DiffKind.CHANGED, target, live))


def _differs(target: Any, live: Any) -> bool:
    # null never equals a value, even the string "null".
    if (target is None) != (live is None):
        return True
    return canonical(target) != canonical(live)


def _compare_objects(
    path: str, target: dict, live: dict, entries: list[DiffEntry]
) -> None:
    for key, target_value in target.items():
        key_path = _child_path(path, key)
        if key not in live:
            entries.append(
                DiffEntry(key_path, DiffKind.REMOVED, target_value=target_value)
            )
        else:
            _compare_values(key_path, target_value, live[key], entries)

    for key, live_value in live.items():
        if key not in target:
            entries.append(
                DiffEntry(_child_path(path, key), DiffKind.ADDED, live_value=live_value)
            )


def _compare_sequences(
    path: str, target: list, live: list, entries: list[DiffEntry]
) -> None:
    for i in range(max(len(target), len(live))):
        item_path = f"{path}[{i}]"
        if i >= len(target):
            entries.append(DiffEntry(item_path, DiffKind.ADDED, live_value=live[i]))
        elif i >= len(live):
            entries.append(
                DiffEntry(item_path, DiffKind.REMOVED, target_value=target[i])
            )
        else:
            _compare_values(item_path, target[i], live[i], entries)

"""Parsing, stripping and rendering of resource manifests.

Argo CD hands manifests around as JSON text. Tools either diff them or show
them to the model as YAML, so this module converts between the two and
removes server-generated noise (``managedFields``) before either happens.

A document tree is plain Python data: ``dict`` for objects, ``list`` for
sequences, and ``str``/``int``/``float``/``bool``/``None`` for scalars.
"""

from __future__ import annotations

import json
from typing import Any, Union

import yaml

from .errors import ParseError

Scalar = Union[str, int, float, bool, None]
DocumentTree = Any

MANAGED_FIELDS = "managedFields"


def parse(text: str | bytes) -> DocumentTree:
    """Parse JSON text into a document tree.

    Raises:
        ParseError: if ``text`` is not well-formed JSON.
    """
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"invalid JSON document: {e}") from e


def strip_field(tree: DocumentTree, field_name: str) -> DocumentTree:
    """Return ``tree`` without the top-level key ``field_name``.

    Only the top level is inspected. Non-object trees come back unchanged,
    and the input is never modified.
    """
    if isinstance(tree, dict) and field_name in tree:
        return {key: value for key, value in tree.items() if key != field_name}
    return tree


def render(tree: DocumentTree, source: str = "") -> str:
    """Render a document tree as YAML, or return ``source`` if that fails."""
    try:
        return yaml.safe_dump(
            tree,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    except yaml.YAMLError:
        return source


def json_to_yaml(text: str) -> str:
    """Convert a JSON manifest to YAML, echoing ``text`` if it does not parse."""
    if not text:
        return ""
    try:
        tree = parse(text)
    except ParseError:
        return text
    return render(tree, source=text)


def strip_managed_fields(text: str) -> str:
    """Drop top-level ``managedFields`` from a JSON manifest and render it as YAML."""
    if not text:
        return ""
    try:
        tree = parse(text)
    except ParseError:
        return json_to_yaml(text)
    return render(strip_field(tree, MANAGED_FIELDS), source=text)

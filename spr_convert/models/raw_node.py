from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

"""RawNode helpers for the parsed SPR export.

The XML export is parsed by xmltodict into plain dicts, lists and strings.
Every optional element can be missing entirely, present but empty (None),
present once (dict / str) or repeated (list). Instead of shape checks spread
across the flattening code, values are classified once into a NodeKind and
read through the total accessors below.
"""

__all__ = [
    "NodeKind",
    "kind_of",
    "child",
    "text",
]


class NodeKind(Enum):
    """Shape of a parsed XML value."""
    OBJECT = "object"
    LIST = "list"
    SCALAR = "scalar"
    ABSENT = "absent"


def kind_of(value: Any) -> NodeKind:
    if value is None:
        return NodeKind.ABSENT
    if isinstance(value, Mapping):
        return NodeKind.OBJECT
    if isinstance(value, (list, tuple)):
        return NodeKind.LIST
    return NodeKind.SCALAR


def child(node: Any, *path: str) -> Any:
    """Walk `path` through nested mappings.

    Returns None as soon as a step is missing, null or not a mapping, so
    `child(project, "Director", "Name")` never fails regardless of shape.
    """
    current = node
    for key in path:
        if kind_of(current) is not NodeKind.OBJECT:
            return None
        current = current.get(key)
    return current


def text(node: Any) -> Any:
    """Scalar value of a node.

    An element carrying attributes is parsed as a mapping with its text under
    `#text`; lists have no scalar value.
    """
    kind = kind_of(node)
    if kind is NodeKind.SCALAR:
        return node
    if kind is NodeKind.OBJECT:
        return node.get("#text")
    return None

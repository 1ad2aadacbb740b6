from __future__ import annotations

from typing import Any

from ..models.raw_node import NodeKind, kind_of

__all__ = [
    "normalize_to_list",
]


def normalize_to_list(value: Any) -> Any:
    """Return `value` as a sequence.

    xmltodict yields a single mapping for an element that occurs once and a
    list when it repeats, so every repeating group goes through here:

    - None -> []
    - list / tuple -> returned as is (same object)
    - anything else -> [value]
    """
    kind = kind_of(value)
    if kind is NodeKind.ABSENT:
        return []
    if kind is NodeKind.LIST:
        return value
    return [value]

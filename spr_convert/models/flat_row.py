from __future__ import annotations

from collections.abc import Mapping
from typing import Any

"""FlatRow model: one output row as column name -> scalar value.

Rows are assembled from smaller fragments. Fragment key spaces are disjoint
by construction (index qualified names), so a shared key means the naming
scheme is broken and the merge fails instead of overwriting.
"""

__all__ = [
    "FlatRow",
    "RowKeyCollisionError",
    "merge_rows",
    "family_of",
]

FlatRow = dict[str, Any]


class RowKeyCollisionError(ValueError):
    """Raised when two row fragments being merged share a column name."""

    def __init__(self, keys: list[str]) -> None:
        self.keys = keys
        super().__init__(f"row fragments share columns: {keys}")


def merge_rows(*fragments: Mapping[str, Any]) -> FlatRow:
    """Merge fragments into a new row; inputs are left untouched."""
    merged: FlatRow = {}
    for fragment in fragments:
        overlap = [k for k in fragment if k in merged]
        if overlap:
            raise RowKeyCollisionError(sorted(overlap))
        merged.update(fragment)
    return merged


def family_of(column: str) -> str:
    """`QuantityName.1.2` -> `QuantityName`."""
    return column.split(".", 1)[0]

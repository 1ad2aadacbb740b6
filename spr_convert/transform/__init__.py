"""Flattening, normalization and column ordering of SPR records."""

from .column_order import COLUMN_ORDERS, ColumnOrderSpec, resolve_order
from .lists import normalize_to_list
from .normalize import normalize_fsr, normalize_project
from .sanitize import SanitizeOptions, Sanitizer, sanitize

__all__ = [
    "COLUMN_ORDERS",
    "ColumnOrderSpec",
    "resolve_order",
    "normalize_to_list",
    "normalize_fsr",
    "normalize_project",
    "SanitizeOptions",
    "Sanitizer",
    "sanitize",
]

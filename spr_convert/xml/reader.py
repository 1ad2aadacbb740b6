from __future__ import annotations

import gzip
import re
import zlib
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict

from ..models.raw_node import NodeKind, child, kind_of, text

"""Reader for the gzipped SPR XML export.

Produces the nested dict representation the converter works on:
attributes under `@name`, text of attributed elements under `#text`,
repeated elements as lists and empty elements as None.
"""

__all__ = [
    "DocumentError",
    "ROOT_ELEMENT",
    "parse_document",
    "read_document",
    "fiscal_year_of",
    "states_of",
]

ROOT_ELEMENT = "ImlsExport"

# 2桁の数値文字参照 (&#x0B; 等) は XML 1.0 で不正な制御文字を指すことが多くパースが失敗する
_NUMERIC_ENTITY = re.compile(rb"&#x[a-zA-Z0-9]{2};")


class DocumentError(Exception):
    """Raised when the export cannot be read or lacks the expected structure."""


def parse_document(compressed: bytes) -> dict[str, Any]:
    """Decompress and parse an export held in memory."""
    try:
        raw = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as e:
        raise DocumentError(f"not a gzip file: {e}") from e
    try:
        doc = xmltodict.parse(_NUMERIC_ENTITY.sub(b"", raw))
    except ExpatError as e:
        raise DocumentError(f"invalid xml: {e}") from e

    if kind_of(child(doc, ROOT_ELEMENT)) is not NodeKind.OBJECT:
        raise DocumentError(
            f"Expected to find '{ROOT_ELEMENT}', found {sorted(doc.keys())} instead."
        )
    return doc


def read_document(path: Path) -> dict[str, Any]:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentError(f"cannot read {path}: {e}") from e
    return parse_document(data)


def fiscal_year_of(doc: Any) -> str:
    year = text(child(doc, ROOT_ELEMENT, "FiscalYear", "@year"))
    if year is None or str(year).strip() == "":
        raise DocumentError("fiscal year not found (ImlsExport/FiscalYear/@year)")
    return str(year).strip()


def states_of(doc: Any) -> Any:
    """Raw `<State>` nodes (single mapping, list or None)."""
    return child(doc, ROOT_ELEMENT, "FiscalYear", "State")

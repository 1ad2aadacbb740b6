from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .flat_row import FlatRow

"""Partitioned record set: normalized rows grouped by state.

States keep the order in which they first appear in the export and rows keep
document order within each state. Once the whole document is normalized the
set is only read (header resolution, CSV output).
"""

__all__ = [
    "RecordType",
    "StateRecords",
    "PartitionedRecordSet",
]


class RecordType(str, Enum):
    """Top-level record kinds of the SPR export."""
    FSR = "FSR"
    PROJECT = "Project"


@dataclass
class StateRecords:
    state: str | None
    fsr: list[FlatRow] = field(default_factory=list)
    project: list[FlatRow] = field(default_factory=list)

    def rows(self, record_type: RecordType) -> list[FlatRow]:
        if record_type is RecordType.FSR:
            return self.fsr
        return self.project


class PartitionedRecordSet:
    """Ordered mapping state -> StateRecords."""

    def __init__(self) -> None:
        self._states: dict[str | None, StateRecords] = {}

    def partition(self, state: str | None) -> StateRecords:
        # 初出順を保持 (dict の挿入順)
        if state not in self._states:
            self._states[state] = StateRecords(state=state)
        return self._states[state]

    def append(self, state: str | None, record_type: RecordType, row: FlatRow) -> None:
        self.partition(state).rows(record_type).append(row)

    def __iter__(self) -> Iterator[StateRecords]:
        return iter(self._states.values())

    def __len__(self) -> int:
        return len(self._states)

    def rows(self, record_type: RecordType) -> list[FlatRow]:
        """All rows of one type, state by state."""
        return [row for records in self for row in records.rows(record_type)]

    def count(self, record_type: RecordType) -> int:
        return sum(len(records.rows(record_type)) for records in self)

    def observed_columns(self, record_type: RecordType) -> set[str]:
        columns: set[str] = set()
        for row in self.rows(record_type):
            columns.update(row.keys())
        return columns

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .error_record import ErrorRecord
from .record_set import PartitionedRecordSet, RecordType

"""Result models for one conversion run.

ConvertedReport is the in-memory output of the core (rows, resolved headers
and the metadata needed to name output files). ProcessingResult summarizes a
whole run for the SUMMARY line and the CLI exit code.
"""


@dataclass(frozen=True)
class ConvertedReport:
    """Normalized rows plus the shared, resolved header list per record type."""
    fiscal_year: str
    timestamp: str  # %Y-%m-%dT%H%M, used in file names
    generated_at: datetime
    records: PartitionedRecordSet
    headers: dict[RecordType, list[str]]
    rejected: list[ErrorRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of processing one export file."""
    fiscal_year: str
    states: int  # 州の数
    fsr_rows: int
    project_rows: int
    rejected_records: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    output_directory: Path
    files: list[Path] = field(default_factory=list)  # 出力 CSV
    archive: Path | None = None  # アップロード済み tar.gz

"""Domain models for the SPR XML -> CSV converter."""

from .error_record import ErrorRecord
from .flat_row import FlatRow, RowKeyCollisionError, merge_rows
from .processing_result import ConvertedReport, ProcessingResult
from .raw_node import NodeKind, child, kind_of, text
from .record_set import PartitionedRecordSet, RecordType, StateRecords

__all__ = [
    # Parsed input
    "NodeKind",
    "child",
    "kind_of",
    "text",
    # Rows
    "FlatRow",
    "RowKeyCollisionError",
    "merge_rows",
    "PartitionedRecordSet",
    "RecordType",
    "StateRecords",
    # Results
    "ConvertedReport",
    "ErrorRecord",
    "ProcessingResult",
]

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.flat_row import FlatRow
from ..models.raw_node import child, text
from ..models.record_set import PartitionedRecordSet, RecordType
from ..transform.column_order import COLUMN_ORDERS, ColumnOrderSpec, resolve_order
from ..transform.flatten import Sanitize
from ..transform.lists import normalize_to_list
from ..transform.normalize import normalize_fsr, normalize_project
from ..transform.sanitize import sanitize as default_sanitize
from .progress import ProgressTracker

"""State/record aggregation.

Walks the `<State>` elements of the export, normalizes every FSR and Project
record and groups the rows by state. `AdminProject` and any other children
of `<State>` are ignored.

A record either becomes one complete row or is rejected as a whole. What
happens on rejection is the caller's policy:
- "abort": raise RecordError (the document is not converted)
- "skip":  log it, buffer an ErrorRecord and continue
"""

__all__ = [
    "RecordError",
    "partition_states",
    "build_headers",
]

logger = logging.getLogger(__name__)


class RecordError(Exception):
    """A single FSR/Project record could not be normalized."""

    def __init__(self, state: str | None, record_type: RecordType, position: int, cause: Exception) -> None:
        self.state = state
        self.record_type = record_type
        self.position = position
        self.cause = cause
        super().__init__(
            f"{record_type.value} #{position} in state {state!r}: {type(cause).__name__}: {cause}"
        )


def _normalizers(sanitize: Sanitize) -> dict[RecordType, Callable[[Any, str | None], FlatRow]]:
    return {
        RecordType.FSR: normalize_fsr,
        RecordType.PROJECT: lambda record, state: normalize_project(record, state, sanitize),
    }


def partition_states(
    states: Any,
    *,
    sanitize: Sanitize = default_sanitize,
    on_record_error: str = "abort",
    error_log: ErrorLogBuffer | None = None,
) -> tuple[PartitionedRecordSet, list[ErrorRecord]]:
    """Normalize all records and group them by state.

    Returns the record set and the records rejected under the "skip" policy.
    """
    if on_record_error not in ("abort", "skip"):
        raise ValueError(f"unknown record error policy: {on_record_error!r}")

    normalizers = _normalizers(sanitize)
    records = PartitionedRecordSet()
    rejected: list[ErrorRecord] = []
    state_nodes = normalize_to_list(states)

    with ProgressTracker(len(state_nodes)) as progress:
        for state_node in state_nodes:
            state = text(child(state_node, "@state"))
            progress.start_state(state)
            # レコードが無い州もパーティションとして残す
            records.partition(state)

            for record_type, element in ((RecordType.FSR, "FSR"), (RecordType.PROJECT, "Project")):
                normalize = normalizers[record_type]
                for position, raw in enumerate(normalize_to_list(child(state_node, element)), start=1):
                    try:
                        row = normalize(raw, state)
                    except Exception as e:
                        error = RecordError(state, record_type, position, e)
                        if on_record_error == "abort":
                            raise error from e
                        record = ErrorRecord.create(
                            state=state,
                            record_type=record_type.value,
                            position=position,
                            error_type=type(e).__name__,
                            message=str(e),
                        )
                        rejected.append(record)
                        if error_log is not None:
                            error_log.append(record)
                        logger.warning(f"skipped {error}")
                        continue
                    records.append(state, record_type, row)

            logger.debug(
                f"state={state} fsr={len(records.partition(state).fsr)} "
                f"projects={len(records.partition(state).project)}"
            )
            progress.set_postfix(rejected=len(rejected))
            progress.finish_state()

    return records, rejected


def build_headers(
    records: PartitionedRecordSet,
    orders: Mapping[RecordType, ColumnOrderSpec] = COLUMN_ORDERS,
) -> dict[RecordType, list[str]]:
    """Resolve one header list per record type, shared by every state."""
    return {
        record_type: resolve_order(records.observed_columns(record_type), orders[record_type])
        for record_type in RecordType
    }

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for rejected-record logging.

One ErrorRecord is produced per record that failed normalization while the
converter runs with `on_record_error: skip`. Records are written as JSON
Lines with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        state: Partition key (state name) of the rejected record
        record_type: "FSR" or "Project"
        position: 1-based position of the record within its state. -1 when unknown
        error_type: Exception class name of the failure
        message: Failure description
    """
    timestamp: str  # ISO8601 UTC
    state: str | None
    record_type: str
    position: int  # 不明な場合 -1
    error_type: str
    message: str

    @staticmethod
    def create(
        state: str | None, record_type: str, position: int, error_type: str, message: str
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            state=state,
            record_type=record_type,
            position=position,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

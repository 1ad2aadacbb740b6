from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ConvertConfig
from ..models.error_record import ErrorRecord

"""Rejected-record log.

Under `on_record_error: skip` every record that fails normalization is kept
here and written as one JSON line (see ErrorRecord) to
`<error_log_directory>/rejected-YYYYMMDD-HHMMSS.jsonl` (UTC). The file is
only created when at least one record was rejected.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Buffers rejected records of one conversion run. Flush writes JSON Lines."""

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory if directory is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @classmethod
    def from_config(cls, config: ConvertConfig) -> ErrorLogBuffer:
        return cls(Path(config.error_log_directory))

    @property
    def file_path(self) -> Path:
        # 初回アクセス時に決定 (1 実行 1 ファイル)
        if self._file_path is None:
            self._directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._directory / f"rejected-{stamp}.jsonl"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def counts_by_type(self) -> dict[str, int]:
        """Buffered rejections per record type, e.g. {"Project": 2}."""
        return dict(Counter(r.record_type for r in self._records))

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns None when nothing was rejected."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp

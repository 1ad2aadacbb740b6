from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.flat_row import FlatRow
from ..models.processing_result import ConvertedReport
from ..models.record_set import RecordType

"""CSV report writer (pandas).

Every cell is rendered to text before the DataFrame is built so that pandas
never infers dtypes (no "nan", no "1.0" for integer columns). Missing columns
and None render as empty cells.

Layout of one report:
    <output_directory>/report-<ts>/FSRs-FY<year>-<ts>.csv
    <output_directory>/report-<ts>/Projects-FY<year>-<ts>.csv
    <output_directory>/report-<ts>/Projects-<state>-FY<year>-<ts>.csv
"""

__all__ = [
    "render_value",
    "write_csv",
    "report_directory",
    "write_report",
]

logger = logging.getLogger(__name__)

_NEWLINES = re.compile(r"\r\n|\r|\n")


def render_value(value: Any) -> str:
    """Render one cell.

    >>> render_value(None)
    ''
    >>> render_value(Decimal("1E+1"))
    '10'
    >>> render_value("foo\\nbar")
    'foo bar'
    """
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    return _NEWLINES.sub(" ", str(value))


def write_csv(path: Path, headers: list[str], rows: Iterable[FlatRow]) -> Path:
    data = [[render_value(row.get(column)) for column in headers] for row in rows]
    frame = pd.DataFrame(data, columns=headers, dtype=object)
    frame.to_csv(path, index=False, lineterminator="\n", encoding="utf-8")
    logger.debug(f"wrote {len(data)} rows to {path.name}")
    return path


def report_directory(output_directory: Path, timestamp: str) -> Path:
    return output_directory / f"report-{timestamp}"


def write_report(report: ConvertedReport, output_directory: Path) -> list[Path]:
    """Write the combined and per-state CSV files; returns the written paths."""
    directory = report_directory(output_directory, report.timestamp)
    directory.mkdir(parents=True, exist_ok=False)

    fy = report.fiscal_year
    ts = report.timestamp
    written = [
        write_csv(directory / f"FSRs-FY{fy}-{ts}.csv",
                  report.headers[RecordType.FSR], report.records.rows(RecordType.FSR)),
        write_csv(directory / f"Projects-FY{fy}-{ts}.csv",
                  report.headers[RecordType.PROJECT], report.records.rows(RecordType.PROJECT)),
    ]

    for partition in report.records:
        if not partition.project:
            # プロジェクトの無い州はファイルを作らない
            logger.debug(f"state={partition.state} has no projects; skipped")
            continue
        written.append(
            write_csv(
                directory / f"Projects-{partition.state}-FY{fy}-{ts}.csv",
                report.headers[RecordType.PROJECT],
                partition.project,
            )
        )

    logger.info(f"wrote {len(written)} files to {directory}")
    return written

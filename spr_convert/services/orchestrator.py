from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import ConvertConfig
from ..logging.error_log import ErrorLogBuffer
from ..models.processing_result import ConvertedReport, ProcessingResult
from ..models.record_set import RecordType
from ..output.csv_writer import report_directory, write_report
from ..publish.github import GithubPublisher, archive_name, build_archive
from ..transform.flatten import Sanitize
from ..transform.sanitize import Sanitizer
from ..xml.reader import fiscal_year_of, read_document, states_of
from .aggregator import RecordError, build_headers, partition_states

"""Service orchestration for the SPR export converter.

convert_document() is the pure core: parsed export in, rows and resolved
headers out. process_file() wraps it with file I/O:
1. read and parse the gzipped export
2. convert (per-record error policy from config)
3. write the combined and per-state CSV files
4. optionally archive the report directory and upload it
"""

__all__ = [
    "ProcessingError",
    "TIMESTAMP_FMT",
    "convert_document",
    "process_file",
]

logger = logging.getLogger(__name__)

# ファイル名に使うローカル時刻 (例: 2017-03-01T1530)
TIMESTAMP_FMT = "%Y-%m-%dT%H%M"


class ProcessingError(Exception):
    """Base exception for processing errors."""
    pass


def convert_document(
    doc: Any,
    *,
    sanitizer: Sanitize,
    on_record_error: str = "abort",
    error_log: ErrorLogBuffer | None = None,
    now: datetime | None = None,
) -> ConvertedReport:
    """Convert a parsed export into normalized rows grouped by state.

    Raises:
        DocumentError: The fiscal year is missing
        ProcessingError: A record failed under the "abort" policy
    """
    generated_at = now if now is not None else datetime.now()
    fiscal_year = fiscal_year_of(doc)

    try:
        records, rejected = partition_states(
            states_of(doc),
            sanitize=sanitizer,
            on_record_error=on_record_error,
            error_log=error_log,
        )
    except RecordError as e:
        raise ProcessingError(f"record conversion aborted: {e}") from e

    headers = build_headers(records)
    logger.debug(
        f"headers fsr={len(headers[RecordType.FSR])} project={len(headers[RecordType.PROJECT])}"
    )
    return ConvertedReport(
        fiscal_year=fiscal_year,
        timestamp=generated_at.strftime(TIMESTAMP_FMT),
        generated_at=generated_at,
        records=records,
        headers=headers,
        rejected=rejected,
    )


def process_file(
    path: Path,
    config: ConvertConfig,
    *,
    output_dir: Path | None = None,
    publisher: GithubPublisher | None = None,
    now: datetime | None = None,
) -> ProcessingResult:
    """Convert one gzipped export file and write its report.

    Args:
        path: Gzipped XML export
        config: Converter configuration
        output_dir: Overrides `config.output_directory`
        publisher: When given, the report is archived and uploaded
        now: Timestamp used in directory/file names (default: local now)

    Raises:
        DocumentError: The export cannot be read or parsed
        ProcessingError: Record conversion aborted or the report cannot be written
        UploadError: The upload failed
    """
    start_time = datetime.now(UTC)
    output_directory = output_dir if output_dir is not None else Path(config.output_directory)
    error_log = ErrorLogBuffer.from_config(config)

    logger.info(f"reading {path}")
    doc = read_document(path)

    try:
        report = convert_document(
            doc,
            sanitizer=Sanitizer(config.sanitize),
            on_record_error=config.on_record_error,
            error_log=error_log,
            now=now,
        )
    finally:
        counts = error_log.counts_by_type()
        flushed = error_log.flush()
        if flushed is not None:
            detail = " ".join(f"{t}={n}" for t, n in sorted(counts.items()))
            logger.warning(f"rejected records ({detail}) written to {flushed}")

    logger.info(
        f"fiscal_year={report.fiscal_year} states={len(report.records)} "
        f"fsr={report.records.count(RecordType.FSR)} "
        f"projects={report.records.count(RecordType.PROJECT)}"
    )

    try:
        files = write_report(report, output_directory)
    except OSError as e:
        raise ProcessingError(f"cannot write report to {output_directory}: {e}") from e

    archive: Path | None = None
    if publisher is not None:
        archive = build_archive(
            report_directory(output_directory, report.timestamp),
            output_directory / archive_name(report.fiscal_year, report.timestamp),
        )
        publisher.upload(archive)
    else:
        logger.debug("upload skipped")

    end_time = datetime.now(UTC)
    return ProcessingResult(
        fiscal_year=report.fiscal_year,
        states=len(report.records),
        fsr_rows=report.records.count(RecordType.FSR),
        project_rows=report.records.count(RecordType.PROJECT),
        rejected_records=len(report.rejected),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        output_directory=output_directory,
        files=files,
        archive=archive,
    )

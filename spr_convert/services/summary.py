from __future__ import annotations

from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for one processed export.

    Format:
    SUMMARY fiscal_year={fy} states={n} fsr={rows} projects={rows}
    rejected={n} files={n} elapsed_sec={sec}

    Examples:
        >>> from datetime import datetime, timezone
        >>> from pathlib import Path
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     fiscal_year="2016", states=2, fsr_rows=2, project_rows=10,
        ...     rejected_records=0, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, output_directory=Path("generated"),
        ... )
        >>> render_summary_line(result)
        'SUMMARY fiscal_year=2016 states=2 fsr=2 projects=10 rejected=0 files=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY fiscal_year={result.fiscal_year} "
        f"states={result.states} "
        f"fsr={result.fsr_rows} "
        f"projects={result.project_rows} "
        f"rejected={result.rejected_records} "
        f"files={len(result.files)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from spr_convert.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ConvertConfig, load_config
from spr_convert.logging.init import log_summary, set_debug, setup_logging
from spr_convert.publish.github import GithubPublisher, UploadError
from spr_convert.services.orchestrator import ProcessingError, process_file
from spr_convert.services.summary import render_summary_line
from spr_convert.xml.reader import DocumentError

"""CLI entrypoint.

    spr-convert FILE [--config PATH] [--output-dir DIR] [--no-upload] [--debug]

Flow:
- Load `.env` (GITHUB_TOKEN) and the YAML config
- Convert the gzipped export and write the CSV report
- Upload the archived report when a token is available
- Print the SUMMARY line and exit with 0 / 1 / 2
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

TOKEN_ENV = "GITHUB_TOKEN"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values in .env win over the environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="spr-convert",
        description="Convert a gzipped IMLS State Program Report export to CSV",
    )
    p.add_argument("file", nargs="?", help="Gzipped XML export (.xml.gz)")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--output-dir", type=Path, default=None, help="Override output_directory")
    p.add_argument("--no-upload", action="store_true", help="Never upload the report")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_config(explicit: Path | None) -> ConvertConfig:
    if explicit is not None:
        return load_config(explicit)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ConvertConfig()


def _publisher(cfg: ConvertConfig, no_upload: bool) -> GithubPublisher | None:
    token = os.getenv(TOKEN_ENV)
    if no_upload or not cfg.upload.enabled or not token:
        return None
    return GithubPublisher(token, cfg.upload)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    if not args.file:
        logger.error("A filename for parsing is required!")
        return EXIT_FATAL

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    publisher = _publisher(cfg, args.no_upload)
    try:
        result = process_file(
            Path(args.file),
            cfg,
            output_dir=args.output_dir,
            publisher=publisher,
        )
    except DocumentError as e:
        logger.error(f"There was an error parsing the document! {e}")
        return EXIT_FATAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except UploadError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.rejected_records > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

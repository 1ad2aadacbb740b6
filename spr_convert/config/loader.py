from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..transform.sanitize import SanitizeOptions

"""Config loader.

Responsibilities:
- Load YAML config (default `config/convert.yml`)
- Validate against the bundled JSON schema
- Apply defaults for every optional key
- Return frozen dataclasses; nothing here is global state
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/convert.yml")

RECORD_ERROR_POLICIES = ("abort", "skip")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class UploadConfig:
    """Target of the report upload (GitHub contents API)."""
    enabled: bool = True
    owner: str = "IMLS"
    repository: str = "state-program-report-data"
    path_prefix: str = "reports"
    branch: str | None = None  # None -> repository default branch
    api_url: str = "https://api.github.com"
    timeout_seconds: float = 60.0


@dataclass(frozen=True)
class ConvertConfig:
    output_directory: str = "generated"
    error_log_directory: str = "logs"
    on_record_error: str = "abort"  # abort | skip
    sanitize: SanitizeOptions = field(default_factory=SanitizeOptions)
    upload: UploadConfig = field(default_factory=UploadConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if
            the config data fails validation (unknown keys, wrong types,
            missing required keys in a section).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ConvertConfig:
    _validate_config_schema(data)

    defaults = ConvertConfig()
    upload_raw = data.get("upload")
    upload = defaults.upload
    if upload_raw is not None:
        upload = UploadConfig(
            enabled=upload_raw.get("enabled", upload.enabled),
            owner=upload_raw["owner"],
            repository=upload_raw["repository"],
            path_prefix=upload_raw.get("path_prefix", upload.path_prefix),
            branch=upload_raw.get("branch", upload.branch),
            api_url=upload_raw.get("api_url", upload.api_url),
            timeout_seconds=float(upload_raw.get("timeout_seconds", upload.timeout_seconds)),
        )
    # 未指定キーは SanitizeOptions の既定値 (全て True)
    sanitize = SanitizeOptions(**data.get("sanitize", {}))

    return ConvertConfig(
        output_directory=data.get("output_directory", defaults.output_directory),
        error_log_directory=data.get("error_log_directory", defaults.error_log_directory),
        on_record_error=data.get("on_record_error", defaults.on_record_error),
        sanitize=sanitize,
        upload=upload,
    )


def load_config(path: Path) -> ConvertConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)

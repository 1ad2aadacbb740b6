from __future__ import annotations

import base64
import logging
import tarfile
from pathlib import Path
from typing import Any

import requests

from ..config.loader import UploadConfig

"""Report archiving and upload to a GitHub repository.

The report directory is packed into `SPR-FY<year>-<ts>.tar.gz` and created
through the GitHub contents API (PUT /repos/{owner}/{repo}/contents/{path}).
"""

__all__ = [
    "UploadError",
    "archive_name",
    "build_archive",
    "GithubPublisher",
]

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Archive upload failed (network error or non-2xx response)."""


def archive_name(fiscal_year: str, timestamp: str) -> str:
    return f"SPR-FY{fiscal_year}-{timestamp}.tar.gz"


def build_archive(directory: Path, archive_path: Path) -> Path:
    """Pack the contents of `directory` (not the directory itself) into a tar.gz."""
    archive_path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(archive_path, "w:gz") as tar:
        for entry in sorted(directory.iterdir()):
            tar.add(entry, arcname=f"./{entry.name}")
    logger.debug(f"archive written: {archive_path}")
    return archive_path


class GithubPublisher:
    def __init__(self, token: str, config: UploadConfig) -> None:
        self.token = token
        self.config = config

    def _url(self, name: str) -> str:
        base = self.config.api_url.rstrip("/")
        prefix = self.config.path_prefix.strip("/")
        path = f"{prefix}/{name}" if prefix else name
        return f"{base}/repos/{self.config.owner}/{self.config.repository}/contents/{path}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github+json",
        }

    def upload(self, path: Path) -> dict[str, Any]:
        """Create `path` in the configured repository; returns the API response body."""
        name = path.name
        payload: dict[str, Any] = {
            "message": f"Automated upload of {name}",
            "content": base64.b64encode(path.read_bytes()).decode("ascii"),
        }
        if self.config.branch:
            payload["branch"] = self.config.branch

        url = self._url(name)
        try:
            response = requests.put(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise UploadError(f"upload of {name} failed: {e}") from e

        logger.info(f"uploaded {name} to {self.config.owner}/{self.config.repository}")
        return response.json() if response.content else {}

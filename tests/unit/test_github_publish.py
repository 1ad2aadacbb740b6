from __future__ import annotations

import base64
import tarfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from spr_convert.config.loader import UploadConfig
from spr_convert.publish.github import GithubPublisher, UploadError, archive_name, build_archive


def test_archive_name():
    assert archive_name("2016", "2017-03-01T1530") == "SPR-FY2016-2017-03-01T1530.tar.gz"


def test_build_archive_contains_directory_contents(tmp_path: Path):
    report = tmp_path / "report-x"
    report.mkdir()
    (report / "a.csv").write_text("A\n", encoding="utf-8")
    (report / "b.csv").write_text("B\n", encoding="utf-8")

    archive = build_archive(report, tmp_path / "SPR.tar.gz")
    with tarfile.open(archive, "r:gz") as tar:
        names = sorted(tar.getnames())
    assert names == ["./a.csv", "./b.csv"]


def _response(status: int = 201, body: bytes = b'{"content": {}}') -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.content = body
    response.json.return_value = {"content": {}}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


def test_upload_puts_base64_content(tmp_path: Path):
    archive = tmp_path / "SPR-FY2016-x.tar.gz"
    archive.write_bytes(b"payload")
    publisher = GithubPublisher("secret", UploadConfig(timeout_seconds=5))

    with patch("spr_convert.publish.github.requests.put", return_value=_response()) as mock_put:
        publisher.upload(archive)

    args, kwargs = mock_put.call_args
    assert args[0] == (
        "https://api.github.com/repos/IMLS/state-program-report-data/contents/reports/SPR-FY2016-x.tar.gz"
    )
    assert kwargs["json"] == {
        "message": "Automated upload of SPR-FY2016-x.tar.gz",
        "content": base64.b64encode(b"payload").decode("ascii"),
    }
    assert kwargs["headers"]["Authorization"] == "token secret"
    assert kwargs["timeout"] == 5


def test_upload_with_branch_and_custom_prefix(tmp_path: Path):
    archive = tmp_path / "a.tar.gz"
    archive.write_bytes(b"x")
    config = UploadConfig(owner="me", repository="data", path_prefix="", branch="main")
    with patch("spr_convert.publish.github.requests.put", return_value=_response()) as mock_put:
        GithubPublisher("t", config).upload(archive)
    args, kwargs = mock_put.call_args
    assert args[0].endswith("/repos/me/data/contents/a.tar.gz")
    assert kwargs["json"]["branch"] == "main"


def test_upload_http_error(tmp_path: Path):
    archive = tmp_path / "a.tar.gz"
    archive.write_bytes(b"x")
    with patch("spr_convert.publish.github.requests.put", return_value=_response(422)):
        with pytest.raises(UploadError):
            GithubPublisher("t", UploadConfig()).upload(archive)


def test_upload_network_error(tmp_path: Path):
    archive = tmp_path / "a.tar.gz"
    archive.write_bytes(b"x")
    with patch(
        "spr_convert.publish.github.requests.put",
        side_effect=requests.ConnectionError("down"),
    ):
        with pytest.raises(UploadError):
            GithubPublisher("t", UploadConfig()).upload(archive)

from __future__ import annotations

import json
from pathlib import Path

import pytest

from spr_convert.logging.error_log import ErrorLogBuffer
from spr_convert.models.record_set import RecordType
from spr_convert.services.aggregator import RecordError, build_headers, partition_states
from spr_convert.transform.flatten import InvalidAmountError


def _identity(value):
    return value


STATES = [
    {
        "@state": "Alabama",
        "FSR": {"@id": "1", "Allotment": "5"},
        "Project": [{"@id": "10"}, {"@id": "11", "ProjectTags": "x"}],
        "AdminProject": {"@id": "99"},
    },
    {"@state": "Alaska"},
    {"@state": "Arizona", "Project": {"@id": "20", "Zip": "ignored"}},
]


def test_partition_states_groups_by_state():
    records, rejected = partition_states(STATES, sanitize=_identity)
    assert rejected == []
    assert [p.state for p in records] == ["Alabama", "Alaska", "Arizona"]

    alabama, alaska, arizona = list(records)
    assert [r["ProjectID"] for r in alabama.project] == ["10", "11"]
    assert alabama.fsr[0]["Id"] == "1"
    assert alabama.fsr[0]["State"] == "Alabama"
    assert alaska.fsr == [] and alaska.project == []
    assert arizona.project[0]["State"] == "Arizona"
    # AdminProject は出力しない
    assert records.count(RecordType.PROJECT) == 3


def test_partition_states_single_state_mapping():
    records, _ = partition_states({"@state": "Ohio", "Project": {"@id": "1"}}, sanitize=_identity)
    assert len(records) == 1
    assert records.count(RecordType.PROJECT) == 1


def test_partition_states_no_states():
    records, rejected = partition_states(None, sanitize=_identity)
    assert len(records) == 0
    assert rejected == []


BAD_STATES = [
    {
        "@state": "Ohio",
        "Project": [
            {"@id": "1"},
            {"@id": "2", "Budgets": {"Budget": {"@type": "Supplies", "LSTA": "abc"}}},
            {"@id": "3"},
        ],
    },
]


def test_abort_policy_raises_record_error():
    with pytest.raises(RecordError) as e:
        partition_states(BAD_STATES, sanitize=_identity, on_record_error="abort")
    err = e.value
    assert err.state == "Ohio"
    assert err.record_type is RecordType.PROJECT
    assert err.position == 2
    assert isinstance(err.cause, InvalidAmountError)


def test_skip_policy_drops_whole_record(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    records, rejected = partition_states(
        BAD_STATES, sanitize=_identity, on_record_error="skip", error_log=buf
    )
    assert [r["ProjectID"] for r in records.rows(RecordType.PROJECT)] == ["1", "3"]
    assert len(rejected) == 1
    assert rejected[0].position == 2
    assert rejected[0].error_type == "InvalidAmountError"

    path = buf.flush()
    assert path is not None
    data = json.loads(path.read_text(encoding="utf-8").strip())
    assert data["state"] == "Ohio"
    assert data["record_type"] == "Project"


def test_unknown_policy():
    with pytest.raises(ValueError):
        partition_states(STATES, sanitize=_identity, on_record_error="ignore")


def test_build_headers_shared_across_states():
    records, _ = partition_states(STATES, sanitize=_identity)
    headers = build_headers(records)

    project_header = headers[RecordType.PROJECT]
    assert project_header[:5] == ["ProjectID", "Version", "Status", "ProjectCode", "State"]
    # 一部の行にしか無い列も含む
    assert "ProjectTag.1" in project_header
    assert len(project_header) == len(set(project_header))
    assert headers[RecordType.FSR] == ["Id", "State", "Allotment"]

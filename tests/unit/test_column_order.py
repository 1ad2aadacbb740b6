from __future__ import annotations

import random

import pytest

from spr_convert.transform.column_order import (
    FSR_COLUMN_ORDER,
    PROJECT_COLUMN_ORDER,
    ColumnOrderSpec,
    resolve_order,
)


def test_fsr_header_follows_template():
    columns = ["Note", "State", "Id", "Allotment", "Version", "Status"]
    assert resolve_order(columns, FSR_COLUMN_ORDER) == [
        "Id", "State", "Status", "Version", "Allotment", "Note",
    ]


def test_unknown_columns_sort_last_alphabetically():
    columns = ["Zeta", "Id", "Alpha", "State"]
    assert resolve_order(columns, FSR_COLUMN_ORDER) == ["Id", "State", "Alpha", "Zeta"]


def test_intents_are_interleaved_per_instance():
    columns = [
        "IntentSubject.2.1", "IntentName.1", "IntentSubject.1.2",
        "IntentName.2", "IntentSubject.1.1", "IntentSubject.2.2",
    ]
    assert resolve_order(columns, PROJECT_COLUMN_ORDER) == [
        "IntentName.1", "IntentSubject.1.1", "IntentSubject.1.2",
        "IntentName.2", "IntentSubject.2.1", "IntentSubject.2.2",
    ]


def test_numeric_suffixes_sort_numerically():
    columns = ["ProjectTag.10", "ProjectTag.2", "ProjectTag.1"]
    assert resolve_order(columns, PROJECT_COLUMN_ORDER) == [
        "ProjectTag.1", "ProjectTag.2", "ProjectTag.10",
    ]


def test_activity_groups_nest_quantities():
    columns = [
        "ActivityTitle.2", "QuantityValue.1.1", "ActivityNumber.1", "QuantityName.1.2",
        "ActivityTitle.1", "QuantityName.1.1", "ActivityNumber.2", "QuantityValue.1.2",
        "TotalActivities", "LibraryWorkforce.1",
    ]
    assert resolve_order(columns, PROJECT_COLUMN_ORDER) == [
        "TotalActivities",
        "ActivityNumber.1", "ActivityTitle.1",
        "QuantityName.1.1", "QuantityValue.1.1",
        "QuantityName.1.2", "QuantityValue.1.2",
        "LibraryWorkforce.1",
        "ActivityNumber.2", "ActivityTitle.2",
    ]


def test_budget_columns_precede_totals():
    columns = ["TotalBudget", "LSTATotal", "LSTASupplies", "NarrativeSupplies", "Findings"]
    assert resolve_order(columns, PROJECT_COLUMN_ORDER) == [
        "LSTASupplies", "NarrativeSupplies", "LSTATotal", "TotalBudget", "Findings",
    ]


def test_resolve_order_is_deterministic_and_deduplicated():
    columns = [
        "ProjectID", "State", "GranteeAddress", "LinkURL.1", "IntentName.1",
        "ActivityNumber.1", "QuantityName.1.1", "Exemplary", "ProjectTag.1", "Zip",
    ]
    expected = resolve_order(columns, PROJECT_COLUMN_ORDER)
    shuffled = columns * 2
    random.Random(7).shuffle(shuffled)
    assert resolve_order(shuffled, PROJECT_COLUMN_ORDER) == expected
    assert len(expected) == len(columns)
    assert expected[-2:] == ["GranteeAddress", "Zip"]


def test_order_rejects_three_levels():
    with pytest.raises(ValueError):
        ColumnOrderSpec(("A", ("B", ("C", ("D",)))))


def test_first_occurrence_wins():
    spec = ColumnOrderSpec(("A", "B", "A"))
    assert resolve_order(["B", "A"], spec) == ["A", "B"]


def test_superscript_suffix_counts_as_zero():
    assert resolve_order(["Note.²", "Id", "Note.1"], FSR_COLUMN_ORDER) == ["Id", "Note.²", "Note.1"]

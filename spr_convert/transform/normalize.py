from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.flat_row import FlatRow, merge_rows
from ..models.raw_node import NodeKind, child, kind_of, text
from .flatten import (
    Sanitize,
    flatten_activities,
    flatten_budget,
    flatten_intents,
    flatten_links,
    flatten_tags,
)
from .lists import normalize_to_list
from .sanitize import sanitize as default_sanitize

"""Record normalizers: one parsed FSR / Project record -> one FlatRow."""

__all__ = [
    "normalize_fsr",
    "normalize_project",
    "grantee_address",
    "attribute_column",
]

# (column, path below <Project>)
PROJECT_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("ProjectID", ("@id",)),
    ("ProjectCode", ("@sprProjectCode",)),
    ("Version", ("@version",)),
    ("Status", ("@status",)),
    ("Title", ("Title",)),
    ("StateProjectCode", ("StateProjectCode",)),
    ("ParentProjectId", ("ParentProjectId",)),
    ("StartDate", ("StartDate",)),
    ("EndDate", ("EndDate",)),
    ("StateGoal", ("StateGoal",)),
    ("DirectorName", ("Director", "Name")),
    ("DirectorPhone", ("Director", "Phone")),
    ("DirectorEmail", ("Director", "Email")),
    ("Grantee", ("Grantee", "Name")),
    ("GranteeAddress1", ("Grantee", "Address1")),
    ("GranteeAddress2", ("Grantee", "Address2")),
    ("GranteeAddress3", ("Grantee", "Address3")),
    ("GranteeCity", ("Grantee", "City")),
    ("GranteeState", ("Grantee", "State")),
    ("GranteeZip", ("Grantee", "Zip")),
    ("GranteeType", ("Grantee", "Type")),  # FY13 のエクスポートのみ
    ("PlsId", ("Grantee", "PlsId")),
    ("IpedsId", ("Grantee", "IpedsId")),
    ("CommonCoreId", ("Grantee", "CommonCoreId")),
    ("Findings", ("Outcomes", "Findings")),
    ("FindingsImportance", ("Outcomes", "FindingsImportance")),
    ("OutcomeMethodSurvey", ("Outcomes", "OutcomeMethods", "OutcomeMethodSurvey")),
    ("OutcomeMethodAdminData", ("Outcomes", "OutcomeMethods", "OutcomeMethodAdminData")),
    ("OutcomeMethodFocusGroup", ("Outcomes", "OutcomeMethods", "OutcomeMethodFocusGroup")),
    ("OutcomeMethodObservation", ("Outcomes", "OutcomeMethods", "OutcomeMethodObservation")),
    ("OutcomeMethodOther", ("Outcomes", "OutcomeMethods", "OutcomeMethodOther")),
    ("LessonsLearned", ("Outcomes", "LessonsLearned")),
    ("ContinueProject", ("Outcomes", "ContinueProject")),
    ("ContinueProjectText", ("Outcomes", "ContinueProjectText")),
    ("EffortLevel", ("Outcomes", "EffortLevel")),
    ("EffortLevelText", ("Outcomes", "EffortLevelText")),
    ("ScopeChange", ("Outcomes", "ScopeChange")),
    ("ScopeChangeText", ("Outcomes", "ScopeChangeText")),
    ("OtherChange", ("Outcomes", "OtherChange")),
    ("OtherChangeText", ("Outcomes", "OtherChangeText")),
)

# Narrative fields run through the sanitizer
SANITIZED_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Abstract", ("Abstract",)),
    ("Exemplary", ("Exemplary", "ExemplaryNarrative")),
)


def attribute_column(key: str) -> str:
    """`@federalGrantNumber` -> `FederalGrantNumber`."""
    name = key.replace("@", "")
    return name[:1].upper() + name[1:]


def normalize_fsr(fsr: Any, state: str | None) -> FlatRow:
    """Normalize one `<FSR>` record.

    The nested `Comment` element is always redundant and dropped; every other
    key loses its `@` and gets an upper-case first letter. The partition key
    is added as `State`.
    """
    fields: Mapping[str, Any] = fsr if kind_of(fsr) is NodeKind.OBJECT else {}
    renamed = [
        {attribute_column(key): value}
        for key, value in fields.items()
        if key != "Comment"
    ]
    return merge_rows(*renamed, {"State": state})


def grantee_address(grantee: Any) -> str | None:
    """Single-line mailing address, or None without a first address line."""
    address1 = text(child(grantee, "Address1"))
    if address1 is None:
        return None

    def part(key: str) -> str:
        value = text(child(grantee, key))
        return "" if value is None else str(value)

    return (
        f"{address1} {part('Address2')} {part('Address3')} "
        f"{part('City')}, {part('State')} {part('Zip')}"
    )


def normalize_project(project: Any, state: str | None, sanitize: Sanitize = default_sanitize) -> FlatRow:
    """Normalize one `<Project>` record into a complete row.

    Scalar fields are copied under their output names, narrative fields are
    sanitized, and the budget, activity, tag, link and intent groups are
    flattened and merged in. Any flattening failure propagates; no partial
    row is returned.
    """
    columns: FlatRow = {"State": state}
    for column, path in PROJECT_FIELDS:
        columns[column] = text(child(project, *path))
    for column, path in SANITIZED_FIELDS:
        columns[column] = sanitize(text(child(project, *path)))
    columns["GranteeAddress"] = grantee_address(child(project, "Grantee"))
    columns["AttachmentCount"] = len(
        normalize_to_list(child(project, "AdditionalMaterials", "FileName"))
    )

    return merge_rows(
        columns,
        flatten_budget(normalize_to_list(child(project, "Budgets", "Budget"))),
        flatten_activities(
            normalize_to_list(child(project, "ProjectActivities", "ProjectActivity")),
            sanitize,
        ),
        flatten_tags(child(project, "ProjectTags")),
        flatten_links(normalize_to_list(child(project, "AdditionalMaterials", "LinkURL"))),
        flatten_intents(normalize_to_list(child(project, "Intents", "Intent"))),
    )

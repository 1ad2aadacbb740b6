from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

from ..models.flat_row import family_of
from ..models.record_set import RecordType

"""Canonical CSV column ordering.

The export is parsed into unordered mappings, but the CSV layout has to stay
identical to the one users already work with. Each record type has a
hand-written template listing column families in output order. A nested
tuple groups families that are interleaved per instance, e.g.
`IntentName.1, IntentSubject.1.1, IntentSubject.1.2, IntentName.2, ...`.
A group may contain one more level of groups (activity -> quantities).

Sort key of a column (template position, then for grouped families):
    (major index, position in group, minor index, position in nested group)
with the full name as the last tie break. Families missing from the template
go last, alphabetically.
"""

__all__ = [
    "ColumnOrderSpec",
    "FSR_COLUMN_ORDER",
    "PROJECT_COLUMN_ORDER",
    "COLUMN_ORDERS",
    "resolve_order",
]

Entry = Union[str, tuple["Entry", ...]]


@dataclass(frozen=True)
class ColumnOrderSpec:
    entries: tuple[Entry, ...]
    # family -> (position, position in group, position in nested group)
    _index: dict[str, tuple[int, int, int]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, tuple[int, int, int]] = {}
        for position, entry in enumerate(self.entries):
            if isinstance(entry, str):
                index.setdefault(entry, (position, 0, 0))
                continue
            for sub_position, sub_entry in enumerate(entry):
                if isinstance(sub_entry, str):
                    index.setdefault(sub_entry, (position, sub_position, 0))
                    continue
                for sub_sub_position, name in enumerate(sub_entry):
                    if not isinstance(name, str):
                        raise ValueError(f"column order nests deeper than two levels: {entry!r}")
                    index.setdefault(name, (position, sub_position, sub_sub_position))
        object.__setattr__(self, "_index", index)

    def locate(self, family: str) -> tuple[int, int, int] | None:
        return self._index.get(family)


def _as_index(token: str | None) -> int:
    # "1" -> 1, 欠落/非数値 -> 0 ("²" は isdigit() だが int() できない)
    if token is None:
        return 0
    try:
        return int(token)
    except ValueError:
        return 0


def _sort_key(column: str, spec: ColumnOrderSpec) -> tuple:
    family = family_of(column)
    suffixes = column.split(".")[1:]
    location = spec.locate(family)
    if location is None:
        return (1, column)
    position, sub_position, sub_sub_position = location
    major = _as_index(suffixes[0] if suffixes else None)
    minor = _as_index(suffixes[1] if len(suffixes) > 1 else None)
    return (0, position, major, sub_position, minor, sub_sub_position, column)


def resolve_order(columns: Iterable[str], spec: ColumnOrderSpec) -> list[str]:
    """Deterministic, total ordering of the observed column names."""
    return sorted(set(columns), key=lambda c: _sort_key(c, spec))


FSR_COLUMN_ORDER = ColumnOrderSpec((
    "Id",
    "State",
    "Status",
    "Version",
    "FederalGrantNumber",
    "Allotment",
    "RecipientAccountNumber",
    "Basis",
    "FundingPeriodStartDate",
    "FundingPeriodEndDate",
    "ReportPeriodStartDate",
    "ReportPeriodEndDate",
    "StateMOE",
    "MinimumMOERequired",
    "SLAAMatch",
    "OtherMatch",
    "TotalMatch",
    "MinimumMatchRequired",
    "OtherSpecialFunds",
    "TotalUnliquidatedObligations",
    "UnobligatedBalance",
    "LSTANetOutlays",
    "AdminAllowed",
    "AdminActual",
    "AdminDifference",
    "IMLSApprovedDate",
    "NameACO",
    "TitleACO",
    "SignatureACO",
    "PhoneACO",
    "EmailACO",
    "DateReportCertified",
    "AgencyDUNS",
    "AgencyEIN",
    "AgencyName",
    "Note",
))

PROJECT_COLUMN_ORDER = ColumnOrderSpec((
    "ProjectID",
    "Version",
    "Status",
    "ProjectCode",
    "State",
    "Title",
    "StateProjectCode",
    "ParentProjectId",
    "StartDate",
    "EndDate",
    "StateGoal",
    "Abstract",
    "AttachmentCount",
    "DirectorName",
    "DirectorPhone",
    "DirectorEmail",
    "Grantee",
    "GranteeType",
    "PlsId",
    "IpedsId",
    "CommonCoreId",
    "LinkURL",
    (
        "IntentName",
        "IntentSubject",
    ),
    "InKindConsultantFees",
    "InKindEquipment",
    "InKindOtherOperationalExpenses",
    "InKindSalaries",
    "InKindServices",
    "InKindSupplies",
    "InKindTravel",
    "LSTAConsultantFees",
    "LSTAEquipment",
    "LSTAOtherOperationalExpenses",
    "LSTASalaries",
    "LSTAServices",
    "LSTASupplies",
    "LSTATravel",
    "LocalConsultantFees",
    "LocalEquipment",
    "LocalOtherOperationalExpenses",
    "LocalSalaries",
    "LocalServices",
    "LocalSupplies",
    "LocalTravel",
    "OtherConsultantFees",
    "OtherEquipment",
    "OtherOtherOperationalExpenses",
    "OtherSalaries",
    "OtherServices",
    "OtherSupplies",
    "OtherTravel",
    "NarrativeConsultantFees",
    "NarrativeEquipment",
    "NarrativeOtherOperationalExpenses",
    "NarrativeSalaries",
    "NarrativeServices",
    "NarrativeSupplies",
    "NarrativeTravel",
    "StateConsultantFees",
    "StateEquipment",
    "StateOtherOperationalExpenses",
    "StateSalaries",
    "StateServices",
    "StateSupplies",
    "StateTravel",
    "LSTATotal",
    "StateTotal",
    "OtherTotal",
    "LocalTotal",
    "InKindTotal",
    "TotalBudget",
    "Findings",
    "FindingsImportance",
    "OutcomeMethodSurvey",
    "OutcomeMethodAdminData",
    "OutcomeMethodFocusGroup",
    "OutcomeMethodObservation",
    "OutcomeMethodOther",
    "LessonsLearned",
    "ContinueProject",
    "ContinueProjectText",
    "EffortLevel",
    "EffortLevelText",
    "ScopeChange",
    "ScopeChangeText",
    "OtherChange",
    "OtherChangeText",
    "Exemplary",
    "ProjectTag",
    "TotalActivities",
    (
        "ActivityNumber",
        "ActivityTitle",
        "ActivityAbstract",
        "ActivityIntent",
        "ActivityType",
        "ActivityMode",
        "ActivityFormat",
        "OtherModeFormat",
        (
            "QuantityName",
            "QuantityValue",
        ),
        (
            "PartnerOrganizationArea",
            "PartnerOrganizationType",
        ),
        "LibraryWorkforce",
        "TargetedOrGeneral",
        "GeographicCommunity",
        "AgeGroups",
        "EconomicType",
        "EthnicityType",
        "Families",
        "Intergenerational",
        "Immigrants",
        "Disabilities",
        "Literacy",
        "BeneficiariesOther",
        "BeneficiariesOtherText",
        "LocaleStatewide",
        (
            "LocaleInstitutionName",
            "LocaleInstitutionAddress",
            "LocaleInstitutionCity",
            "LocaleInstitutionState",
            "LocaleInstitutionZip",
            "LocaleInstitutionPublic",
            "LocaleInstitutionAcademic",
            "LocaleInstitutionSLAA",
            "LocaleInstitutionConsortia",
            "LocaleInstitutionSpecial",
            "LocaleInstitutionSchool",
            "LocaleInstitutionOther",
        ),
    ),
))

COLUMN_ORDERS = MappingProxyType({
    RecordType.FSR: FSR_COLUMN_ORDER,
    RecordType.PROJECT: PROJECT_COLUMN_ORDER,
})

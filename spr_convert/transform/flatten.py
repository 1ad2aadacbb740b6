from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models.flat_row import FlatRow, merge_rows
from ..models.raw_node import child, text
from .lists import normalize_to_list
from .sanitize import sanitize as default_sanitize

"""Repeating-group flatteners.

Each function turns one repeating group of a Project record into a FlatRow
fragment with index-qualified column names:

- `<Field>.<i>`       top-level groups (links, intents, tags, activities)
- `<Field>.<p>.<j>`   groups nested in the activity at position `p`

Inputs are expected to have gone through `normalize_to_list` already. Empty
input contributes no columns, except for the budget total and the activity
count which are always present.
"""

__all__ = [
    "InvalidAmountError",
    "InvalidBudgetTypeError",
    "budget_type_key",
    "parse_amount",
    "flatten_budget",
    "flatten_quantities",
    "flatten_institutions",
    "flatten_partner_areas",
    "flatten_partner_types",
    "flatten_activities",
    "flatten_tags",
    "flatten_links",
    "flatten_intents",
]

Sanitize = Callable[[Any], str | None]

# (total column, source field)
BUDGET_TOTALS: tuple[tuple[str, str], ...] = (
    ("LSTATotal", "LSTA"),
    ("StateTotal", "Match_State"),
    ("OtherTotal", "Match_Other"),
    ("LocalTotal", "Local"),
    ("InKindTotal", "InKind"),
)

# (column prefix, source field); the budget type is appended to the prefix
BUDGET_ITEM_AMOUNTS: tuple[tuple[str, str], ...] = (
    ("LSTA", "LSTA"),
    ("State", "Match_State"),
    ("Other", "Match_Other"),
    ("Local", "Local"),
    ("InKind", "InKind"),
)

QUANTITY_COLUMNS = (
    ("QuantityName", "QuantityName"),
    ("QuantityValue", "QuantityValue"),
)

INSTITUTION_COLUMNS = (
    ("LocaleInstitutionName", "Name"),
    ("LocaleInstitutionAddress", "Address"),
    ("LocaleInstitutionCity", "City"),
    ("LocaleInstitutionState", "State"),
    ("LocaleInstitutionZip", "Zip"),
)

ACTIVITY_COLUMNS = (
    ("ActivityTitle", "Title"),
    ("ActivityIntent", "ActivityIntent"),
    ("ActivityType", "Activity"),
    ("ActivityMode", "Mode"),
    ("ActivityFormat", "Format"),
    ("OtherModeFormat", "OtherModeFormat"),
)

BENEFICIARY_COLUMNS = (
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
)

INSTITUTION_TYPE_COLUMNS = (
    ("LocaleInstitutionPublic", "InstitutionTypePublic"),
    ("LocaleInstitutionAcademic", "InstitutionTypeAcademic"),
    ("LocaleInstitutionSLAA", "InstitutionTypeSLAA"),
    ("LocaleInstitutionConsortia", "InstitutionTypeConsortia"),
    ("LocaleInstitutionSpecial", "InstitutionTypeSpecial"),
    ("LocaleInstitutionSchool", "InstitutionTypeSchool"),
    ("LocaleInstitutionOther", "InstitutionTypeOther"),
)


class InvalidAmountError(ValueError):
    """Raised when a budget amount is present but not a finite decimal number."""


class InvalidBudgetTypeError(ValueError):
    """Raised when a budget line has no usable `@type` (missing, blank or starting with `/`)."""


def _numbered(
    items: Sequence[Any],
    columns: Sequence[tuple[str, str | None]],
    parent: Any = None,
) -> FlatRow:
    # source None -> the item itself is the value (e.g. <OrganizationArea>text</...>)
    fragments = []
    for j, item in enumerate(items, start=1):
        suffix = f"{j}" if parent is None else f"{parent}.{j}"
        fragments.append({
            f"{column}.{suffix}": text(item) if source is None else text(child(item, source))
            for column, source in columns
        })
    return merge_rows(*fragments)


def budget_type_key(raw_type: Any) -> str:
    """`"Other Operational Expenses / Misc"` -> `"OtherOperationalExpenses"`."""
    value = text(raw_type)
    if value is None:
        return ""
    compact = "".join(str(value).split())
    return compact.split("/", 1)[0]


def parse_amount(value: Any) -> Decimal:
    """Parse a budget amount; missing or blank counts as zero."""
    raw = text(value)
    if raw is None:
        return Decimal(0)
    if isinstance(raw, Decimal):
        return raw
    raw_str = str(raw).strip()
    if not raw_str:
        return Decimal(0)
    try:
        amount = Decimal(raw_str)
    except InvalidOperation as e:
        raise InvalidAmountError(f"invalid budget amount: {raw_str!r}") from e
    if not amount.is_finite():
        raise InvalidAmountError(f"invalid budget amount: {raw_str!r}")
    return amount


def flatten_budget(items: Sequence[Any]) -> FlatRow:
    """Per-type budget columns plus running totals.

    With no budget lines only `TotalBudget` is emitted, and it is None rather
    than zero so that "no budget reported" stays distinguishable from a zero
    budget.
    """
    if not items:
        return {"TotalBudget": None}

    totals = {column: Decimal(0) for column, _ in BUDGET_TOTALS}
    itemized = []
    for item in items:
        for column, source in BUDGET_TOTALS:
            totals[column] += parse_amount(child(item, source))

        type_key = budget_type_key(child(item, "@type"))
        if not type_key:
            # 空の型だと LSTA / State 等の素の列名になり他の列と衝突する
            raise InvalidBudgetTypeError(
                f"budget line without a type: @type={text(child(item, '@type'))!r}"
            )
        fragment: FlatRow = {
            f"{prefix}{type_key}": parse_amount(child(item, source))
            for prefix, source in BUDGET_ITEM_AMOUNTS
        }
        fragment[f"Narrative{type_key}"] = text(child(item, "Narrative"))
        itemized.append(fragment)

    total_row: FlatRow = dict(totals)
    total_row["TotalBudget"] = sum(totals.values(), Decimal(0))
    return merge_rows(total_row, *itemized)


def flatten_quantities(parent: Any, items: Sequence[Any]) -> FlatRow:
    return _numbered(items, QUANTITY_COLUMNS, parent)


def flatten_institutions(parent: Any, items: Sequence[Any]) -> FlatRow:
    return _numbered(items, INSTITUTION_COLUMNS, parent)


def flatten_partner_areas(parent: Any, items: Sequence[Any]) -> FlatRow:
    return _numbered(items, (("PartnerOrganizationArea", None),), parent)


def flatten_partner_types(parent: Any, items: Sequence[Any]) -> FlatRow:
    return _numbered(items, (("PartnerOrganizationType", None),), parent)


def _flatten_activity(position: int, activity: Any, sanitize: Sanitize) -> FlatRow:
    locale = child(activity, "Locale")
    partners = child(activity, "Partners")

    columns: FlatRow = {"ActivityNumber": text(child(activity, "@id"))}
    for column, source in ACTIVITY_COLUMNS:
        columns[column] = text(child(activity, source))
    columns["ActivityAbstract"] = sanitize(text(child(activity, "Abstract")))
    for column in BENEFICIARY_COLUMNS:
        columns[column] = text(child(activity, "Beneficiaries", column))
    columns["LocaleStatewide"] = text(child(locale, "@stateWide"))
    for column, source in INSTITUTION_TYPE_COLUMNS:
        columns[column] = text(child(locale, "InstitutionTypes", source))

    return merge_rows(
        {f"{column}.{position}": value for column, value in columns.items()},
        flatten_quantities(position, normalize_to_list(child(activity, "Quantity"))),
        flatten_institutions(
            position, normalize_to_list(child(locale, "SpecificInstitutions", "Institution"))
        ),
        flatten_partner_areas(position, normalize_to_list(child(partners, "OrganizationArea"))),
        flatten_partner_types(position, normalize_to_list(child(partners, "OrganizationType"))),
    )


def flatten_activities(items: Sequence[Any], sanitize: Sanitize = default_sanitize) -> FlatRow:
    """Flatten `ProjectActivity` entries.

    Activity columns are suffixed with the activity's 1-based position, which
    is also the parent index of its nested quantities, institutions and
    partners. `ActivityNumber.<i>` carries the activity's own `@id`.
    `TotalActivities` is always present.
    """
    fragments: list[FlatRow] = [{"TotalActivities": len(items)}]
    for position, activity in enumerate(items, start=1):
        fragments.append(_flatten_activity(position, activity, sanitize))
    return merge_rows(*fragments)


def flatten_tags(tags: Any) -> FlatRow:
    """`<ProjectTags>` is a single comma separated string, not a list.

    Tags are sorted and numbered from 1. An empty token between two commas
    is kept (it sorts first, as "ProjectTag.1": ""); trailing empty tokens
    are dropped so that "a,b," and "a,b" number identically.
    """
    raw = text(tags)
    if not raw:
        return {}
    names = str(raw).split(",")
    while names and not names[-1]:
        names.pop()
    names.sort()
    return {f"ProjectTag.{i}": name for i, name in enumerate(names, start=1)}


def flatten_links(items: Sequence[Any]) -> FlatRow:
    return _numbered(items, (("LinkURL", None),))


def flatten_intents(items: Sequence[Any]) -> FlatRow:
    """`IntentName.<i>` plus exactly two `IntentSubject.<i>.<n>` columns.

    An `<Intent>` carries at most two `<Subject>` elements, so both subject
    columns are always emitted, None when missing.
    """
    fragments = []
    for i, intent in enumerate(items, start=1):
        subjects = normalize_to_list(child(intent, "Subject"))
        fragment: FlatRow = {f"IntentName.{i}": text(child(intent, "IntentName"))}
        for n in (1, 2):
            fragment[f"IntentSubject.{i}.{n}"] = text(subjects[n - 1]) if len(subjects) >= n else None
        fragments.append(fragment)
    return merge_rows(*fragments)

# =============================================================================
# REVPLAN - ENTITIES AND ROW MAPPING
# =============================================================================
# Pipeline entries, activity plans (meeting logs) and highlights (status
# notes), plus the mapping to/from database rows.
#
# PLAN COLUMNS:
# year 1: jan_plan .. dec_plan
# year n: jan_plan_yN .. dec_plan_yN (only when the schema supports them)
# =============================================================================

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from .allocation import DEFAULT_PERIOD, ONE_TIME_PERIOD, ContractPeriod, as_amount
from .catalog import STAGES
from .months import GRID_SIZE, MONTH_KEYS, MONTHS_PER_YEAR


def plan_column(slot: int) -> str:
    """Database column for a grid slot."""
    year, month = divmod(slot, MONTHS_PER_YEAR)
    suffix = "" if year == 0 else f"_y{year + 1}"
    return f"{MONTH_KEYS[month]}_plan{suffix}"


YEAR1_PLAN_COLUMNS: List[str] = [plan_column(slot) for slot in range(MONTHS_PER_YEAR)]
PLAN_COLUMNS: List[str] = [plan_column(slot) for slot in range(GRID_SIZE)]


@dataclass
class PipelineEntry:
    """One sales opportunity with its 5-year revenue plan."""
    id: str = ""
    no: int = 0
    user_id: Optional[str] = None
    account_name: str = ""
    opportunity_name: str = ""
    stage: str = STAGES[0]
    product_family: str = ""
    pilar: str = ""
    tower: str = ""
    se_name: str = ""
    presales_lob: str = ""
    am_name: str = ""
    close_month: str = ""  # "YYYY-MM"
    contract_period: ContractPeriod = DEFAULT_PERIOD
    contract_value: int = 0
    rev_plan: List[int] = field(default_factory=lambda: [0] * GRID_SIZE)
    telkom_si: str = "Telkom"
    si_name: Optional[str] = None
    bespoke_project: bool = False
    project_id: Optional[str] = None
    po_release_date: Optional[str] = None
    po_release_number: Optional[str] = None
    attachment_url: Optional[str] = None

    @property
    def year1_plan(self) -> List[int]:
        return list(self.rev_plan[:MONTHS_PER_YEAR])

    @property
    def fy_total(self) -> int:
        return sum(self.year1_plan)


@dataclass
class ActivityPlan:
    """Meeting log of a sales engineer."""
    id: str = ""
    user_id: Optional[str] = None
    se_name: str = ""
    account_name: Optional[str] = None
    opportunity_name: Optional[str] = None
    activity_date: str = ""  # "YYYY-MM-DD"
    am_name: Optional[str] = None
    agenda: Optional[str] = None
    solution_offer: Optional[str] = None
    contract_value: int = 0
    rev_plan_fy26: int = 0
    est_close_month: Optional[str] = None
    output: Optional[str] = None
    next_action: Optional[str] = None
    pipeline_entry_id: Optional[str] = None
    attachment_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Highlight:
    """Status note attached to a pipeline entry."""
    id: str = ""
    title: str = ""
    category: Optional[str] = None
    related_account: Optional[str] = None
    related_opportunity: Optional[str] = None
    highlight_date: Optional[str] = None
    description: Optional[str] = None
    status: str = "On Progress"
    created_by: str = ""
    se_name: Optional[str] = None
    presales_lob: Optional[str] = None
    support_needed: Optional[str] = None
    dept_in_charge: Optional[str] = None
    potential_rev: Optional[int] = None
    pipeline_entry_id: Optional[str] = None
    stage: Optional[str] = None
    creator_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# Columns the database fills in; never written back
_SERVER_COLUMNS = {"id", "created_at", "updated_at"}
# Joined, not stored on the highlights table
_JOINED_COLUMNS = {"creator_name"}


def _to_int(value) -> int:
    # numeric columns come back as int, float or decimal strings
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _period_from_row(value) -> ContractPeriod:
    if value is None or value == "":
        return DEFAULT_PERIOD
    if isinstance(value, str) and value.strip().upper() == ONE_TIME_PERIOD:
        return ONE_TIME_PERIOD
    period = as_amount(value)
    return period if period > 0 else DEFAULT_PERIOD


def _period_to_row(period: ContractPeriod) -> Optional[int]:
    # contract_period is an integer column; "OTC" is stored as NULL
    if isinstance(period, str) and period.strip().upper() == ONE_TIME_PERIOD:
        return None
    period = as_amount(period)
    return period if period > 0 else None


def entry_from_row(row: Dict, index: int = 0) -> PipelineEntry:
    """
    Map a pipeline_entries row to a PipelineEntry.

    Args:
        row: Database row
        index: Position in the result set (display number = index + 1)

    Notes:
        - Missing plan columns (years 2-5 on older schemas) read as 0
        - Numeric columns arrive as strings or floats and are coerced to int
    """
    rev_plan = [max(0, _to_int(row.get(column))) for column in PLAN_COLUMNS]
    return PipelineEntry(
        id=str(row.get("id", "")),
        no=index + 1,
        user_id=row.get("user_id"),
        account_name=row.get("account_name") or "",
        opportunity_name=row.get("opportunity_name") or "",
        stage=row.get("stage") or STAGES[0],
        product_family=row.get("product_family") or "",
        pilar=row.get("pilar") or "",
        tower=row.get("tower") or "",
        se_name=row.get("se_name") or "",
        presales_lob=row.get("presales_lob") or "",
        am_name=row.get("am_name") or "",
        close_month=row.get("close_month") or "",
        contract_period=_period_from_row(row.get("contract_period")),
        contract_value=_to_int(row.get("contract_value")),
        rev_plan=rev_plan,
        telkom_si=row.get("telkom_si") or "Telkom",
        si_name=row.get("si_name") or None,
        bespoke_project=bool(row.get("bespoke_project") or False),
        project_id=row.get("project_id") or None,
        po_release_date=row.get("po_release_date") or row.get("po_release") or None,
        po_release_number=row.get("po_month") or None,
        attachment_url=row.get("attachment_url") or None,
    )


def entry_to_row(
    entry: PipelineEntry,
    user_id: Optional[str] = None,
    include_extended_years: bool = False
) -> Dict:
    """
    Map a PipelineEntry to a pipeline_entries row.

    Only the year-1 plan is written unless include_extended_years is set.
    """
    row = {
        "account_name": entry.account_name,
        "opportunity_name": entry.opportunity_name,
        "stage": entry.stage,
        "product_family": entry.product_family,
        "pilar": entry.pilar,
        "tower": entry.tower,
        "se_name": entry.se_name,
        "presales_lob": entry.presales_lob,
        "am_name": entry.am_name,
        "close_month": entry.close_month,
        "contract_period": _period_to_row(entry.contract_period),
        "contract_value": int(entry.contract_value),
        "telkom_si": entry.telkom_si,
        "si_name": entry.si_name,
        "bespoke_project": entry.bespoke_project,
        "project_id": entry.project_id,
        "po_release_date": entry.po_release_date,
        "po_release": entry.po_release_date,
        "po_month": entry.po_release_number,
        "attachment_url": entry.attachment_url,
    }
    owner = user_id or entry.user_id
    if owner:
        row["user_id"] = owner

    columns = PLAN_COLUMNS if include_extended_years else YEAR1_PLAN_COLUMNS
    for slot, column in enumerate(columns):
        row[column] = int(entry.rev_plan[slot]) if slot < len(entry.rev_plan) else 0
    return row


def _from_row(cls, row: Dict):
    names = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in row.items() if key in names})


def _to_row(item, skip) -> Dict:
    return {
        f.name: getattr(item, f.name)
        for f in fields(item)
        if f.name not in skip
    }


def activity_from_row(row: Dict) -> ActivityPlan:
    activity = _from_row(ActivityPlan, row)
    activity.contract_value = _to_int(activity.contract_value)
    activity.rev_plan_fy26 = _to_int(activity.rev_plan_fy26)
    return activity


def activity_to_row(activity: ActivityPlan) -> Dict:
    return _to_row(activity, _SERVER_COLUMNS)


def highlight_from_row(row: Dict) -> Highlight:
    highlight = _from_row(Highlight, row)
    highlight.creator_name = highlight.creator_name or highlight.se_name or "Unknown"
    if highlight.potential_rev is not None:
        highlight.potential_rev = _to_int(highlight.potential_rev)
    return highlight


def highlight_to_row(highlight: Highlight) -> Dict:
    return _to_row(highlight, _SERVER_COLUMNS | _JOINED_COLUMNS)


# (attribute, label) pairs an entry needs before it counts as complete
REQUIRED_ENTRY_FIELDS = [
    ("account_name", "Account Name"),
    ("opportunity_name", "Opportunity Name"),
    ("stage", "Stage"),
    ("am_name", "AM Name"),
    ("se_name", "SE Name"),
    ("pilar", "Pilar"),
    ("tower", "Tower"),
    ("close_month", "Close Month"),
    ("contract_value", "Contract Value"),
    ("contract_period", "Contract Period"),
    ("product_family", "Product Family"),
    ("presales_lob", "Presales LoB"),
]


def missing_fields(entry: PipelineEntry) -> List[str]:
    """Labels of required fields that are empty or zero."""
    missing = []
    for attr, label in REQUIRED_ENTRY_FIELDS:
        value = getattr(entry, attr)
        if value is None or value == "" or value == 0:
            missing.append(label)
    return missing


def is_complete(entry: PipelineEntry) -> bool:
    return not missing_fields(entry)


# =============================================================================
# END OF ENTITIES MODULE
# =============================================================================

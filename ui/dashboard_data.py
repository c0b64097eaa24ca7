"""Transform pipeline entries into dashboard structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd

from revplan.catalog import CLOSED_STAGES, CLOSED_WON, PILARS, STAGES, TOWERS
from revplan.entries import PipelineEntry
from revplan.months import MONTH_LABELS
from revplan.summary import summarize


@dataclass
class DashboardStats:
    total_pipeline: int = 0
    opportunity_count: int = 0
    closed_won: int = 0
    closed_won_count: int = 0
    in_progress: int = 0
    in_progress_count: int = 0
    target_achievement_pct: float = 0.0


@dataclass
class DashboardSnapshot:
    stats: DashboardStats
    by_stage: pd.DataFrame
    monthly: pd.DataFrame
    by_pilar: pd.DataFrame
    by_tower: pd.DataFrame
    by_lob: pd.DataFrame
    by_product_family: pd.DataFrame
    quarterly: pd.DataFrame


def _safe_pct(num: float, den: float) -> float:
    return (num / den) if den else 0.0


def compute_stats(entries: Sequence[PipelineEntry], fy_target: float) -> DashboardStats:
    """Stat cards: totals are year-1 revenue plans, not contract values."""
    closed_won = [e for e in entries if e.stage == CLOSED_WON]
    in_progress = [e for e in entries if e.stage not in CLOSED_STAGES]
    closed_won_total = sum(e.fy_total for e in closed_won)
    return DashboardStats(
        total_pipeline=sum(e.fy_total for e in entries),
        opportunity_count=len(entries),
        closed_won=closed_won_total,
        closed_won_count=len(closed_won),
        in_progress=sum(e.fy_total for e in in_progress),
        in_progress_count=len(in_progress),
        target_achievement_pct=_safe_pct(closed_won_total, fy_target) * 100,
    )


def stage_totals(entries: Sequence[PipelineEntry]) -> pd.DataFrame:
    """One row per stage in pipeline order, including empty stages."""
    rows = []
    for stage in STAGES:
        matching = [e for e in entries if e.stage == stage]
        rows.append(
            {
                "stage": stage,
                "total": sum(e.fy_total for e in matching),
                "count": len(matching),
            }
        )
    return pd.DataFrame(rows, columns=["stage", "total", "count"])


def monthly_revenue(entries: Sequence[PipelineEntry], monthly_target: float) -> pd.DataFrame:
    """Year-1 revenue plan per month across all entries, with target line."""
    rows = []
    for index, label in enumerate(MONTH_LABELS):
        rows.append(
            {
                "month": label,
                "revenue": sum(e.rev_plan[index] for e in entries),
                "target": monthly_target,
            }
        )
    return pd.DataFrame(rows, columns=["month", "revenue", "target"])


def distribution(
    entries: Sequence[PipelineEntry],
    key: str,
    categories: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Contract value and count grouped by an entry attribute.

    Args:
        entries: Pipeline entries
        key: Attribute to group by (pilar, tower, presales_lob, ...)
        categories: Fixed category order; defaults to the values present

    Returns:
        DataFrame[name, value, count, share_pct] sorted by value
    """
    columns = ["name", "value", "count", "share_pct"]
    if categories is None:
        categories = sorted({getattr(e, key) for e in entries if getattr(e, key)})
    rows = []
    for name in categories:
        matching = [e for e in entries if getattr(e, key) == name]
        rows.append(
            {
                "name": name,
                "value": sum(e.contract_value for e in matching),
                "count": len(matching),
            }
        )
    if not rows:
        return pd.DataFrame(columns=columns)
    data = pd.DataFrame(rows).sort_values("value", ascending=False, kind="stable")
    total = float(data["value"].sum())
    data["share_pct"] = data["value"].apply(lambda value: _safe_pct(float(value), total))
    return data.reset_index(drop=True)[columns]


def lob_frame(lob_rows: List[Dict]) -> pd.DataFrame:
    """LoB distribution rows from the database RPC as a DataFrame."""
    columns = ["name", "value", "count", "share_pct"]
    if not lob_rows:
        return pd.DataFrame(columns=columns)
    data = pd.DataFrame(lob_rows).sort_values("value", ascending=False, kind="stable")
    total = float(data["value"].sum())
    data["share_pct"] = data["value"].apply(lambda value: _safe_pct(float(value), total))
    return data.reset_index(drop=True)[columns]


def quarterly_table(entries: Sequence[PipelineEntry]) -> pd.DataFrame:
    """Per-entry Q1..Q4, H1, H2 and FY of the year-1 plan."""
    columns = ["no", "account_name", "opportunity_name", "stage",
               "q1", "q2", "q3", "q4", "h1", "h2", "fy"]
    rows = []
    for entry in entries:
        row = {
            "no": entry.no,
            "account_name": entry.account_name,
            "opportunity_name": entry.opportunity_name,
            "stage": entry.stage,
        }
        row.update(summarize(entry.year1_plan).as_dict())
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def build_snapshot(
    entries: Sequence[PipelineEntry],
    settings: Optional[Dict] = None,
    lob_rows: Optional[List[Dict]] = None
) -> DashboardSnapshot:
    """
    Build every dashboard aggregate from the current entries.

    LoB distribution comes from the server-side RPC when provided (it can see
    entries that row-level security hides), otherwise from the entries.
    """
    settings = settings if isinstance(settings, dict) else {}
    dashboard = settings.get("dashboard", {})
    fy_target = float(dashboard.get("fy_target", 0) or 0)
    monthly_target = float(dashboard.get("monthly_target", 0) or 0)

    by_lob = lob_frame(lob_rows) if lob_rows else distribution(entries, "presales_lob")
    return DashboardSnapshot(
        stats=compute_stats(entries, fy_target),
        by_stage=stage_totals(entries),
        monthly=monthly_revenue(entries, monthly_target),
        by_pilar=distribution(entries, "pilar", PILARS),
        by_tower=distribution(entries, "tower", TOWERS),
        by_lob=by_lob,
        by_product_family=distribution(entries, "product_family"),
        quarterly=quarterly_table(entries),
    )

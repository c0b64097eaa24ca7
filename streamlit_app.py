from __future__ import annotations

import os
from datetime import date
from typing import Dict, List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from revplan.allocation import CONTRACT_PERIODS
from revplan.catalog import (
    DEPT_IN_CHARGE_OPTIONS,
    HIGHLIGHT_CATEGORIES,
    HIGHLIGHT_STATUSES,
    PRESALES_LOBS,
    PRODUCT_FAMILIES,
    STAGES,
    TELKOM_SI_OPTIONS,
)
from revplan.entries import ActivityPlan, Highlight, PipelineEntry, missing_fields
from revplan.form import PipelineForm
from revplan.formatting import format_compact, format_currency
from revplan.months import fiscal_year_label
from revplan.settings import load_settings, supabase_credentials, validate_settings
from revplan.store import PipelineStore, StoreError, can_modify, get_supabase_client
from revplan.summary import summarize_years
from ui.dashboard_data import DashboardSnapshot, build_snapshot
from ui.pipeline_form import amount_input, month_grid_editor, otc_editor
from ui.tables import (
    ALL,
    PipelineFilters,
    filter_activities,
    filter_entries,
    filter_highlights,
    paginate,
    unique_values,
)


st.set_page_config(
    page_title="Sales Pipeline",
    page_icon="P",
    layout="wide",
    initial_sidebar_state="expanded",
)


THEMES: Dict[str, Dict[str, str]] = {
    "light": {
        "bg": "#F5F7FA",
        "surface": "#FFFFFF",
        "surface_alt": "#EEF2F7",
        "text": "#111827",
        "text_muted": "#4B5563",
        "border": "#D6DCE5",
        "primary": "#C8102E",
        "grid": "#E2E8F0",
    },
    "dark": {
        "bg": "#0B1220",
        "surface": "#131C2E",
        "surface_alt": "#1A2540",
        "text": "#E5E9F0",
        "text_muted": "#9AA7BD",
        "border": "#2B3A58",
        "primary": "#FF4D5E",
        "grid": "#2B3A58",
    },
}

STAGE_COLORS = {
    "Initial Communication": "#737B8C",
    "Proposal": "#2A7DF0",
    "Negotiation": "#9D4EDD",
    "PoC": "#17A2B8",
    "Sign Agreement": "#F0A020",
    "Closed Won": "#22A45D",
    "Closed Lost": "#D64545",
}


def _qp_value(key: str, default: str) -> str:
    value = st.query_params.get(key, default)
    if isinstance(value, list):
        return value[0] if value else default
    return str(value)


def _apply_theme(theme: str) -> None:
    t = THEMES[theme]
    st.markdown(
        f"""
<style>
    .stApp {{ background: {t['bg']}; color: {t['text']}; }}
    [data-testid="stSidebar"] {{ background: {t['surface']}; border-right: 1px solid {t['border']}; }}
    .pl-kpi {{
        background: {t['surface']};
        border: 1px solid {t['border']};
        border-radius: 12px;
        padding: 14px 16px;
    }}
    .pl-kpi-title {{ color: {t['text_muted']}; font-size: 13px; }}
    .pl-kpi-value {{ color: {t['text']}; font-size: 26px; font-weight: 700; }}
    .pl-kpi-sub {{ color: {t['text_muted']}; font-size: 12px; }}
    .pl-panel-title {{ color: {t['text']}; font-weight: 650; margin: 8px 0 4px 0; }}
</style>
""",
        unsafe_allow_html=True,
    )


def _style_figure(fig, theme: str, height: int = 320):
    t = THEMES[theme]
    fig.update_layout(
        height=height,
        margin=dict(l=14, r=14, t=18, b=14),
        paper_bgcolor=t["surface"],
        plot_bgcolor=t["surface_alt"],
        font=dict(color=t["text"]),
        legend=dict(bgcolor="rgba(0,0,0,0)", font=dict(color=t["text"])),
    )
    fig.update_xaxes(gridcolor=t["grid"], tickfont=dict(color=t["text_muted"]))
    fig.update_yaxes(gridcolor=t["grid"], tickfont=dict(color=t["text_muted"]))
    return fig


def _kpi_tile(title: str, value: str, subtitle: str) -> None:
    st.markdown(
        f"""
<div class="pl-kpi">
  <div class="pl-kpi-title">{title}</div>
  <div class="pl-kpi-value">{value}</div>
  <div class="pl-kpi-sub">{subtitle}</div>
</div>
""",
        unsafe_allow_html=True,
    )


# ---------------------------------------------------------------------------
# Data access
# ---------------------------------------------------------------------------

@st.cache_resource(show_spinner=False)
def _store(profile: str) -> PipelineStore:
    settings = load_settings(profile)
    supabase = settings.get("supabase", {})
    # Streamlit Cloud: credentials live in st.secrets
    for env_key in (supabase.get("url_env", "SUPABASE_URL"), supabase.get("key_env", "SUPABASE_KEY")):
        if not os.getenv(env_key) and env_key in st.secrets:
            os.environ[env_key] = st.secrets[env_key]
    return PipelineStore(get_supabase_client(settings), settings)


@st.cache_data(show_spinner=False, ttl=60)
def _load_entries(profile: str) -> List[PipelineEntry]:
    return _store(profile).list_entries()


@st.cache_data(show_spinner=False, ttl=60)
def _load_lob_rows(profile: str) -> List[Dict]:
    return _store(profile).lob_distribution()


@st.cache_data(show_spinner=False, ttl=60)
def _load_activities(profile: str) -> List[ActivityPlan]:
    return _store(profile).list_activities()


@st.cache_data(show_spinner=False, ttl=60)
def _load_highlights(profile: str) -> List[Highlight]:
    return _store(profile).list_highlights()


def _reload() -> None:
    st.cache_data.clear()
    st.rerun()


def _run_write(action, success: str) -> None:
    try:
        action()
    except StoreError as exc:
        st.error(str(exc))
        return
    st.success(success)
    _reload()


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def _render_stats(snapshot: DashboardSnapshot) -> None:
    stats = snapshot.stats
    cols = st.columns(3)
    with cols[0]:
        _kpi_tile("Total Pipeline", format_compact(stats.total_pipeline), f"{stats.opportunity_count} opportunities")
    with cols[1]:
        _kpi_tile(
            "Closed Won",
            format_compact(stats.closed_won),
            f"{stats.closed_won_count} opportunities - {stats.target_achievement_pct:.1f}% of FY target",
        )
    with cols[2]:
        _kpi_tile("In Progress", format_compact(stats.in_progress), f"{stats.in_progress_count} opportunities")


def _render_charts(snapshot: DashboardSnapshot, base_year: int, theme: str) -> None:
    left, right = st.columns([3, 2], gap="large")
    with left:
        st.markdown(f'<div class="pl-panel-title">Revenue Plan {fiscal_year_label(base_year, 1)}</div>', unsafe_allow_html=True)
        monthly = snapshot.monthly
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=monthly["month"], y=monthly["revenue"], name="Revenue Plan", fill="tozeroy",
                                 line=dict(color=THEMES[theme]["primary"], width=2)))
        fig.add_trace(go.Scatter(x=monthly["month"], y=monthly["target"], name="Target",
                                 line=dict(dash="dash", width=2)))
        st.plotly_chart(_style_figure(fig, theme), width="stretch")
    with right:
        st.markdown('<div class="pl-panel-title">Pipeline by Stage</div>', unsafe_allow_html=True)
        fig = px.bar(snapshot.by_stage, x="total", y="stage", orientation="h", color="stage",
                     color_discrete_map=STAGE_COLORS, hover_data=["count"])
        fig.update_layout(showlegend=False)
        st.plotly_chart(_style_figure(fig, theme), width="stretch")

    cols = st.columns(3, gap="large")
    for col, (title, frame) in zip(
        cols,
        [("By Pilar", snapshot.by_pilar), ("By Tower", snapshot.by_tower), ("By Presales LoB", snapshot.by_lob)],
    ):
        with col:
            st.markdown(f'<div class="pl-panel-title">{title}</div>', unsafe_allow_html=True)
            if frame.empty or float(frame["value"].sum()) == 0:
                st.caption("No contract value yet.")
                continue
            fig = px.pie(frame, names="name", values="value", hole=0.55)
            st.plotly_chart(_style_figure(fig, theme, height=280), width="stretch")


def _pipeline_filters(entries: List[PipelineEntry]) -> PipelineFilters:
    filters = PipelineFilters(search=st.text_input("Search by account, opportunity, AM, or SE"))
    cols = st.columns(6)
    options = [
        ("stage", "Stage", STAGES),
        ("account_name", "Account", unique_values(entries, "account_name")),
        ("am_name", "AM", unique_values(entries, "am_name")),
        ("se_name", "SE", unique_values(entries, "se_name")),
        ("close_month", "Close Month", unique_values(entries, "close_month")),
        ("pilar", "Pilar", unique_values(entries, "pilar")),
    ]
    for col, (attr, label, values) in zip(cols, options):
        with col:
            setattr(filters, attr, st.selectbox(label, [ALL] + list(values), key=f"pf_{attr}"))
    return filters


def _render_pipeline_table(entries: List[PipelineEntry], settings: Dict, user_id: Optional[str], is_admin: bool, profile: str) -> None:
    filters = _pipeline_filters(entries)
    filtered = filter_entries(entries, filters)
    fy_total = sum(entry.fy_total for entry in entries)
    per_page = settings.get("pagination", {}).get("pipeline", 15)
    page_no = st.number_input("Page", min_value=1, value=1, step=1, key="pipeline_page")
    page = paginate(filtered, page_no, per_page)
    base_year = settings.get("dashboard", {}).get("fiscal_base_year", 2026)
    st.caption(
        f"{len(filtered)} opportunities - Total {fiscal_year_label(base_year, 1)}: "
        f"{format_compact(fy_total, bn_digits=2, mn_digits=1)}"
        + (f" - {filters.active_count} filter(s) active" if filters.active_count else "")
    )

    rows = []
    for entry in page.items:
        missing = missing_fields(entry)
        rows.append(
            {
                "No": entry.no,
                "Account": entry.account_name,
                "Opportunity": entry.opportunity_name,
                "Stage": entry.stage,
                "AM": entry.am_name,
                "SE": entry.se_name,
                "Close Month": entry.close_month,
                "Contract Value": format_compact(entry.contract_value, bn_digits=2, mn_digits=1),
                "FY Plan": format_compact(entry.fy_total, bn_digits=2, mn_digits=1),
                "Complete": "yes" if not missing else "missing: " + ", ".join(missing),
            }
        )
    st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)
    st.caption(f"Showing {page.start}-{page.end} of {page.total_items} (page {page.page}/{max(1, page.total_pages)})")

    editable = [entry for entry in page.items if can_modify(entry, user_id, is_admin)]
    if not editable:
        return
    labels = {f"{e.no}. {e.account_name} - {e.opportunity_name}": e for e in editable}
    choice = st.selectbox("Edit or delete", ["-"] + list(labels.keys()), key="pipeline_pick")
    if choice != "-":
        entry = labels[choice]
        if st.button("Delete opportunity", key=f"del_{entry.id}"):
            _run_write(lambda: _store(profile).delete_entry(entry.id), "Opportunity deleted successfully")
        _render_pipeline_form(settings, user_id, profile, entry)


def _render_pipeline_form(settings: Dict, user_id: Optional[str], profile: str, entry: Optional[PipelineEntry] = None) -> None:
    key = f"pf_{entry.id}" if entry else "pf_new"
    form = PipelineForm.from_entry(entry) if entry else PipelineForm()
    base_year = settings.get("dashboard", {}).get("fiscal_base_year", 2026)

    st.markdown(f'<div class="pl-panel-title">{"Edit" if entry else "Add"} Opportunity</div>', unsafe_allow_html=True)
    c1, c2 = st.columns(2)
    with c1:
        form.account_name = st.text_input("Account Name", value=form.account_name, key=f"{key}_acc")
        form.stage = st.selectbox("Stage", STAGES, index=STAGES.index(form.stage) if form.stage in STAGES else 0,
                                  key=f"{key}_stage")
        family_options = [""] + PRODUCT_FAMILIES
        family = st.selectbox("Product Family", family_options,
                              index=family_options.index(form.product_family) if form.product_family in family_options else 0,
                              key=f"{key}_family")
        form.set_product_family(family)
        st.caption(f"Pilar: {form.pilar or '-'} - Tower: {form.tower or '-'}")
        form.am_name = st.text_input("AM Name", value=form.am_name, key=f"{key}_am")
    with c2:
        form.opportunity_name = st.text_input("Opportunity Name", value=form.opportunity_name, key=f"{key}_opp")
        form.se_name = st.text_input("SE Name", value=form.se_name, key=f"{key}_se")
        lob_options = [""] + PRESALES_LOBS
        form.presales_lob = st.selectbox("Presales LoB", lob_options,
                                         index=lob_options.index(form.presales_lob) if form.presales_lob in lob_options else 0,
                                         key=f"{key}_lob")
        form.telkom_si = st.selectbox("Telkom / SI", TELKOM_SI_OPTIONS,
                                      index=TELKOM_SI_OPTIONS.index(form.telkom_si) if form.telkom_si in TELKOM_SI_OPTIONS else 0,
                                      key=f"{key}_tsi")
        if form.telkom_si == "SI":
            form.si_name = st.text_input("SI Name", value=form.si_name, key=f"{key}_si")

    st.markdown('<div class="pl-panel-title">Contract</div>', unsafe_allow_html=True)
    c3, c4, c5 = st.columns(3)
    with c3:
        form.close_month = st.text_input("Close Month (YYYY-MM)", value=form.close_month, key=f"{key}_close")
    with c4:
        form.contract_period = st.selectbox(
            "Contract Period", CONTRACT_PERIODS,
            index=CONTRACT_PERIODS.index(form.contract_period) if form.contract_period in CONTRACT_PERIODS else 3,
            format_func=lambda p: "One-time only" if p == "OTC" else f"{p} months",
            key=f"{key}_period",
        )
    with c5:
        form.monthly_amount = amount_input("Monthly Amount", f"{key}_monthly")

    form.otc_entries = otc_editor(key)
    month_grid_editor(form, base_year, key)

    summaries = summarize_years(form.grid)
    summary_df = pd.DataFrame(
        [dict(year=fiscal_year_label(base_year, year + 1), **s.as_dict()) for year, s in enumerate(summaries)]
    )
    st.dataframe(summary_df, width="stretch", hide_index=True)
    st.metric("Contract Value", format_currency(form.contract_value))
    spill = form.fy_spillover()
    if spill.has_spillover:
        st.info(f"FY+1 spillover: {format_currency(spill.amount)} over {spill.months} month(s)")

    if st.button("Update" if entry else "Save", key=f"{key}_save"):
        errors = form.validate()
        if errors:
            for error in errors:
                st.error(error)
            return
        store = _store(profile)
        if entry:
            _run_write(lambda: store.update_entry(entry.id, form.to_entry()), "Opportunity updated successfully")
        else:
            _run_write(lambda: store.add_entry(form.to_entry(), user_id), "Opportunity added successfully")


def _render_dashboard(settings: Dict, user_id: Optional[str], is_admin: bool, profile: str, theme: str) -> None:
    entries = _load_entries(profile)
    try:
        lob_rows = _load_lob_rows(profile)
    except StoreError:
        lob_rows = []
    snapshot = build_snapshot(entries, settings, lob_rows=lob_rows)
    base_year = settings.get("dashboard", {}).get("fiscal_base_year", 2026)

    _render_stats(snapshot)
    _render_charts(snapshot, base_year, theme)
    st.markdown('<div class="pl-panel-title">Pipeline</div>', unsafe_allow_html=True)
    _render_pipeline_table(entries, settings, user_id, is_admin, profile)
    with st.expander("Add Opportunity"):
        _render_pipeline_form(settings, user_id, profile)


# ---------------------------------------------------------------------------
# Highlights and activity plans
# ---------------------------------------------------------------------------

def _render_highlights(settings: Dict, user_id: Optional[str], profile: str) -> None:
    items = _load_highlights(profile)
    c1, c2, c3, c4 = st.columns([3, 1, 1, 1])
    with c1:
        search = st.text_input("Search highlights")
    with c2:
        status = st.selectbox("Status", [ALL] + HIGHLIGHT_STATUSES)
    with c3:
        category = st.selectbox("Category", [ALL] + HIGHLIGHT_CATEGORIES)
    with c4:
        stage = st.selectbox("Stage", [ALL] + unique_values(items, "stage"))
    filtered = filter_highlights(items, search, status, category, stage)
    page_no = st.number_input("Page", min_value=1, value=1, step=1, key="hl_page")
    page = paginate(filtered, page_no, settings.get("pagination", {}).get("highlights", 10))
    st.dataframe(
        pd.DataFrame([
            {
                "Title": h.title, "Category": h.category, "Status": h.status, "Stage": h.stage,
                "Account": h.related_account, "Opportunity": h.related_opportunity,
                "Support Needed": h.support_needed, "Dept": h.dept_in_charge,
                "Potential Rev": format_compact(h.potential_rev or 0), "By": h.creator_name,
                "Date": h.highlight_date,
            }
            for h in page.items
        ]),
        width="stretch",
        hide_index=True,
    )
    st.caption(f"Showing {page.start}-{page.end} of {page.total_items}")

    with st.expander("Add Highlight"):
        entries = _load_entries(profile)
        if not entries:
            st.caption("Create a pipeline entry first.")
            return
        options = {f"{e.account_name} - {e.opportunity_name}": e for e in entries}
        with st.form("highlight_form"):
            title = st.text_input("Title")
            linked = st.selectbox("Pipeline Entry", list(options.keys()))
            category = st.selectbox("Category", HIGHLIGHT_CATEGORIES)
            status = st.selectbox("Status", HIGHLIGHT_STATUSES)
            highlight_date = st.date_input("Date", value=date.today())
            support_needed = st.text_area("Support Needed", max_chars=500)
            dept = st.selectbox("Dept in Charge", DEPT_IN_CHARGE_OPTIONS)
            submitted = st.form_submit_button("Save")
        if submitted:
            if not title.strip() or not support_needed.strip():
                st.error("Title and support needed are required")
                return
            entry = options[linked]
            highlight = Highlight(
                title=title.strip(), category=category, status=status,
                highlight_date=highlight_date.isoformat(), support_needed=support_needed.strip(),
                dept_in_charge=dept, pipeline_entry_id=entry.id, related_account=entry.account_name,
                related_opportunity=entry.opportunity_name, stage=entry.stage, se_name=entry.se_name,
                presales_lob=entry.presales_lob, potential_rev=entry.contract_value,
            )
            _run_write(lambda: _store(profile).add_highlight(highlight, user_id), "Highlight added")


def _render_activities(settings: Dict, user_id: Optional[str], profile: str) -> None:
    items = _load_activities(profile)
    c1, c2 = st.columns([3, 1])
    with c1:
        search = st.text_input("Search activities")
    with c2:
        close_month = st.selectbox("Est. Close Month", [ALL] + unique_values(items, "est_close_month"))
    filtered = filter_activities(items, search, close_month)
    page_no = st.number_input("Page", min_value=1, value=1, step=1, key="act_page")
    page = paginate(filtered, page_no, settings.get("pagination", {}).get("activities", 10))
    st.dataframe(
        pd.DataFrame([
            {
                "Date": a.activity_date, "SE": a.se_name, "Account": a.account_name,
                "Opportunity": a.opportunity_name, "AM": a.am_name, "Agenda": a.agenda,
                "Contract Value": format_compact(a.contract_value), "Next Action": a.next_action,
            }
            for a in page.items
        ]),
        width="stretch",
        hide_index=True,
    )
    st.caption(f"Showing {page.start}-{page.end} of {page.total_items}")

    with st.expander("Add Activity"):
        with st.form("activity_form"):
            se_name = st.text_input("SE Name")
            account_name = st.text_input("Account")
            opportunity_name = st.text_input("Opportunity")
            activity_date = st.date_input("Activity Date", value=date.today())
            am_name = st.text_input("AM Name")
            agenda = st.text_area("Agenda")
            solution_offer = st.text_input("Solution Offer")
            contract_value = st.number_input("Contract Value", min_value=0, step=1_000_000)
            est_close_month = st.text_input("Est. Close Month (YYYY-MM)")
            output = st.text_area("Output")
            next_action = st.text_area("Next Action")
            submitted = st.form_submit_button("Save")
        if submitted:
            activity = ActivityPlan(
                se_name=se_name, account_name=account_name or None, opportunity_name=opportunity_name or None,
                activity_date=activity_date.isoformat(), am_name=am_name or None, agenda=agenda or None,
                solution_offer=solution_offer or None, contract_value=int(contract_value),
                est_close_month=est_close_month or None, output=output or None, next_action=next_action or None,
            )
            _run_write(lambda: _store(profile).add_activity(activity, user_id), "Activity plan added")


def main() -> None:
    sections = ["Dashboard", "Highlight", "Activity Plan"]
    qp_section = _qp_value("section", "dashboard").strip().lower()
    initial_section = next((item for item in sections if item.lower() == qp_section), "Dashboard")

    with st.sidebar:
        st.markdown("## Sales Pipeline")
        section = st.radio("Navigation", sections, index=sections.index(initial_section))
        dark_mode = st.toggle("Dark mode", value=False)
        profile = st.text_input("Settings profile", value="base")
        user_id = st.session_state.get("user_id") or st.text_input("User ID") or None
        if st.button("Refresh data"):
            _reload()

    theme = "dark" if dark_mode else "light"
    st.query_params["section"] = section.lower()
    _apply_theme(theme)

    try:
        settings = load_settings(profile)
    except OSError as exc:
        st.error(f"Failed to load settings profile {profile}: {exc}")
        return
    errors = validate_settings(settings)
    if errors:
        st.error("Settings are invalid.")
        for err in errors:
            st.write(f"- {err}")
        return

    try:
        store = _store(profile)
        is_admin = store.is_admin(user_id)
        if section == "Dashboard":
            _render_dashboard(settings, user_id, is_admin, profile, theme)
        elif section == "Highlight":
            _render_highlights(settings, user_id, profile)
        else:
            _render_activities(settings, user_id, profile)
    except StoreError as exc:
        st.error(f"Could not load data from Supabase: {exc}")
    except RuntimeError as exc:
        st.error(str(exc))
        if not supabase_credentials(settings)["url"]:
            st.info("Set SUPABASE_URL and SUPABASE_KEY in the environment or Streamlit secrets.")


if __name__ == "__main__":
    main()

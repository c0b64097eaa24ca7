"""
Streamlit widgets for the allocator inputs of the pipeline form.

Widget state lives in st.session_state under keys derived from the form
key, so it survives reruns:
- {key}_otc: list of OTC rows, each with a stable "id"
- {key}_grid / {key}_value: last 60-slot plan and contract value
"""

from __future__ import annotations

import uuid
from typing import List

import streamlit as st

from revplan.allocation import OneTimeCharge
from revplan.form import PipelineForm
from revplan.formatting import format_number, parse_formatted_number
from revplan.months import MONTH_LABELS, MONTHS_PER_YEAR, YEARS, field_name, fiscal_year_label, slot_for


def amount_input(label: str, key: str, initial: int = 0, **kwargs) -> int:
    """Text box showing "1.500.000"; returns the parsed amount."""
    st.session_state.setdefault(key, format_number(initial))
    return parse_formatted_number(st.text_input(label, key=key, placeholder="0", **kwargs))


def otc_editor(key: str) -> List[OneTimeCharge]:
    """Add/remove list of one-time charges."""
    otc_key = f"{key}_otc"
    items = st.session_state.setdefault(otc_key, [])
    if st.button("Add OTC", key=f"{otc_key}_add"):
        items.append({"id": uuid.uuid4().hex, "close_month": "", "amount": 0})

    for position, item in enumerate(list(items), start=1):
        item_key = f"{otc_key}_{item['id']}"
        st.caption(f"OTC #{position}")
        c1, c2, c3 = st.columns([2, 2, 1])
        with c1:
            st.session_state.setdefault(f"{item_key}_m", item["close_month"])
            item["close_month"] = st.text_input(
                "Month", key=f"{item_key}_m", placeholder="YYYY-MM", label_visibility="collapsed"
            )
        with c2:
            item["amount"] = amount_input("Amount", f"{item_key}_a", item["amount"], label_visibility="collapsed")
        with c3:
            if st.button("Remove", key=f"{item_key}_rm"):
                items.remove(item)
                st.rerun()

    return [OneTimeCharge(close_month=item["close_month"], amount=item["amount"]) for item in items]


def month_grid_editor(form: PipelineForm, base_year: int, key: str) -> None:
    """
    Five plan years as tabs, all rendered on every run.

    While OTC or recurring inputs drive the plan the cells are read-only
    and the grid is re-spread; otherwise each cell is a manual input.
    """
    grid_key = f"{key}_grid"
    value_key = f"{key}_value"
    if form.spread_active:
        form.recalculate()
    elif grid_key in st.session_state:
        form.grid = list(st.session_state[grid_key])
        form.contract_value = st.session_state[value_key]

    tabs = st.tabs([fiscal_year_label(base_year, year) for year in range(1, YEARS + 1)])
    for year, tab in enumerate(tabs, start=1):
        with tab:
            cols = st.columns(6)
            for month in range(1, MONTHS_PER_YEAR + 1):
                slot = slot_for(year, month)
                label = MONTH_LABELS[month - 1]
                with cols[(month - 1) % 6]:
                    if form.spread_active:
                        st.markdown(f"**{label}**  \n{format_number(form.grid[slot]) or '-'}")
                    else:
                        amount = amount_input(label, f"{key}_{field_name(slot)}", form.grid[slot])
                        form.set_month(slot, amount)

    st.session_state[grid_key] = list(form.grid)
    st.session_state[value_key] = form.contract_value

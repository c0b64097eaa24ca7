# =============================================================================
# REVPLAN - DASHBOARD DATA AND TABLE TESTS
# =============================================================================

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from revplan.catalog import PILARS, STAGES
from revplan.entries import ActivityPlan, Highlight
from ui.dashboard_data import (
    build_snapshot,
    compute_stats,
    distribution,
    lob_frame,
    monthly_revenue,
    quarterly_table,
    stage_totals,
)
from ui.tables import (
    ALL,
    PipelineFilters,
    filter_activities,
    filter_entries,
    filter_highlights,
    paginate,
    unique_values,
)


# =============================================================================
# DASHBOARD AGGREGATES
# =============================================================================

class TestStats:
    """Stat cards use year-1 plan totals."""

    def test_totals(self, pipeline_entries):
        stats = compute_stats(pipeline_entries, fy_target=300_000_000_000)
        assert stats.total_pipeline == 16_500_000
        assert stats.opportunity_count == 3
        assert stats.closed_won == 12_000_000
        assert stats.closed_won_count == 1
        assert stats.in_progress == 4_000_000
        assert stats.in_progress_count == 1
        assert stats.target_achievement_pct == pytest.approx(0.004)

    def test_zero_target(self, pipeline_entries):
        assert compute_stats(pipeline_entries, 0).target_achievement_pct == 0.0

    def test_empty(self):
        stats = compute_stats([], 100)
        assert stats.total_pipeline == 0
        assert stats.opportunity_count == 0


class TestCharts:
    def test_stage_totals_cover_every_stage(self, pipeline_entries):
        frame = stage_totals(pipeline_entries)
        assert list(frame["stage"]) == STAGES
        won = frame[frame["stage"] == "Closed Won"].iloc[0]
        assert won["total"] == 12_000_000
        assert int(frame["count"].sum()) == 3

    def test_monthly_revenue(self, pipeline_entries):
        frame = monthly_revenue(pipeline_entries, 4_000_000_000)
        assert len(frame) == 12
        assert frame.loc[0, "revenue"] == 1_000_000
        assert frame.loc[2, "revenue"] == 1_500_000
        assert frame.loc[10, "revenue"] == 3_000_000
        assert (frame["target"] == 4_000_000_000).all()

    def test_distribution_by_pilar(self, pipeline_entries):
        frame = distribution(pipeline_entries, "pilar", PILARS)
        assert len(frame) == len(PILARS)
        assert frame.loc[0, "name"] == "IoT Industrial"
        assert frame.loc[0, "value"] == 48_000_000
        assert frame["share_pct"].sum() == pytest.approx(1.0)

    def test_distribution_without_categories(self, pipeline_entries):
        frame = distribution(pipeline_entries, "se_name")
        assert set(frame["name"]) == {"Rina", "Andi"}
        assert frame[frame["name"] == "Rina"].iloc[0]["count"] == 2

    def test_distribution_empty(self):
        frame = distribution([], "pilar")
        assert frame.empty
        assert list(frame.columns) == ["name", "value", "count", "share_pct"]

    def test_lob_frame(self):
        frame = lob_frame([
            {"name": "A", "value": 1.0, "count": 1},
            {"name": "B", "value": 3.0, "count": 2},
        ])
        assert list(frame["name"]) == ["B", "A"]
        assert frame.loc[0, "share_pct"] == pytest.approx(0.75)

    def test_quarterly_table(self, pipeline_entries):
        frame = quarterly_table(pipeline_entries)
        first = frame.iloc[0]
        assert first["q1"] == 3_000_000
        assert first["fy"] == 12_000_000
        assert frame.iloc[1]["q4"] == 4_000_000

    def test_snapshot_prefers_rpc_lob_rows(self, pipeline_entries, base_settings):
        rows = [{"name": "Only", "value": 5.0, "count": 9}]
        snapshot = build_snapshot(pipeline_entries, base_settings, lob_rows=rows)
        assert list(snapshot.by_lob["name"]) == ["Only"]
        fallback = build_snapshot(pipeline_entries, base_settings)
        assert len(fallback.by_lob) == 3
        assert fallback.stats.closed_won == 12_000_000


# =============================================================================
# TABLE FILTERS AND PAGINATION
# =============================================================================

class TestPipelineFilters:
    def test_search(self, pipeline_entries):
        result = filter_entries(pipeline_entries, PipelineFilters(search="  PERTA "))
        assert [entry.id for entry in result] == ["e2"]

    def test_search_matches_people(self, pipeline_entries):
        result = filter_entries(pipeline_entries, PipelineFilters(search="rina"))
        assert [entry.id for entry in result] == ["e1", "e3"]

    def test_dropdowns_combine(self, pipeline_entries):
        filters = PipelineFilters(se_name="Rina", stage="Closed Lost")
        assert [entry.id for entry in filter_entries(pipeline_entries, filters)] == ["e3"]
        assert filters.active_count == 2

    def test_cleared(self):
        filters = PipelineFilters(search="x", pilar="IoT Industrial")
        assert filters.active_count == 1
        assert filters.cleared() == PipelineFilters()

    def test_unique_values(self, pipeline_entries):
        assert unique_values(pipeline_entries, "am_name") == ["Budi", "Sari"]


class TestOtherFilters:
    def test_activities(self):
        items = [
            ActivityPlan(se_name="Rina", agenda="Demo fleet", est_close_month="2026-02"),
            ActivityPlan(se_name="Andi", agenda="Kickoff", est_close_month="2026-03"),
        ]
        assert len(filter_activities(items, "fleet")) == 1
        assert len(filter_activities(items, close_month="2026-03")) == 1
        assert len(filter_activities(items)) == 2

    def test_highlights(self):
        items = [
            Highlight(title="Need PoC device", status="On Progress", category="High", stage="PoC"),
            Highlight(title="Signed", status="Complate", category="Low", stage="Closed Won"),
        ]
        assert len(filter_highlights(items, status="Complate")) == 1
        assert len(filter_highlights(items, search="poc", category="High")) == 1
        assert filter_highlights(items, stage="Proposal") == []
        assert len(filter_highlights(items, status=ALL)) == 2


class TestPaginate:
    def test_pages(self):
        page = paginate(list(range(32)), 3, 15)
        assert page.items == [30, 31]
        assert page.total_pages == 3
        assert (page.start, page.end) == (31, 32)

    def test_page_clamped(self):
        assert paginate(list(range(5)), 9, 2).page == 3
        assert paginate(list(range(5)), 0, 2).page == 1

    def test_empty(self):
        page = paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 0
        assert (page.start, page.end) == (0, 0)

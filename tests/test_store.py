# =============================================================================
# REVPLAN - SUPABASE STORE TESTS
# =============================================================================

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import FakeSupabase, api_error

import revplan.store as store_module
from revplan.entries import ActivityPlan, Highlight, PipelineEntry
from revplan.store import PipelineStore, StoreError, can_modify, get_supabase_client


class TestListAndWrite:
    def test_list_entries(self, pipeline_rows, base_settings):
        client = FakeSupabase(data={"pipeline_entries": pipeline_rows})
        entries = PipelineStore(client, base_settings).list_entries()
        assert [entry.no for entry in entries] == [1, 2, 3]
        table, calls = client.executed[0]
        assert table == "pipeline_entries"
        assert ("order", ("created_at",), {"desc": True}) in calls

    def test_empty_result(self, base_settings):
        assert PipelineStore(FakeSupabase(), base_settings).list_entries() == []

    def test_add_entry_requires_user(self, base_settings):
        with pytest.raises(StoreError, match="Not authenticated"):
            PipelineStore(FakeSupabase(), base_settings).add_entry(PipelineEntry(), None)

    def test_add_entry_inserts_row(self, base_settings):
        client = FakeSupabase()
        PipelineStore(client, base_settings).add_entry(PipelineEntry(account_name="A"), "u1")
        _, calls = client.executed[0]
        name, args, _ = calls[0]
        assert name == "insert"
        assert args[0]["user_id"] == "u1"
        assert "jan_plan_y2" not in args[0]

    def test_extended_columns_setting(self, base_settings):
        base_settings["supabase"]["extended_plan_columns"] = True
        client = FakeSupabase()
        PipelineStore(client, base_settings).add_entry(PipelineEntry(), "u1")
        row = client.executed[0][1][0][1][0]
        assert "dec_plan_y5" in row

    def test_update_keeps_owner(self, base_settings):
        client = FakeSupabase()
        PipelineStore(client, base_settings).update_entry("e1", PipelineEntry(user_id="u1"))
        calls = client.executed[0][1]
        assert "user_id" not in calls[0][1][0]
        assert calls[1] == ("eq", ("id", "e1"), {})

    def test_delete(self, base_settings):
        client = FakeSupabase()
        PipelineStore(client, base_settings).delete_highlight("h1")
        table, calls = client.executed[0]
        assert table == "highlights"
        assert [call[0] for call in calls] == ["delete", "eq"]

    def test_add_highlight_sets_creator(self, base_settings):
        client = FakeSupabase()
        PipelineStore(client, base_settings).add_highlight(Highlight(title="t"), "u7")
        row = client.executed[0][1][0][1][0]
        assert row["created_by"] == "u7"

    def test_add_activity_sets_owner(self, base_settings):
        client = FakeSupabase()
        PipelineStore(client, base_settings).add_activity(ActivityPlan(se_name="Rina"), "u7")
        table, calls = client.executed[0]
        assert table == "activity_plans"
        assert calls[0][1][0]["user_id"] == "u7"

    def test_api_error_wrapped(self, base_settings):
        client = FakeSupabase(errors={"pipeline_entries": api_error("permission denied")})
        with pytest.raises(StoreError, match="list pipeline entries failed"):
            PipelineStore(client, base_settings).list_entries()

    def test_custom_table_names(self, base_settings):
        base_settings["supabase"]["tables"]["highlights"] = "team_highlights"
        client = FakeSupabase(data={"team_highlights": [{"title": "x"}]})
        highlights = PipelineStore(client, base_settings).list_highlights()
        assert highlights[0].creator_name == "Unknown"


class TestRoles:
    def test_admin(self, base_settings):
        client = FakeSupabase(data={"user_roles": {"role": "admin"}})
        store = PipelineStore(client, base_settings)
        assert store.user_role("u1") == "admin"
        assert store.is_admin("u1")

    def test_lookup_failure_defaults_to_user(self, base_settings):
        client = FakeSupabase(errors={"user_roles": api_error("no rows", "PGRST116")})
        assert PipelineStore(client, base_settings).user_role("u1") == "user"

    def test_no_user(self, base_settings):
        store = PipelineStore(FakeSupabase(), base_settings)
        assert store.user_role(None) is None
        assert not store.is_admin(None)

    def test_can_modify(self):
        entry = PipelineEntry(user_id="u1")
        assert can_modify(entry, "u1", False)
        assert not can_modify(entry, "u2", False)
        assert can_modify(entry, "u2", True)
        assert not can_modify(entry, None, False)


class TestLobDistribution:
    def test_maps_rpc_rows(self, base_settings):
        client = FakeSupabase(data={"rpc:get_lob_distribution": [
            {"lob_name": "Resource & Energy", "total_value": "1500", "entry_count": 2},
        ]})
        rows = PipelineStore(client, base_settings).lob_distribution()
        assert rows == [{"name": "Resource & Energy", "value": 1500.0, "count": 2}]

    def test_rpc_failure_returns_empty(self, base_settings):
        client = FakeSupabase(errors={"rpc:get_lob_distribution": api_error()})
        assert PipelineStore(client, base_settings).lob_distribution() == []


class TestClient:
    def test_missing_credentials(self, monkeypatch, base_settings):
        monkeypatch.setattr(store_module, "_supabase_client", None)
        monkeypatch.delenv("REVPLAN_TEST_URL", raising=False)
        monkeypatch.delenv("REVPLAN_TEST_KEY", raising=False)
        with pytest.raises(RuntimeError, match="Supabase URL/KEY not found"):
            get_supabase_client(base_settings)

    def test_singleton(self, monkeypatch, base_settings):
        created = []
        monkeypatch.setattr(store_module, "_supabase_client", None)
        monkeypatch.setattr(store_module, "create_client", lambda url, key: created.append((url, key)) or object())
        monkeypatch.setenv("REVPLAN_TEST_URL", "http://localhost")
        monkeypatch.setenv("REVPLAN_TEST_KEY", "anon")
        first = get_supabase_client(base_settings)
        assert get_supabase_client(base_settings) is first
        assert created == [("http://localhost", "anon")]

# =============================================================================
# REVPLAN - PYTEST CONFIGURATION
# =============================================================================
# Shared fixtures: sample pipeline rows, a settings directory and an
# in-memory stand-in for the Supabase client.
# =============================================================================

import pytest
import sys
import os
from pathlib import Path

from postgrest.exceptions import APIError

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def settings_dir(project_root):
    """Get settings directory."""
    return project_root / "settings"


@pytest.fixture
def base_settings():
    """Minimal valid settings."""
    return {
        "dashboard": {
            "fiscal_base_year": 2026,
            "fy_target": 300_000_000_000,
            "monthly_target": 4_000_000_000,
        },
        "pagination": {"pipeline": 15, "highlights": 10, "activities": 10},
        "supabase": {
            "url_env": "REVPLAN_TEST_URL",
            "key_env": "REVPLAN_TEST_KEY",
            "extended_plan_columns": False,
            "lob_rpc": "get_lob_distribution",
            "tables": {
                "pipeline_entries": "pipeline_entries",
                "activity_plans": "activity_plans",
                "highlights": "highlights",
                "user_roles": "user_roles",
            },
        },
    }


def _plan(values):
    """Year-1 plan columns from a 12-value list."""
    keys = ["jan", "feb", "mar", "apr", "may", "jun",
            "jul", "aug", "sep", "oct", "nov", "dec"]
    return {f"{key}_plan": value for key, value in zip(keys, values)}


@pytest.fixture
def pipeline_rows():
    """Three rows as returned by the pipeline_entries table."""
    won = {
        "id": "e1",
        "user_id": "u1",
        "account_name": "Bank Mandiri",
        "opportunity_name": "Fleet rollout",
        "stage": "Closed Won",
        "product_family": "Fleet Sense",
        "pilar": "Fleet Management",
        "tower": "EPINI",
        "se_name": "Rina",
        "presales_lob": "Financial Institutions",
        "am_name": "Budi",
        "close_month": "2026-01",
        "contract_period": 12,
        "contract_value": "12000000",
        "telkom_si": "Telkom",
    }
    won.update(_plan([1_000_000] * 12))

    proposal = {
        "id": "e2",
        "user_id": "u2",
        "account_name": "Pertamina",
        "opportunity_name": "Smart meters",
        "stage": "Proposal",
        "product_family": "Smart Meter",
        "pilar": "IoT Industrial",
        "tower": "EPINI",
        "se_name": "Andi",
        "presales_lob": "Resource & Energy",
        "am_name": "Sari",
        "close_month": "2026-11",
        "contract_period": 24,
        "contract_value": 48_000_000.0,
        "telkom_si": "SI",
        "si_name": "Mitra",
    }
    proposal.update(_plan([0] * 10 + [2_000_000, 2_000_000]))

    lost = {
        "id": "e3",
        "user_id": "u1",
        "account_name": "Garuda",
        "opportunity_name": "MDM",
        "stage": "Closed Lost",
        "product_family": "Mobile Device Management (MDM)",
        "pilar": "Mobile Security & Emerging",
        "tower": "ESEM",
        "se_name": "Rina",
        "presales_lob": "ICT, Retail & Business Services",
        "am_name": "Budi",
        "close_month": "2026-03",
        "contract_period": None,
        "contract_value": 500_000,
        "telkom_si": "Telkom",
    }
    lost.update(_plan([0, 0, 500_000] + [0] * 9))
    return [won, proposal, lost]


@pytest.fixture
def pipeline_entries(pipeline_rows):
    from revplan.entries import entry_from_row
    return [entry_from_row(row, index) for index, row in enumerate(pipeline_rows)]


# =============================================================================
# FAKE SUPABASE CLIENT
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query recording every call; execute() returns canned data."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        if name in ("select", "order", "eq", "insert", "update", "delete", "single"):
            def method(*args, **kwargs):
                self.calls.append((name, args, kwargs))
                return self
            return method
        raise AttributeError(name)

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        error = self.client.errors.get(self.table)
        if error is not None:
            raise error
        return FakeResponse(self.client.data.get(self.table))


class FakeSupabase:
    def __init__(self, data=None, errors=None):
        self.data = data or {}
        self.errors = errors or {}
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeQuery(self, f"rpc:{name}")


def api_error(message="boom", code="42501"):
    return APIError({"message": message, "code": code, "details": None, "hint": None})


@pytest.fixture
def fake_client():
    return FakeSupabase()

"""
Supabase persistence for pipeline entries, activity plans and highlights.

Row-level security is enforced by the database; this module only maps
entities to rows and back. Realtime change feeds are not consumed here:
callers reload explicitly after a write.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from .catalog import ROLE_ADMIN, ROLE_USER
from .entries import (
    ActivityPlan,
    Highlight,
    PipelineEntry,
    activity_from_row,
    activity_to_row,
    entry_from_row,
    entry_to_row,
    highlight_from_row,
    highlight_to_row,
)
from .settings import supabase_credentials

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


class StoreError(RuntimeError):
    """A Supabase request failed."""


def get_supabase_client(settings: Dict) -> Client:
    """
    Returns a singleton Supabase client.

    Credentials come from the environment variables named in settings.
    """
    global _supabase_client
    if _supabase_client is not None:
        return _supabase_client

    credentials = supabase_credentials(settings)
    if not credentials["url"] or not credentials["key"]:
        raise RuntimeError("Supabase URL/KEY not found. Check environment or Streamlit secrets.")

    _supabase_client = create_client(credentials["url"], credentials["key"])
    return _supabase_client


def can_modify(entry: PipelineEntry, user_id: Optional[str], is_admin: bool) -> bool:
    """Admins modify everything, users only their own entries."""
    return is_admin or (user_id is not None and entry.user_id == user_id)


class PipelineStore:
    """CRUD wrapper over the pipeline tables."""

    def __init__(self, client: Client, settings: Optional[Dict] = None):
        settings = settings or {}
        supabase = settings.get("supabase", {})
        self.client = client
        self.tables: Dict[str, str] = {
            "pipeline_entries": "pipeline_entries",
            "activity_plans": "activity_plans",
            "highlights": "highlights",
            "user_roles": "user_roles",
        }
        self.tables.update(supabase.get("tables", {}))
        self.extended_plan_columns = bool(supabase.get("extended_plan_columns", False))
        self.lob_rpc = supabase.get("lob_rpc", "get_lob_distribution")

    def _execute(self, action: str, query) -> List[Dict[str, Any]]:
        try:
            response = query.execute()
        except APIError as exc:
            logger.error("Supabase %s failed: %s", action, exc)
            raise StoreError(f"{action} failed: {exc}") from exc
        return response.data or []

    def _table(self, key: str):
        return self.client.table(self.tables[key])

    # ------------------------------------------------------------------
    # Pipeline entries
    # ------------------------------------------------------------------

    def list_entries(self) -> List[PipelineEntry]:
        rows = self._execute(
            "list pipeline entries",
            self._table("pipeline_entries").select("*").order("created_at", desc=True),
        )
        logger.debug("Loaded %d pipeline entries", len(rows))
        return [entry_from_row(row, index) for index, row in enumerate(rows)]

    def add_entry(self, entry: PipelineEntry, user_id: str) -> None:
        if not user_id:
            raise StoreError("Not authenticated")
        row = entry_to_row(entry, user_id=user_id, include_extended_years=self.extended_plan_columns)
        self._execute("add pipeline entry", self._table("pipeline_entries").insert(row))
        logger.info("Added pipeline entry %r", entry.opportunity_name)

    def update_entry(self, entry_id: str, entry: PipelineEntry) -> None:
        row = entry_to_row(entry, include_extended_years=self.extended_plan_columns)
        # ownership never changes on update
        row.pop("user_id", None)
        self._execute(
            "update pipeline entry",
            self._table("pipeline_entries").update(row).eq("id", entry_id),
        )
        logger.info("Updated pipeline entry %s", entry_id)

    def delete_entry(self, entry_id: str) -> None:
        self._execute(
            "delete pipeline entry",
            self._table("pipeline_entries").delete().eq("id", entry_id),
        )
        logger.info("Deleted pipeline entry %s", entry_id)

    # ------------------------------------------------------------------
    # Activity plans
    # ------------------------------------------------------------------

    def list_activities(self) -> List[ActivityPlan]:
        rows = self._execute(
            "list activity plans",
            self._table("activity_plans").select("*").order("activity_date", desc=True),
        )
        return [activity_from_row(row) for row in rows]

    def add_activity(self, activity: ActivityPlan, user_id: str) -> None:
        if not user_id:
            raise StoreError("Not authenticated")
        row = activity_to_row(activity)
        row["user_id"] = user_id
        self._execute("add activity plan", self._table("activity_plans").insert(row))

    def update_activity(self, activity_id: str, activity: ActivityPlan) -> None:
        row = activity_to_row(activity)
        row.pop("user_id", None)
        self._execute(
            "update activity plan",
            self._table("activity_plans").update(row).eq("id", activity_id),
        )

    def delete_activity(self, activity_id: str) -> None:
        self._execute(
            "delete activity plan",
            self._table("activity_plans").delete().eq("id", activity_id),
        )

    # ------------------------------------------------------------------
    # Highlights
    # ------------------------------------------------------------------

    def list_highlights(self) -> List[Highlight]:
        rows = self._execute(
            "list highlights",
            self._table("highlights").select("*").order("highlight_date", desc=True),
        )
        return [highlight_from_row(row) for row in rows]

    def add_highlight(self, highlight: Highlight, user_id: str) -> None:
        if not user_id:
            raise StoreError("Not authenticated")
        row = highlight_to_row(highlight)
        row["created_by"] = user_id
        self._execute("add highlight", self._table("highlights").insert(row))

    def update_highlight(self, highlight_id: str, highlight: Highlight) -> None:
        row = highlight_to_row(highlight)
        row.pop("created_by", None)
        self._execute(
            "update highlight",
            self._table("highlights").update(row).eq("id", highlight_id),
        )

    def delete_highlight(self, highlight_id: str) -> None:
        self._execute(
            "delete highlight",
            self._table("highlights").delete().eq("id", highlight_id),
        )

    # ------------------------------------------------------------------
    # Roles and aggregates
    # ------------------------------------------------------------------

    def user_role(self, user_id: Optional[str]) -> Optional[str]:
        """Role of a user; "user" when the lookup fails."""
        if not user_id:
            return None
        try:
            response = (
                self._table("user_roles")
                .select("role")
                .eq("user_id", user_id)
                .single()
                .execute()
            )
        except APIError as exc:
            logger.warning("Role lookup failed for %s: %s", user_id, exc)
            return ROLE_USER
        data = response.data or {}
        return data.get("role") or ROLE_USER

    def is_admin(self, user_id: Optional[str]) -> bool:
        return self.user_role(user_id) == ROLE_ADMIN

    def lob_distribution(self) -> List[Dict[str, Any]]:
        """Contract value and count per presales LoB (server-side RPC)."""
        try:
            response = self.client.rpc(self.lob_rpc).execute()
        except APIError as exc:
            logger.warning("LoB distribution RPC failed: %s", exc)
            return []
        return [
            {
                "name": item.get("lob_name", ""),
                "value": float(item.get("total_value") or 0),
                "count": int(item.get("entry_count") or 0),
            }
            for item in (response.data or [])
        ]

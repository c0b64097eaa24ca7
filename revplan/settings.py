"""Settings loading and validation utilities."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Dict, List

import yaml

DEFAULT_SETTINGS_DIR = Path(__file__).resolve().parent.parent / "settings"

REQUIRED_TABLES = ["pipeline_entries", "activity_plans", "highlights", "user_roles"]


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base; lists are replaced, not merged."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file and return an object (empty dict for empty files)."""
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(profile: str = "base", settings_dir: Path = DEFAULT_SETTINGS_DIR) -> dict:
    """Load base settings and merge the profile override if present."""
    settings_dir = Path(settings_dir)
    base = load_yaml_file(settings_dir / "base.yaml")
    if profile == "base":
        return base

    override_path = settings_dir / f"{profile}.yaml"
    if override_path.exists():
        return deep_merge(base, load_yaml_file(override_path))
    return base


def supabase_credentials(settings: Dict) -> Dict[str, str]:
    """
    Supabase URL/key: environment variables first, then settings.

    Keys live in the environment (or Streamlit secrets); the YAML only
    names which variables to read.
    """
    supabase = settings.get("supabase", {})
    url_env = supabase.get("url_env", "SUPABASE_URL")
    key_env = supabase.get("key_env", "SUPABASE_KEY")
    return {
        "url": os.getenv(url_env) or supabase.get("url", ""),
        "key": os.getenv(key_env) or supabase.get("key", ""),
    }


def validate_settings(settings: Dict) -> List[str]:
    """Validate settings structure and key constraints."""
    errors: List[str] = []

    required = ["dashboard", "pagination", "supabase"]
    for section in required:
        if section not in settings:
            errors.append(f"Missing required section: {section}")

    dashboard = settings.get("dashboard", {})
    base_year = dashboard.get("fiscal_base_year")
    if base_year is not None and (not isinstance(base_year, int) or base_year < 2000):
        errors.append(f"fiscal_base_year invalid: {base_year}")

    for key in ["fy_target", "monthly_target"]:
        value = dashboard.get(key, 0)
        if not isinstance(value, (int, float)) or value < 0:
            errors.append(f"{key} must be a non-negative number: {value}")

    for page, per_page in settings.get("pagination", {}).items():
        if not isinstance(per_page, int) or per_page < 1:
            errors.append(f"pagination.{page} must be a positive integer: {per_page}")

    tables = settings.get("supabase", {}).get("tables", {})
    for table in REQUIRED_TABLES:
        if not tables.get(table):
            errors.append(f"supabase.tables.{table} is not configured")

    return errors

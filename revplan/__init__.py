# =============================================================================
# REVPLAN - SALES PIPELINE REVENUE PLANNER
# =============================================================================
# This package contains the revenue plan engine and the pipeline domain model.
#
# Modules:
# - months: Year-month parsing and the 60-slot (5 year) grid layout
# - allocation: Grid allocator (OTC + recurring auto-spread)
# - summary: Quarterly / half-year / fiscal-year reducer
# - spillover: FY spillover calculator
# - formatting: IDR number formatting and parsing
# - catalog: Stages, product families and other reference lists
# - settings: YAML settings loading and validation
# - entries: Pipeline entries, activity plans, highlights and row mapping
# - form: Pipeline entry form state
# - store: Supabase persistence wrapper
# =============================================================================

__version__ = "0.1.0"

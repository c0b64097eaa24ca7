# =============================================================================
# REVPLAN - GRID ALLOCATOR
# =============================================================================
# Auto-spreads one-time charges (OTC) and a recurring monthly amount across
# the 60-month (5 year) revenue plan of a pipeline entry.
#
# EXECUTION ORDER:
# 1. Grid reset (60 zero slots)
# 2. OTC application (year 1 only, one slot per entry)
# 3. Recurring spread (start month, min(period, 60) consecutive months)
#
# FORMULA:
# year_offset, month_in_year = divmod(start + i, 12)
# grid[slot_for(year_offset + 1, month_in_year + 1)] += monthly_amount
# for i in 0 .. min(period, 60) - 1, dropped when year_offset >= 5
#
# The allocator never raises: malformed inputs contribute nothing.
# =============================================================================

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .months import FIELD_NAMES, GRID_SIZE, MONTHS_PER_YEAR, YEARS, field_name, month_index, slot_for

ONE_TIME_PERIOD = "OTC"
CONTRACT_PERIODS = ["3", "6", "9", "12", "24", "36", "48", "60", ONE_TIME_PERIOD]
DEFAULT_PERIOD = 12

ContractPeriod = Union[int, str]
RevenueGrid = List[int]


@dataclass
class OneTimeCharge:
    """One-time charge booked into a single month of year 1."""
    close_month: str = ""  # "YYYY-MM"
    amount: int = 0


@dataclass
class RecurringContract:
    """Recurring contract parameters driving the monthly spread."""
    start_month: str = ""  # "YYYY-MM" or empty
    monthly_amount: int = 0
    period: Optional[ContractPeriod] = DEFAULT_PERIOD  # months or "OTC"


def as_amount(value) -> int:
    """Coerce a form value to a whole currency amount (0 when invalid)."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def resolve_period(period: Optional[ContractPeriod]) -> int:
    """
    Resolve a contract period to a month count.

    "OTC" collapses to a single month. Missing, unparseable or
    non-positive periods fall back to 12.
    """
    if isinstance(period, str) and period.strip().upper() == ONE_TIME_PERIOD:
        return 1
    try:
        months = int(period)
    except (TypeError, ValueError):
        return DEFAULT_PERIOD
    return months if months > 0 else DEFAULT_PERIOD


def empty_grid() -> RevenueGrid:
    return [0] * GRID_SIZE


def apply_one_time_charges(grid: RevenueGrid, entries: Iterable[OneTimeCharge]) -> RevenueGrid:
    """
    Add each OTC amount into its month of year 1.

    Entries without a month, with a non-positive amount or with a month
    index outside [0, 11] are ignored. Same-month entries accumulate.
    """
    for otc in entries or []:
        amount = as_amount(otc.amount)
        if not otc.close_month or amount <= 0:
            continue
        index = month_index(otc.close_month)
        if index is None or index < 0 or index >= MONTHS_PER_YEAR:
            continue
        grid[slot_for(1, index + 1)] += amount
    return grid


def apply_recurring(grid: RevenueGrid, contract: Optional[RecurringContract]) -> RevenueGrid:
    """
    Spread the monthly amount from the start month over the contract period.

    Contributions past the 5-year horizon are dropped.
    """
    if contract is None or not contract.start_month:
        return grid
    monthly_amount = as_amount(contract.monthly_amount)
    if monthly_amount <= 0:
        return grid
    start = month_index(contract.start_month)
    if start is None or start < 0 or start >= MONTHS_PER_YEAR:
        return grid

    period = min(resolve_period(contract.period), GRID_SIZE)
    for i in range(period):
        absolute_month = start + i
        month_in_year = absolute_month % MONTHS_PER_YEAR
        year_offset = absolute_month // MONTHS_PER_YEAR
        if year_offset < YEARS:
            grid[slot_for(year_offset + 1, month_in_year + 1)] += monthly_amount
    return grid


def allocate(
    otc_entries: Iterable[OneTimeCharge],
    recurring: Optional[RecurringContract]
) -> RevenueGrid:
    """
    Build the 5-year revenue grid from OTC entries and a recurring contract.

    Args:
        otc_entries: One-time charges (year 1 only)
        recurring: Start month, monthly amount and period

    Returns:
        Fresh 60-slot grid. Identical inputs always give identical grids.
    """
    grid = empty_grid()
    apply_one_time_charges(grid, otc_entries)
    apply_recurring(grid, recurring)
    return grid


def contract_value(grid: Iterable[int]) -> int:
    """Contract value = sum of all 60 slots."""
    return sum(grid)


def year_slice(grid: RevenueGrid, year: int) -> List[int]:
    """12 slots of plan year 1..5."""
    start = (year - 1) * MONTHS_PER_YEAR
    return list(grid[start:start + MONTHS_PER_YEAR])


def grid_to_fields(grid: RevenueGrid) -> Dict[str, int]:
    """Named form fields (jan .. dec_y5) for a grid."""
    return {field_name(slot): int(grid[slot]) for slot in range(GRID_SIZE)}


def fields_to_grid(values: Mapping) -> RevenueGrid:
    """Grid from named form fields; missing or invalid fields read as 0."""
    return [max(0, as_amount(values.get(name, 0))) for name in FIELD_NAMES]


# =============================================================================
# END OF GRID ALLOCATOR
# =============================================================================

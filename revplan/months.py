# =============================================================================
# REVPLAN - MONTHS AND GRID LAYOUT
# =============================================================================
# Year-month helpers and the fixed 60-slot layout of the revenue plan.
#
# LAYOUT:
# slot = (year - 1) * 12 + (month - 1)
# year 1..5, month 1..12 (1-based externally, 0-based internally)
#
# FIELD NAMES:
# year 1: jan .. dec
# year n: jan_yN .. dec_yN (n = 2..5)
# =============================================================================

from typing import Dict, List, Optional, Tuple

MONTH_KEYS = ["jan", "feb", "mar", "apr", "may", "jun",
              "jul", "aug", "sep", "oct", "nov", "dec"]
MONTH_LABELS = [key.capitalize() for key in MONTH_KEYS]

YEARS = 5
MONTHS_PER_YEAR = 12
GRID_SIZE = YEARS * MONTHS_PER_YEAR


def _build_field_names() -> List[str]:
    names = []
    for year in range(1, YEARS + 1):
        suffix = "" if year == 1 else f"_y{year}"
        names.extend(f"{key}{suffix}" for key in MONTH_KEYS)
    return names


FIELD_NAMES: List[str] = _build_field_names()

# (year, month) -> slot
SLOT_INDEX: Dict[Tuple[int, int], int] = {
    (year, month): (year - 1) * MONTHS_PER_YEAR + (month - 1)
    for year in range(1, YEARS + 1)
    for month in range(1, MONTHS_PER_YEAR + 1)
}


def month_index(value) -> Optional[int]:
    """
    Zero-based month index from a "YYYY-MM" (or "YYYY-MM-DD") value.

    Args:
        value: Year-month string

    Returns:
        month - 1, or None when the value is empty or has no numeric
        month component. Out-of-range months are returned unchanged
        (e.g. "2026-13" -> 12) so callers can bounds-check them.
    """
    if not value:
        return None
    parts = str(value).strip().split("-")
    if len(parts) < 2:
        return None
    try:
        return int(parts[1]) - 1
    except ValueError:
        return None


def parse_month(month: str) -> Tuple[int, int]:
    """Strict "YYYY-MM" parser. Raises ValueError on malformed input."""
    parts = str(month).split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid month format: {month}")
    year = int(parts[0])
    mon = int(parts[1])
    if mon < 1 or mon > 12:
        raise ValueError(f"Invalid month value: {month}")
    return year, mon


def is_valid_month(month: str) -> bool:
    try:
        parse_month(month)
    except ValueError:
        return False
    return True


def slot_for(year: int, month: int) -> int:
    """Slot for 1-based (year, month). Raises KeyError outside the grid."""
    return SLOT_INDEX[(year, month)]


def field_name(slot: int) -> str:
    return FIELD_NAMES[slot]


def fiscal_year_label(base_year: int, year: int) -> str:
    """Label for plan year 1..5, e.g. base 2026, year 2 -> "FY-27"."""
    return f"FY-{(base_year + year - 1) % 100:02d}"


# =============================================================================
# END OF MONTHS MODULE
# =============================================================================

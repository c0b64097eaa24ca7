# =============================================================================
# REVPLAN - REVENUE SUMMARY
# =============================================================================
# Reduces a 12-month plan into quarter, half-year and fiscal-year totals.
#
# FORMULAS:
# Q1 = Jan + Feb + Mar      H1 = Q1 + Q2
# Q2 = Apr + May + Jun      H2 = Q3 + Q4
# Q3 = Jul + Aug + Sep      FY = H1 + H2
# Q4 = Oct + Nov + Dec
# =============================================================================

from dataclasses import asdict, dataclass
from typing import Dict, List, Sequence

from .months import MONTHS_PER_YEAR, YEARS


@dataclass(frozen=True)
class RevenueSummary:
    """Quarterly, half-year and fiscal-year totals of one plan year."""
    q1: int = 0
    q2: int = 0
    q3: int = 0
    q4: int = 0
    h1: int = 0
    h2: int = 0
    fy: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _pad12(months: Sequence[int]) -> List[int]:
    values = list(months[:MONTHS_PER_YEAR])
    return values + [0] * (MONTHS_PER_YEAR - len(values))


def summarize(grid12: Sequence[int]) -> RevenueSummary:
    """
    Summarize a 12-month slice.

    Short slices are zero-padded, only the first 12 values of longer
    slices are used. Integer sums only.
    """
    m = _pad12(grid12)
    q1 = m[0] + m[1] + m[2]
    q2 = m[3] + m[4] + m[5]
    q3 = m[6] + m[7] + m[8]
    q4 = m[9] + m[10] + m[11]
    h1 = q1 + q2
    h2 = q3 + q4
    return RevenueSummary(q1=q1, q2=q2, q3=q3, q4=q4, h1=h1, h2=h2, fy=h1 + h2)


def summarize_years(grid: Sequence[int]) -> List[RevenueSummary]:
    """One summary per plan year of a 60-slot grid."""
    return [
        summarize(grid[year * MONTHS_PER_YEAR:(year + 1) * MONTHS_PER_YEAR])
        for year in range(YEARS)
    ]


# =============================================================================
# END OF REVENUE SUMMARY
# =============================================================================

# =============================================================================
# REVPLAN - FY SPILLOVER
# =============================================================================
# Portion of a recurring contract that lands after the current fiscal year.
# Display only: the result never feeds back into the revenue grid.
#
# FORMULAS:
# remaining_months = 12 - month_index(close_month)
# spillover_months = max(0, period - remaining_months)
# spillover_amount = (contract_value // period) * spillover_months
#
# NOTE: the truncating division can differ from the grid allocator's totals
# by up to (period - 1). The two computations are kept independent.
# =============================================================================

from dataclasses import dataclass
from typing import Optional

from .allocation import ContractPeriod, resolve_period
from .months import MONTHS_PER_YEAR, month_index


@dataclass(frozen=True)
class FySpillover:
    """Spillover into the next fiscal year."""
    amount: int = 0
    months: int = 0
    has_spillover: bool = False


NO_SPILLOVER = FySpillover()


def spillover(
    contract_value,
    close_month: Optional[str],
    period: Optional[ContractPeriod]
) -> FySpillover:
    """
    Calculate FY spillover.

    Args:
        contract_value: Total contract value
        close_month: Contract start "YYYY-MM" (empty -> no spillover)
        period: Months or "OTC" (unset -> no spillover)

    Returns:
        FySpillover(amount, months, has_spillover)
    """
    try:
        value = int(contract_value or 0)
    except (TypeError, ValueError):
        return NO_SPILLOVER
    if value <= 0 or not close_month or period is None or period == "":
        return NO_SPILLOVER

    effective_period = resolve_period(period)
    index = month_index(close_month)
    if index is None:
        return NO_SPILLOVER

    remaining_months = MONTHS_PER_YEAR - index
    spillover_months = max(0, effective_period - remaining_months)
    if spillover_months <= 0:
        return NO_SPILLOVER

    monthly_amount = value // effective_period
    return FySpillover(
        amount=monthly_amount * spillover_months,
        months=spillover_months,
        has_spillover=True,
    )


# =============================================================================
# END OF FY SPILLOVER
# =============================================================================

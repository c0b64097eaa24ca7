"""
Pipeline entry form state.

The form owns the allocator inputs (OTC list, monthly amount, close month,
contract period) and its outputs (the 60 month fields and the derived
contract value). Callers invoke ``recalculate()`` after changing any input;
nothing is observed implicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .allocation import (
    CONTRACT_PERIODS,
    DEFAULT_PERIOD,
    ONE_TIME_PERIOD,
    OneTimeCharge,
    RecurringContract,
    RevenueGrid,
    allocate,
    as_amount,
    contract_value,
    empty_grid,
    grid_to_fields,
    year_slice,
)
from .catalog import STAGES, TELKOM_SI_OPTIONS, pilar_and_tower
from .entries import PipelineEntry
from .months import GRID_SIZE, is_valid_month
from .spillover import FySpillover, spillover
from .summary import RevenueSummary, summarize

# field -> max length
_MAX_LENGTHS = {
    "account_name": 200,
    "opportunity_name": 200,
    "se_name": 100,
    "am_name": 100,
    "si_name": 100,
    "project_id": 50,
}

# field -> message when empty
_REQUIRED = {
    "account_name": "Account name is required",
    "opportunity_name": "Opportunity name is required",
    "product_family": "Product family is required",
    "pilar": "Pilar is required",
    "tower": "Tower is required",
    "se_name": "SE name is required",
    "presales_lob": "Pre-sales LoB is required",
    "am_name": "AM name is required",
    "telkom_si": "Telkom/SI is required",
}


def _period_choice(period) -> str:
    if isinstance(period, str) and period.strip().upper() == ONE_TIME_PERIOD:
        return ONE_TIME_PERIOD
    return str(as_amount(period) or DEFAULT_PERIOD)


@dataclass
class PipelineForm:
    """Editable state of one pipeline entry."""
    account_name: str = ""
    opportunity_name: str = ""
    stage: str = STAGES[0]
    product_family: str = ""
    pilar: str = ""
    tower: str = ""
    se_name: str = ""
    presales_lob: str = ""
    am_name: str = ""
    telkom_si: str = "Telkom"
    si_name: str = ""
    bespoke_project: bool = False
    project_id: str = ""
    po_release_date: Optional[str] = None

    # Allocator inputs
    otc_entries: List[OneTimeCharge] = field(default_factory=list)
    monthly_amount: int = 0
    close_month: str = ""
    contract_period: str = str(DEFAULT_PERIOD)

    # Allocator outputs
    grid: RevenueGrid = field(default_factory=empty_grid)
    contract_value: int = 0

    # Identity of the entry being edited
    entry_id: str = ""
    user_id: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: PipelineEntry) -> "PipelineForm":
        """
        Load a persisted entry for editing.

        The stored plan is shown as-is; it is only re-spread once the user
        changes an allocator input and the caller recalculates. The stored
        contract value is kept until then, since rows saved without the
        year 2-5 plan columns only carry the year-1 months.
        """
        grid = [max(0, as_amount(value)) for value in entry.rev_plan[:GRID_SIZE]]
        grid += [0] * (GRID_SIZE - len(grid))
        return cls(
            account_name=entry.account_name,
            opportunity_name=entry.opportunity_name,
            stage=entry.stage,
            product_family=entry.product_family,
            pilar=entry.pilar,
            tower=entry.tower,
            se_name=entry.se_name,
            presales_lob=entry.presales_lob,
            am_name=entry.am_name,
            telkom_si=entry.telkom_si or "Telkom",
            si_name=entry.si_name or "",
            bespoke_project=entry.bespoke_project,
            project_id=entry.project_id or "",
            po_release_date=entry.po_release_date,
            close_month=entry.close_month,
            contract_period=_period_choice(entry.contract_period),
            grid=grid,
            contract_value=as_amount(entry.contract_value) or contract_value(grid),
            entry_id=entry.id,
            user_id=entry.user_id,
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def add_otc(self, close_month: str = "", amount: int = 0) -> None:
        self.otc_entries.append(OneTimeCharge(close_month=close_month, amount=amount))

    def remove_otc(self, index: int) -> None:
        if 0 <= index < len(self.otc_entries):
            del self.otc_entries[index]

    def set_product_family(self, product_family: str) -> None:
        """Select a product family and auto-fill pilar and tower."""
        self.product_family = product_family
        mapping = pilar_and_tower(product_family)
        if mapping:
            self.pilar, self.tower = mapping

    def set_month(self, slot: int, amount) -> None:
        """Manual edit of one month; contract value follows only on a change."""
        if 0 <= slot < GRID_SIZE:
            amount = max(0, as_amount(amount))
            if amount != self.grid[slot]:
                self.grid[slot] = amount
                self.contract_value = contract_value(self.grid)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def recurring(self) -> RecurringContract:
        return RecurringContract(
            start_month=self.close_month,
            monthly_amount=self.monthly_amount,
            period=self.contract_period,
        )

    @property
    def spread_active(self) -> bool:
        """True when the grid is driven by OTC entries or a recurring amount."""
        recurring = bool(self.close_month) and as_amount(self.monthly_amount) > 0
        return recurring or any(as_amount(otc.amount) > 0 for otc in self.otc_entries)

    def recalculate(self) -> RevenueGrid:
        """Rebuild the grid from the allocator inputs and sync contract value."""
        self.grid = allocate(self.otc_entries, self.recurring)
        self.contract_value = contract_value(self.grid)
        return self.grid

    def fields(self) -> Dict[str, int]:
        return grid_to_fields(self.grid)

    def summary(self, year: int = 1) -> RevenueSummary:
        return summarize(year_slice(self.grid, year))

    def fy_spillover(self) -> FySpillover:
        return spillover(self.contract_value, self.close_month, self.contract_period)

    # ------------------------------------------------------------------
    # Validation and persistence
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """
        Validate user input before saving.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: List[str] = []

        for name, message in _REQUIRED.items():
            if not str(getattr(self, name) or "").strip():
                errors.append(message)

        for name, max_length in _MAX_LENGTHS.items():
            value = getattr(self, name) or ""
            if len(value) > max_length:
                errors.append(f"{name} must be at most {max_length} characters")

        if self.stage not in STAGES:
            errors.append(f"Invalid stage: {self.stage}")
        if self.telkom_si and self.telkom_si not in TELKOM_SI_OPTIONS:
            errors.append(f"Invalid Telkom/SI option: {self.telkom_si}")

        if self.close_month and not is_valid_month(self.close_month):
            errors.append(f"Invalid close month: {self.close_month}")
        if self.contract_period not in CONTRACT_PERIODS:
            errors.append(f"Invalid contract period: {self.contract_period}")
        if as_amount(self.monthly_amount) < 0:
            errors.append("Monthly amount must be >= 0")

        for position, otc in enumerate(self.otc_entries, start=1):
            if as_amount(otc.amount) < 0:
                errors.append(f"OTC #{position}: amount must be >= 0")
            if otc.close_month and not is_valid_month(otc.close_month):
                errors.append(f"OTC #{position}: invalid month {otc.close_month}")

        if any(value < 0 for value in self.grid):
            errors.append("Revenue plan amounts must be >= 0")

        return errors

    def to_entry(self) -> PipelineEntry:
        period = ONE_TIME_PERIOD if self.contract_period == ONE_TIME_PERIOD else as_amount(self.contract_period)
        return PipelineEntry(
            id=self.entry_id,
            user_id=self.user_id,
            account_name=self.account_name.strip(),
            opportunity_name=self.opportunity_name.strip(),
            stage=self.stage,
            product_family=self.product_family,
            pilar=self.pilar,
            tower=self.tower,
            se_name=self.se_name.strip(),
            presales_lob=self.presales_lob,
            am_name=self.am_name.strip(),
            close_month=self.close_month,
            contract_period=period or DEFAULT_PERIOD,
            contract_value=self.contract_value,
            rev_plan=list(self.grid),
            telkom_si=self.telkom_si,
            si_name=self.si_name or None,
            bespoke_project=self.bespoke_project,
            project_id=self.project_id or None,
            po_release_date=self.po_release_date,
        )

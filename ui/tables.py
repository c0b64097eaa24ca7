"""Search, filter and pagination for the pipeline, highlight and activity tables."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

from revplan.entries import ActivityPlan, Highlight, PipelineEntry

ALL = "all"

T = TypeVar("T")


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def _matches(value: Optional[str], selected: str) -> bool:
    return selected == ALL or value == selected


def unique_values(items: Iterable, attr: str) -> List[str]:
    """Sorted distinct non-empty values of an attribute (filter options)."""
    return sorted({getattr(item, attr) for item in items if getattr(item, attr)})


@dataclass
class PipelineFilters:
    search: str = ""
    stage: str = ALL
    am_name: str = ALL
    se_name: str = ALL
    close_month: str = ALL
    pilar: str = ALL
    account_name: str = ALL

    @property
    def active_count(self) -> int:
        """Dropdown filters in use (search is not counted)."""
        return sum(1 for f in fields(self) if f.name != "search" and getattr(self, f.name) != ALL)

    def cleared(self) -> "PipelineFilters":
        return PipelineFilters()


def filter_entries(entries: Sequence[PipelineEntry], filters: PipelineFilters) -> List[PipelineEntry]:
    needle = filters.search.strip().lower()
    result = []
    for entry in entries:
        if needle and not (
            _contains(entry.account_name, needle)
            or _contains(entry.opportunity_name, needle)
            or _contains(entry.am_name, needle)
            or _contains(entry.se_name, needle)
        ):
            continue
        if not (
            _matches(entry.stage, filters.stage)
            and _matches(entry.am_name, filters.am_name)
            and _matches(entry.se_name, filters.se_name)
            and _matches(entry.close_month, filters.close_month)
            and _matches(entry.pilar, filters.pilar)
            and _matches(entry.account_name, filters.account_name)
        ):
            continue
        result.append(entry)
    return result


def filter_activities(
    items: Sequence[ActivityPlan],
    search: str = "",
    close_month: str = ALL
) -> List[ActivityPlan]:
    needle = search.strip().lower()
    result = []
    for item in items:
        if needle and not any(
            _contains(value, needle)
            for value in (item.se_name, item.account_name, item.opportunity_name,
                          item.am_name, item.agenda)
        ):
            continue
        if not _matches(item.est_close_month, close_month):
            continue
        result.append(item)
    return result


def filter_highlights(
    items: Sequence[Highlight],
    search: str = "",
    status: str = ALL,
    category: str = ALL,
    stage: str = ALL
) -> List[Highlight]:
    needle = search.strip().lower()
    result = []
    for item in items:
        if needle and not any(
            _contains(value, needle)
            for value in (item.title, item.related_account, item.related_opportunity,
                          item.se_name, item.creator_name)
        ):
            continue
        if not (_matches(item.status, status) and _matches(item.category, category)
                and _matches(item.stage, stage)):
            continue
        result.append(item)
    return result


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    per_page: int
    total_items: int
    total_pages: int

    @property
    def start(self) -> int:
        """1-based position of the first row shown (0 when empty)."""
        return 0 if not self.items else (self.page - 1) * self.per_page + 1

    @property
    def end(self) -> int:
        return min(self.page * self.per_page, self.total_items)


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    """Slice one page; page is clamped to 1..total_pages."""
    per_page = max(1, int(per_page))
    total_pages = math.ceil(len(items) / per_page)
    page = min(max(1, int(page)), max(1, total_pages))
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        per_page=per_page,
        total_items=len(items),
        total_pages=total_pages,
    )

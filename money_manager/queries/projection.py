"""
Query Engine

DESIGN DECISION: Projection is a PURE function of its inputs.
It never touches the store and never mutates the collection it is
given; the caller re-runs it after every mutation or filter change.

Sorting is stable: records with equal keys keep their filtered order,
so the rendered row order never flickers between refreshes.
"""

import datetime as dt
from typing import Iterable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from money_manager.models import (
    SortMode,
    Transaction,
    TransactionCategory,
    parse_category,
    parse_iso_date,
)


CategoryFilter = Union[Literal["all"], TransactionCategory]
DateFilter = Union[dt.date, str, None]

_SORT_DESCRIPTIONS = {
    SortMode.DATE_ASC: "sorted by date (oldest first)",
    SortMode.DATE_DESC: "sorted by date (newest first)",
    SortMode.AMOUNT_ASC: "sorted by amount (low to high)",
    SortMode.AMOUNT_DESC: "sorted by amount (high to low)",
}


def _parse_category_filter(value: Union[str, TransactionCategory, None]) -> Optional[TransactionCategory]:
    """None means no category filtering."""
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "all")):
        return None
    category = parse_category(value)
    if category is None:
        raise ValueError(f"Unknown category filter: {value!r}")
    return category


def _parse_date_filter(value: DateFilter) -> Optional[dt.date]:
    """None means no date filtering."""
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date filter: {value!r}")
    value = value.strip()
    if not value:
        return None
    return parse_iso_date(value)


def project(
    transactions: Iterable[Transaction],
    category_filter: Union[str, TransactionCategory, None] = "all",
    date_filter: DateFilter = None,
    sort_mode: Union[SortMode, str, None] = SortMode.UNSPECIFIED,
) -> list[Transaction]:
    """
    Filter and sort transactions into a new list.

    Args:
        transactions: Source records (not modified)
        category_filter: "all" or a category
        date_filter: Empty/None, or an exact date (date or YYYY-MM-DD)
        sort_mode: One of SortMode; unrecognized values mean no sorting

    Returns:
        Matching records; empty if nothing matches

    Raises:
        ValueError: If the category or date filter cannot be parsed
    """
    category = _parse_category_filter(category_filter)
    on_date = _parse_date_filter(date_filter)
    mode = SortMode.parse(sort_mode)

    rows = [
        t for t in transactions
        if (category is None or t.category == category)
        and (on_date is None or t.date == on_date)
    ]

    if mode == SortMode.DATE_ASC:
        rows.sort(key=lambda t: t.date)
    elif mode == SortMode.DATE_DESC:
        rows.sort(key=lambda t: t.date, reverse=True)
    elif mode == SortMode.AMOUNT_ASC:
        rows.sort(key=lambda t: t.amount)
    elif mode == SortMode.AMOUNT_DESC:
        rows.sort(key=lambda t: t.amount, reverse=True)

    return rows


class LedgerQuery(BaseModel):
    """
    The current filter and sort selection.

    Bundles the three projection parameters so a view can hold
    them as one value.
    """

    model_config = ConfigDict(frozen=True)

    category_filter: CategoryFilter = Field(
        default="all",
        description="'all' or a single category"
    )
    date_filter: Optional[dt.date] = Field(
        default=None,
        description="Exact date to match, or None"
    )
    sort_mode: SortMode = Field(
        default=SortMode.UNSPECIFIED,
        description="Ordering of the projected rows"
    )

    @field_validator('category_filter', mode='before')
    @classmethod
    def parse_category_filter(cls, v):
        category = _parse_category_filter(v)
        return "all" if category is None else category

    @field_validator('date_filter', mode='before')
    @classmethod
    def parse_date_filter(cls, v):
        return _parse_date_filter(v)

    @field_validator('sort_mode', mode='before')
    @classmethod
    def parse_sort_mode(cls, v):
        return SortMode.parse(v)

    def apply(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        return project(
            transactions,
            category_filter=self.category_filter,
            date_filter=self.date_filter,
            sort_mode=self.sort_mode,
        )

    def describe(self) -> str:
        """Human-readable caption for the current selection."""
        if self.category_filter == "all":
            desc_parts = ["Showing all transactions"]
        else:
            desc_parts = [f"Showing {self.category_filter.value}"]
        if self.date_filter:
            desc_parts.append(f"on {self.date_filter.strftime('%d %b %Y')}")
        if self.sort_mode in _SORT_DESCRIPTIONS:
            desc_parts.append(_SORT_DESCRIPTIONS[self.sort_mode])
        return " | ".join(desc_parts)

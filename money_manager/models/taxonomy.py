"""
Fixed Category Taxonomy

Every transaction is either income or expense, and each of those has
a fixed list of sub-categories. The labels are what users see; the
values (labels lower-cased with whitespace removed) are what we store.
"""

import re
from enum import Enum
from typing import Optional, Union


class TransactionCategory(str, Enum):
    """Top-level transaction category."""
    INCOME = "income"
    EXPENSE = "expense"


SUB_CATEGORY_LABELS: dict[TransactionCategory, tuple[str, ...]] = {
    TransactionCategory.INCOME: (
        "Salary",
        "Bonus",
        "Investment",
        "Gift",
        "Other",
    ),
    TransactionCategory.EXPENSE: (
        "Rent",
        "Groceries",
        "Utilities",
        "Shopping",
        "Entertainment",
        "Transportation",
        "Other",
    ),
}

_WHITESPACE = re.compile(r"\s")


def sub_category_value(label: str) -> str:
    """Derive the stored value for a display label ("Gift Card" -> "giftcard")."""
    return _WHITESPACE.sub("", label.lower())


def parse_category(
    value: Union[str, TransactionCategory, None],
) -> Optional[TransactionCategory]:
    """Parse a category, returning None if missing or unknown."""
    if value is None:
        return None
    if isinstance(value, TransactionCategory):
        return value
    try:
        return TransactionCategory(str(value).strip().lower())
    except ValueError:
        return None


def sub_category_options(
    category: Union[str, TransactionCategory, None],
) -> list[tuple[str, str]]:
    """
    Get (value, label) pairs for a category, in display order.

    Unknown or missing categories have no options.
    """
    parsed = parse_category(category)
    if parsed is None:
        return []
    return [(sub_category_value(label), label) for label in SUB_CATEGORY_LABELS[parsed]]


def is_valid_sub_category(
    category: Union[str, TransactionCategory, None],
    value: Optional[str],
) -> bool:
    """Check that a sub-category value belongs to the given category."""
    if not value:
        return False
    return any(option == value for option, _ in sub_category_options(category))

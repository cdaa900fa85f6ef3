"""
Data Models Package

This package contains all Pydantic models used in Money Manager.
All data flowing through the system must conform to these schemas.
"""

from money_manager.models.taxonomy import (
    SUB_CATEGORY_LABELS,
    TransactionCategory,
    is_valid_sub_category,
    parse_category,
    sub_category_options,
    sub_category_value,
)
from money_manager.models.transaction import (
    AddFields,
    LedgerSummary,
    SortMode,
    Transaction,
    TransactionFields,
    UpdateFields,
    ValidationIssue,
    ValidationResult,
    parse_iso_date,
)

__all__ = [
    # Taxonomy
    "SUB_CATEGORY_LABELS",
    "TransactionCategory",
    "is_valid_sub_category",
    "parse_category",
    "sub_category_options",
    "sub_category_value",
    # Transaction models
    "AddFields",
    "LedgerSummary",
    "SortMode",
    "Transaction",
    "TransactionFields",
    "UpdateFields",
    "ValidationIssue",
    "ValidationResult",
    "parse_iso_date",
]

"""
Core Data Models for Money Manager

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Normalize user input (amount coercion, whitespace trimming)
3. Be serializable for storage in the original record format
4. Never be mutated in place (updates replace the whole record)

DESIGN DECISION: Records are frozen Pydantic v2 models.
An update builds a brand new record carrying the same id,
so no partially-edited record can ever exist.
"""

import datetime as dt
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from money_manager.models.taxonomy import TransactionCategory


_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_iso_date(value: str) -> dt.date:
    """
    Parse a calendar date written exactly as YYYY-MM-DD.

    Raises:
        ValueError: For any other shape ("20240101", "2024-W01-1", "2024-1-1")
                    or an impossible date
    """
    text = value.strip()
    if not _ISO_DATE.fullmatch(text):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {value!r}")
    return dt.datetime.strptime(text, "%Y-%m-%d").date()


# =============================================================================
# ENUMS
# =============================================================================

class SortMode(str, Enum):
    """
    How a projection is ordered.

    UNSPECIFIED keeps the filtered (insertion) order.
    """
    DATE_ASC = "date-asc"
    DATE_DESC = "date-desc"
    AMOUNT_ASC = "amount-asc"
    AMOUNT_DESC = "amount-desc"
    UNSPECIFIED = ""

    @classmethod
    def parse(cls, value: Any) -> "SortMode":
        """Parse a sort option; anything unrecognized means no sorting."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNSPECIFIED
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNSPECIFIED


# =============================================================================
# TRANSACTION RECORD
# =============================================================================

class TransactionFields(BaseModel):
    """
    The user-editable fields of a transaction.

    This is the typed input for add and update. It is only built
    by the validator (or by tests), never from raw form data directly.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount in currency units"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: TransactionCategory = Field(
        ...,
        description="Income or expense"
    )
    sub_category: str = Field(
        ...,
        min_length=1,
        alias="subCategory",
        description="Sub-category value from the fixed taxonomy"
    )
    description: str = Field(
        default="",
        description="Free text note"
    )

    @field_validator('description', mode='before')
    @classmethod
    def none_description_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


AddFields = TransactionFields
UpdateFields = TransactionFields


class Transaction(TransactionFields):
    """
    One ledger entry.

    The id is assigned by the LedgerStore and never reused.
    """

    id: int = Field(
        ...,
        gt=0,
        description="Unique, monotonically assigned identifier"
    )

    @classmethod
    def from_fields(cls, transaction_id: int, fields: TransactionFields) -> "Transaction":
        """Build a fresh record from validated fields."""
        return cls(id=transaction_id, **fields.model_dump())

    @classmethod
    def from_record(cls, record: dict) -> "Transaction":
        """
        Rehydrate a stored record.

        Accepts both the stored key (subCategory) and the Python name.
        Raises pydantic.ValidationError on malformed records.
        """
        return cls.model_validate(record)

    def to_record(self) -> dict:
        """
        Convert to the stored record format.

        Keys: id, amount, date, category, subCategory, description.
        Amounts are written as decimal strings, dates as YYYY-MM-DD.
        """
        return {
            "id": self.id,
            "amount": str(self.amount),
            "date": self.date.isoformat(),
            "category": self.category.value,
            "subCategory": self.sub_category,
            "description": self.description,
        }

    def to_fields(self) -> TransactionFields:
        """The editable part of this record."""
        return TransactionFields(**self.model_dump(exclude={"id"}))

    @property
    def is_income(self) -> bool:
        return self.category == TransactionCategory.INCOME


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating raw form fields.

    When valid, `fields` holds the typed input ready for the store.
    """

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    fields: Optional[TransactionFields] = Field(
        default=None,
        description="Typed fields, present only when valid"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def failed_fields(self) -> set[str]:
        """Names of the fields with at least one error."""
        return {issue.field for issue in self.issues if issue.severity == "error"}

    def messages_by_field(self) -> dict[str, str]:
        """First error message per field, for inline form errors."""
        messages: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error":
                messages.setdefault(issue.field, issue.message)
        return messages


# =============================================================================
# SUMMARY MODEL
# =============================================================================

class LedgerSummary(BaseModel):
    """Totals over a set of transactions."""

    model_config = ConfigDict(frozen=True)

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")

    def formatted(self, currency_symbol: str = "₹") -> dict[str, str]:
        """Display strings with two decimal places."""
        return {
            "total_income": f"{currency_symbol}{self.total_income:.2f}",
            "total_expense": f"{currency_symbol}{self.total_expense:.2f}",
            "net_balance": f"{currency_symbol}{self.net_balance:.2f}",
        }

"""
Form Validation

DESIGN DECISION: Validation is a pure classification pass at the boundary.

- It takes the raw form values exactly as the UI collected them
- It checks EVERY field and reports every problem (no short-circuit)
- It never raises; the result says pass/fail plus per-field messages
- On success it hands back typed TransactionFields for the store

The LedgerStore trusts its input, so nothing reaches it without
passing through here first.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from money_manager.models import (
    TransactionCategory,
    TransactionFields,
    ValidationIssue,
    ValidationResult,
    is_valid_sub_category,
    parse_category,
    parse_iso_date,
)


AMOUNT_MESSAGE = "Please enter a positive numeric amount."
DATE_MISSING_MESSAGE = "Please enter a valid date."
DATE_FUTURE_MESSAGE = "Date cannot be in the future."
CATEGORY_MESSAGE = "Please select a category."
SUB_CATEGORY_MESSAGE = "Please select a sub-category."
SUB_CATEGORY_MISMATCH_MESSAGE = "Sub-category does not belong to the selected category."


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TransactionValidator:
    """
    Validates raw transaction form values.

    Accepted keys: amount, date, category, subCategory (or sub_category),
    description.
    """

    def __init__(self, today_provider: Callable[[], dt.date] = dt.date.today):
        """
        Args:
            today_provider: Returns the current date. Injected for tests.
        """
        self._today = today_provider

    def _check_amount(self, raw: Any) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        if _blank(raw):
            return None, [ValidationIssue(
                field="amount",
                issue_type="missing",
                message=AMOUNT_MESSAGE,
            )]

        try:
            amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            amount = None

        if amount is None or not amount.is_finite() or amount <= 0:
            return None, [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=AMOUNT_MESSAGE,
            )]
        return amount, []

    def _check_date(self, raw: Any) -> tuple[Optional[dt.date], list[ValidationIssue]]:
        if _blank(raw):
            return None, [ValidationIssue(
                field="date",
                issue_type="missing",
                message=DATE_MISSING_MESSAGE,
            )]

        if isinstance(raw, dt.datetime):
            parsed = raw.date()
        elif isinstance(raw, dt.date):
            parsed = raw
        else:
            try:
                parsed = parse_iso_date(str(raw))
            except ValueError:
                return None, [ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=DATE_MISSING_MESSAGE,
                )]

        if parsed > self._today():
            return None, [ValidationIssue(
                field="date",
                issue_type="future_date",
                message=DATE_FUTURE_MESSAGE,
            )]
        return parsed, []

    @staticmethod
    def _check_category(raw: Any) -> tuple[Optional[TransactionCategory], list[ValidationIssue]]:
        if _blank(raw):
            return None, [ValidationIssue(
                field="category",
                issue_type="missing",
                message=CATEGORY_MESSAGE,
            )]

        category = parse_category(raw)
        if category is None:
            return None, [ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=CATEGORY_MESSAGE,
            )]
        return category, []

    @staticmethod
    def _check_sub_category(
        raw: Any,
        category: Optional[TransactionCategory],
    ) -> tuple[Optional[str], list[ValidationIssue]]:
        if _blank(raw):
            return None, [ValidationIssue(
                field="sub_category",
                issue_type="missing",
                message=SUB_CATEGORY_MESSAGE,
            )]

        value = str(raw).strip()
        # Consistency can only be judged against a valid category
        if category is not None and not is_valid_sub_category(category, value):
            return None, [ValidationIssue(
                field="sub_category",
                issue_type="inconsistent",
                message=SUB_CATEGORY_MISMATCH_MESSAGE,
            )]
        return value, []

    def validate(self, raw: Mapping[str, Any]) -> ValidationResult:
        """
        Validate raw form values.

        Args:
            raw: Form values as collected by the UI

        Returns:
            ValidationResult; `fields` is set only when valid
        """
        issues: list[ValidationIssue] = []

        amount, amount_issues = self._check_amount(raw.get("amount"))
        issues.extend(amount_issues)

        on_date, date_issues = self._check_date(raw.get("date"))
        issues.extend(date_issues)

        category, category_issues = self._check_category(raw.get("category"))
        issues.extend(category_issues)

        raw_sub_category = raw.get("subCategory", raw.get("sub_category"))
        sub_category, sub_category_issues = self._check_sub_category(raw_sub_category, category)
        issues.extend(sub_category_issues)

        if issues:
            return ValidationResult(is_valid=False, issues=issues)

        description = raw.get("description")
        try:
            fields = TransactionFields(
                amount=amount,
                date=on_date,
                category=category,
                sub_category=sub_category,
                description="" if description is None else str(description),
            )
        except ValidationError as e:
            return ValidationResult(
                is_valid=False,
                issues=[
                    ValidationIssue(
                        field=str(error["loc"][0]) if error["loc"] else "form",
                        issue_type="invalid_value",
                        message=error["msg"],
                    )
                    for error in e.errors()
                ],
            )

        return ValidationResult(is_valid=True, fields=fields)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Summarize validation problems for display.

        One line per failing field, in form order.
        """
        if result.is_valid:
            return "All fields look good."

        lines = ["Please fix the following:"]
        for message in result.messages_by_field().values():
            lines.append(f"   • {message}")
        return "\n".join(lines)

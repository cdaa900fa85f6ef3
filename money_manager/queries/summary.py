"""
Summary Aggregator

Pure reductions over a set of transactions. Amounts are Decimals,
so totals are exact; rounding to two places is a display concern
(see LedgerSummary.formatted).
"""

from decimal import Decimal
from typing import Iterable

from money_manager.models import (
    LedgerSummary,
    Transaction,
    TransactionCategory,
    sub_category_options,
)


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """
    Total income, total expense and net balance.

    An empty collection gives an all-zero summary.
    """
    total_income = Decimal("0")
    total_expense = Decimal("0")

    for transaction in transactions:
        if transaction.category == TransactionCategory.INCOME:
            total_income += transaction.amount
        elif transaction.category == TransactionCategory.EXPENSE:
            total_expense += transaction.amount

    return LedgerSummary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
    )


def breakdown_by_sub_category(
    transactions: Iterable[Transaction],
    category: TransactionCategory,
) -> dict[str, Decimal]:
    """
    Total per sub-category within one category.

    Known sub-categories come first in taxonomy order; any other
    stored values follow in first-seen order. Sub-categories with
    no transactions are left out.
    """
    groups: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.category != category:
            continue
        key = transaction.sub_category
        groups[key] = groups.get(key, Decimal("0")) + transaction.amount

    ordered = {
        value: groups.pop(value)
        for value, _ in sub_category_options(category)
        if value in groups
    }
    ordered.update(groups)
    return ordered

"""Form validation package."""

from money_manager.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]

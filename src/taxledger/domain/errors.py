"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that only catch ValueError.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class InvalidAmountError(ValidationError):
    """Transaction amount is zero, negative or not a number."""

    def __init__(self, message: str):
        super().__init__(message, field="amount")


class MissingNarrationError(ValidationError):
    """Transaction has no description to use as narration."""

    def __init__(self, message: str):
        super().__init__(message, field="description")


class UnbalancedEntryError(ValidationError):
    """Journal entry debits and credits differ."""

    def __init__(self, message: str):
        super().__init__(message, field="lines")


class InvalidAccountClassError(ValidationError):
    """Account class or sub-class is not one of the enumerated values."""

    def __init__(self, message: str):
        super().__init__(message, field="account_class")


class UnknownAccountError(NotFoundError):
    """Account code is not in the chart of accounts."""

    def __init__(self, message: str):
        super().__init__(message, field="account_code")


class DuplicateAccountCodeError(ConflictError):
    """Account code already exists in the chart of accounts."""

    def __init__(self, message: str):
        super().__init__(message, field="code")


class DuplicateTransactionError(ConflictError):
    """Transaction id has already been processed."""

    def __init__(self, message: str):
        super().__init__(message, field="id")


class PersistenceError(Exception):
    """Snapshot could not be loaded from or saved to the store."""


def unknown_account(code: str) -> str:
    """Return message for an account code missing from the chart."""
    return f"Account code '{code}' is not in the chart of accounts"


def duplicate_account_code(code: str) -> str:
    """Return message for a custom account reusing an existing code."""
    return f"Account code '{code}' already exists"


def invalid_amount(amount) -> str:
    """Return message for a non-positive transaction amount."""
    return f"Amount must be greater than zero (got {amount})"


def missing_narration(transaction_id: str) -> str:
    """Return message for a transaction without a description."""
    return f"Transaction '{transaction_id}' has no description"


def duplicate_transaction(transaction_id: str) -> str:
    """Return message for a transaction id that was already processed."""
    return f"Transaction '{transaction_id}' has already been processed"


def unbalanced_entry(total_debit, total_credit) -> str:
    """Return message for a journal entry whose sides differ."""
    return (
        f"Journal entry is not balanced: debits {total_debit} "
        f"!= credits {total_credit}"
    )

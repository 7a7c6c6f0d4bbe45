"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class AccountNotFound(NotFoundError):
    """Unknown account ID."""

    def __init__(self, account_id: int):
        super().__init__(account_not_found(account_id))
        self.account_id = account_id


class TransactionNotFound(NotFoundError):
    """Unknown transaction ID."""

    def __init__(self, transaction_id: int):
        super().__init__(transaction_not_found(transaction_id))
        self.transaction_id = transaction_id


class InvalidAmount(ValidationError):
    """Amount is not a finite, positive, two-place decimal."""


class InvalidTransactionType(ValidationError):
    """Transaction type is not receivable or payable."""


class InvalidStatus(ValidationError):
    """Transaction status is not pending or completed."""


class InvalidDate(ValidationError):
    """Missing, malformed or inverted date input."""


class ConcurrentModification(ConflictError):
    """The account's writer lock could not be acquired in time.

    Callers may retry; the engine never retries on their behalf.
    """

    def __init__(self, account_id: int, timeout: float):
        super().__init__(
            f"Account {account_id} is being modified by another writer "
            f"(lock not acquired within {timeout:g}s)"
        )
        self.account_id = account_id
        self.timeout = timeout


class RecomputeFailure(DomainError):
    """Snapshots failed validation after a recalculation pass.

    This is fatal for the pass that raised it and is never retried silently.
    """

    def __init__(self, account_id: int, index: Optional[int], message: Optional[str] = None):
        super().__init__(
            message
            or f"Balance recompute for account {account_id} failed validation at index {index}"
        )
        self.account_id = account_id
        self.index = index


class AccountCorrupted(RecomputeFailure):
    """The account could not be rebuilt and is locked against mutation."""

    def __init__(self, account_id: int, index: Optional[int] = None):
        super().__init__(
            account_id,
            index,
            f"Account {account_id} is marked corrupted; mutations are rejected "
            "until it is repaired",
        )


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_account_name(display_name: str) -> str:
    """Return message for duplicate account display name."""
    return f"Account with name '{display_name}' already exists"


def account_delete_blocked(account_id: int, transaction_count: int) -> str:
    """Return message when account still has ledger transactions."""
    return (
        f"Cannot delete account {account_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please delete them first."
    )

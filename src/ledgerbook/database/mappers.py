"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from ledgerbook.domain import entities as domain
from ledgerbook.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        display_name=orm_account.display_name,
        opening_anchor=orm_account.opening_anchor,
        current_balance=orm_account.current_balance,
        created_at=orm_account.created_at,
        is_corrupted=bool(orm_account.is_corrupted),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        type=domain.TransactionType(orm_transaction.type),
        amount=orm_transaction.amount,
        date=orm_transaction.date,
        sequence=orm_transaction.sequence,
        description=orm_transaction.description,
        status=domain.TransactionStatus(orm_transaction.status),
        opening_balance=orm_transaction.opening_balance,
        closing_balance=orm_transaction.closing_balance,
        created_at=orm_transaction.created_at,
    )

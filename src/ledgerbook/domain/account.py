"""Account domain service."""

from decimal import Decimal
from typing import Any, Optional
from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Account as AccountEntity
from ledgerbook.domain.errors import (
    AccountNotFound,
    ConflictError,
    DependencyError,
    ValidationError,
    account_delete_blocked,
    duplicate_account_name,
)
from ledgerbook.domain.values import to_money


class AccountService:
    """Service for managing ledger accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _clean_name(self, display_name: str) -> str:
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        return name

    def create_account(self, display_name: str, opening_anchor: Any = Decimal("0")) -> int:
        """Create a new account.

        Args:
            display_name: Vendor or customer name
            opening_anchor: Balance before any transaction (immutable afterwards)

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
            InvalidAmount: If the opening anchor is not an exact decimal
        """
        name = self._clean_name(display_name)
        anchor = to_money(opening_anchor, "opening balance")

        if self.db.get_account_by_name(name) is not None:
            raise ConflictError(duplicate_account_name(name))

        return self.db.create_account(display_name=name, opening_anchor=anchor)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise AccountNotFound."""
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def list_accounts(self, search: Optional[str] = None) -> list[AccountEntity]:
        """List accounts ordered by name.

        Args:
            search: Optional case-insensitive substring of the display name

        Returns:
            List of account entities
        """
        return self.db.list_accounts(search=search.strip() if search else None)

    def rename_account(self, account_id: int, display_name: str) -> None:
        """Rename an account.

        Raises:
            AccountNotFound: If account not found
            ConflictError: If name already exists
        """
        self.require_account(account_id)
        name = self._clean_name(display_name)

        existing = self.db.get_account_by_name(name)
        if existing is not None and existing.id != account_id:
            raise ConflictError(duplicate_account_name(name))

        self.db.update_account_name(account_id=account_id, display_name=name)

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Raises:
            AccountNotFound: If account not found
            DependencyError: If the account still has transactions
        """
        self.require_account(account_id)

        transaction_count = self.db.get_account_transaction_count(account_id)
        if transaction_count > 0:
            raise DependencyError(account_delete_blocked(account_id, transaction_count))

        self.db.delete_account(account_id)

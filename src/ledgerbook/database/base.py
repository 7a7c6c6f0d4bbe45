"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Iterable
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerbook.domain.entities import (
    Account,
    Transaction,
    TransactionStatus,
    TransactionType,
)


class Database(ABC):
    """Abstract durable store for ledgerbook.

    Every method runs in its own unit of work unless called inside
    ``transaction()``, in which case all changes commit or roll back together
    when the outermost block exits. Writes inside an open unit of work are
    not visible to other connections until it commits.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open (or join) a unit of work; commit on success, roll back on error."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, display_name: str, opening_anchor: Decimal) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, display_name: str) -> Optional[Account]:
        """Get account by exact display name."""
        pass

    @abstractmethod
    def list_accounts(self, search: Optional[str] = None) -> list[Account]:
        """List accounts ordered by name, optionally filtered by a name substring."""
        pass

    @abstractmethod
    def update_account_name(self, account_id: int, display_name: str) -> None:
        """Update account display name."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Get count of transactions associated with an account."""
        pass

    @abstractmethod
    def allocate_sequence(self, account_id: int) -> int:
        """Return the account's next insertion sequence number and advance it."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, current_balance: Decimal) -> None:
        """Store the account's cached current balance."""
        pass

    @abstractmethod
    def set_account_corrupted(self, account_id: int, is_corrupted: bool) -> None:
        """Flag or clear the account's corrupted state."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        type: TransactionType,
        amount: Decimal,
        date: datetime,
        sequence: int,
        description: Optional[str] = None,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        opening_balance: Decimal = Decimal("0"),
        closing_balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        type: Optional[TransactionType] = None,
        amount: Optional[Decimal] = None,
        date: Optional[datetime] = None,
        description: Optional[str] = None,
        status: Optional[TransactionStatus] = None,
    ) -> None:
        """Update transaction fields. Only provided fields are updated."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def update_snapshots(self, snapshots: Iterable[tuple[int, Decimal, Decimal]]) -> None:
        """Write (transaction_id, opening_balance, closing_balance) snapshots."""
        pass

    @abstractmethod
    def list_account_transactions(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List an account's transactions in (posting date, sequence) order.

        Date bounds are inclusive calendar dates.
        """
        pass

    @abstractmethod
    def list_transactions_on(self, posting_date: date) -> list[Transaction]:
        """List every account's transactions for one calendar date.

        Ordered by account ID, then (posting date, sequence).
        """
        pass

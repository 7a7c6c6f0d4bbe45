"""Transaction store: the authoritative per-account transaction order."""

import bisect
import threading
from typing import Any, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    Account,
    Transaction,
    TransactionStatus,
)
from ledgerbook.domain.errors import AccountNotFound, TransactionNotFound
from ledgerbook.domain.values import (
    require_amount,
    require_datetime,
    require_status,
    require_type,
)


def _position(ordered: list[Transaction], transaction_id: int) -> int:
    for index, txn in enumerate(ordered):
        if txn.id == transaction_id:
            return index
    raise TransactionNotFound(transaction_id)


class TransactionStore:
    """Primitive transaction CRUD with ordering rules.

    Every mutation records the earliest position of the account's sequence
    whose balance snapshots may now be wrong. The caller must hand that
    position to the balance recalculator (via ``pop_dirty``) before the
    enclosing unit of work commits; the store never writes snapshots itself.
    """

    def __init__(self, db: Database):
        """Initialize transaction store.

        Args:
            db: Database instance
        """
        self.db = db
        self._dirty: dict[int, int] = {}
        self._dirty_lock = threading.Lock()

    def _require_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def get(self, transaction_id: int) -> Transaction:
        """Get transaction by ID.

        Raises:
            TransactionNotFound: If the transaction doesn't exist
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise TransactionNotFound(transaction_id)
        return txn

    def _mark_dirty(self, account_id: int, index: int) -> None:
        with self._dirty_lock:
            current = self._dirty.get(account_id)
            self._dirty[account_id] = index if current is None else min(current, index)

    def pop_dirty(self, account_id: int) -> Optional[int]:
        """Return and clear the account's dirty-from index, if any."""
        with self._dirty_lock:
            return self._dirty.pop(account_id, None)

    def add(
        self,
        account_id: int,
        type: Any,
        amount: Any,
        date: Any,
        description: Optional[str] = None,
        status: Any = TransactionStatus.COMPLETED,
    ) -> Transaction:
        """Insert a transaction at the position its (date, sequence) key dictates.

        Args:
            account_id: Owning account ID
            type: 'receivable' or 'payable'
            amount: Strictly positive amount
            date: Transaction date or datetime
            description: Optional description
            status: 'pending' or 'completed'

        Returns:
            The new transaction, carrying placeholder snapshots

        Raises:
            AccountNotFound: If the account doesn't exist
            InvalidAmount: If the amount is not positive and finite
            InvalidTransactionType: If the type is unknown
            InvalidDate: If the date is missing or malformed
        """
        self._require_account(account_id)
        txn_type = require_type(type)
        txn_amount = require_amount(amount)
        txn_date = require_datetime(date)
        txn_status = require_status(status)

        ordered = self.db.list_account_transactions(account_id)
        sequence = self.db.allocate_sequence(account_id)
        index = bisect.bisect_right(
            [txn.sort_key for txn in ordered], (txn_date.date(), sequence)
        )

        transaction_id = self.db.create_transaction(
            account_id=account_id,
            type=txn_type,
            amount=txn_amount,
            date=txn_date,
            sequence=sequence,
            description=description,
            status=txn_status,
        )
        self._mark_dirty(account_id, index)
        return self.get(transaction_id)

    def edit(
        self,
        transaction_id: int,
        *,
        type: Any = None,
        amount: Any = None,
        date: Any = None,
        description: Optional[str] = None,
        status: Any = None,
    ) -> Transaction:
        """Apply changes to a transaction's fields.

        Only provided fields are updated. A changed date or signed amount
        marks the account dirty from the earlier of the old and new positions.

        Raises:
            TransactionNotFound: If the transaction doesn't exist
        """
        current = self.get(transaction_id)
        new_type = require_type(type) if type is not None else None
        new_amount = require_amount(amount) if amount is not None else None
        new_date = require_datetime(date) if date is not None else None
        new_status = require_status(status) if status is not None else None

        ordered = self.db.list_account_transactions(current.account_id)
        old_index = _position(ordered, transaction_id)

        self.db.update_transaction(
            transaction_id=transaction_id,
            type=new_type,
            amount=new_amount,
            date=new_date,
            description=description,
            status=new_status,
        )
        updated = self.get(transaction_id)

        if (
            updated.sort_key != current.sort_key
            or updated.signed_amount != current.signed_amount
        ):
            remaining = [txn.sort_key for txn in ordered if txn.id != transaction_id]
            new_index = bisect.bisect_right(remaining, updated.sort_key)
            self._mark_dirty(current.account_id, min(old_index, new_index))
        return updated

    def delete(self, transaction_id: int) -> Transaction:
        """Remove a transaction.

        Returns:
            The removed transaction as it was before deletion

        Raises:
            TransactionNotFound: If the transaction doesn't exist
        """
        current = self.get(transaction_id)
        ordered = self.db.list_account_transactions(current.account_id)
        index = _position(ordered, transaction_id)
        self.db.delete_transaction(transaction_id)
        self._mark_dirty(current.account_id, index)
        return current

    def list_for_account(self, account_id: int) -> tuple[Transaction, ...]:
        """Return the account's full ordered sequence.

        Raises:
            AccountNotFound: If the account doesn't exist
        """
        self._require_account(account_id)
        return tuple(self.db.list_account_transactions(account_id))

"""Ledger invariant checks."""

from typing import Optional, Sequence

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import Account, Transaction
from ledgerbook.domain.errors import AccountNotFound


def find_violation(
    account: Account, ordered: Sequence[Transaction], start: int = 0
) -> Optional[int]:
    """Return the first index at which the snapshot chain breaks.

    Checks, from ``start`` on, that each opening equals the previous closing
    (the anchor for index 0) and that each closing equals opening plus the
    signed amount. Index ``len(ordered)`` means only the account's cached
    current balance disagrees with the chain.
    """
    count = len(ordered)
    start = max(0, min(start, count))
    expected = account.opening_anchor if start == 0 else ordered[start - 1].closing_balance

    for index in range(start, count):
        txn = ordered[index]
        if txn.opening_balance != expected:
            return index
        if txn.closing_balance != txn.opening_balance + txn.signed_amount:
            return index
        expected = txn.closing_balance

    if account.current_balance != expected:
        return count
    return None


class ConsistencyValidator:
    """Checks persisted snapshots against the per-account invariant."""

    def __init__(self, db: Database):
        """Initialize consistency validator.

        Args:
            db: Database instance
        """
        self.db = db

    def validate(self, account_id: int, start: int = 0) -> Optional[int]:
        """Validate one account's ledger.

        Args:
            account_id: Account ID
            start: First index to check; earlier entries are trusted

        Returns:
            First violated index, or None if the ledger is consistent

        Raises:
            AccountNotFound: If the account doesn't exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        ordered = self.db.list_account_transactions(account_id)
        return find_violation(account, ordered, start)

    def validate_all(self) -> dict[int, int]:
        """Validate every account.

        Returns:
            Mapping of account ID to first violated index, for failing accounts only
        """
        violations: dict[int, int] = {}
        for account in self.db.list_accounts():
            index = find_violation(account, self.db.list_account_transactions(account.id))
            if index is not None:
                violations[account.id] = index
        return violations

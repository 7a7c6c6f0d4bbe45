"""Range-bounded read view over one account's ledger."""

from typing import Any, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import ZERO, AccountLedger, TransactionType
from ledgerbook.domain.errors import AccountNotFound, InvalidDate
from ledgerbook.domain.values import to_calendar_date


class VendorLedgerQuery:
    """Projects already-consistent snapshots into an account ledger view."""

    def __init__(self, db: Database):
        """Initialize vendor ledger query.

        Args:
            db: Database instance
        """
        self.db = db

    def query(
        self,
        account_id: int,
        start_date: Optional[Any] = None,
        end_date: Optional[Any] = None,
    ) -> AccountLedger:
        """Return the account's transactions dated within [start_date, end_date].

        Open bounds are unbounded in that direction. When the range holds no
        transactions, opening and closing both equal the balance at that point
        in time: the closing snapshot of the last earlier transaction, or the
        opening anchor if nothing precedes the range.

        Raises:
            AccountNotFound: If the account doesn't exist
            InvalidDate: If a bound is malformed or start_date is after end_date
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        start = to_calendar_date(start_date, "start date") if start_date is not None else None
        end = to_calendar_date(end_date, "end date") if end_date is not None else None
        if start is not None and end is not None and start > end:
            raise InvalidDate(f"Start date {start} is after end date {end}")

        ordered = self.db.list_account_transactions(account_id)
        before = [txn for txn in ordered if start is not None and txn.posting_date < start]
        in_range = [
            txn
            for txn in ordered
            if (start is None or txn.posting_date >= start)
            and (end is None or txn.posting_date <= end)
        ]

        if in_range:
            opening = in_range[0].opening_balance
            closing = in_range[-1].closing_balance
        else:
            opening = before[-1].closing_balance if before else account.opening_anchor
            closing = opening

        return AccountLedger(
            account=account,
            start_date=start,
            end_date=end,
            opening_balance=opening,
            closing_balance=closing,
            transactions=tuple(in_range),
            total_receivable=sum(
                (txn.amount for txn in in_range if txn.type is TransactionType.RECEIVABLE),
                ZERO,
            ),
            total_payable=sum(
                (txn.amount for txn in in_range if txn.type is TransactionType.PAYABLE),
                ZERO,
            ),
        )

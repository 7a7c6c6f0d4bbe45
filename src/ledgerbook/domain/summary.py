"""Day-end summary domain service."""

from collections import defaultdict
from datetime import date
from typing import Any, Sequence

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    ZERO,
    DailySummaryRow,
    DaySummary,
    DaySummaryTotals,
    Transaction,
    TransactionType,
)
from ledgerbook.domain.values import to_calendar_date


class DailySummaryAggregator:
    """Groups one calendar date's transactions into per-account rows.

    Opening and closing balances are read from the snapshots the balance
    recalculator already wrote; nothing is recomputed here.
    """

    def __init__(self, db: Database):
        """Initialize daily summary aggregator.

        Args:
            db: Database instance
        """
        self.db = db

    def transactions_on(self, day: Any) -> list[Transaction]:
        """Get every account's transactions for the date, in ledger order."""
        return self.db.list_transactions_on(to_calendar_date(day))

    def summarize(self, day: Any) -> DaySummary:
        """Build the day-end summary for a date.

        Args:
            day: Calendar date (a datetime is reduced to its date)

        Returns:
            DaySummary with one row per account that has transactions on the date
        """
        summary_date = to_calendar_date(day)
        transactions = self.db.list_transactions_on(summary_date)
        if not transactions:
            return DaySummary(date=summary_date)

        names = {acc.id: acc.display_name for acc in self.db.list_accounts()}
        grouped = self.group_by_account(transactions)
        rows = [
            self.build_row(account_id, names.get(account_id, ""), summary_date, txns)
            for account_id, txns in grouped.items()
        ]
        rows.sort(key=lambda row: (row.display_name, row.account_id))
        return DaySummary(date=summary_date, rows=tuple(rows), totals=self.build_totals(rows))

    def group_by_account(
        self, transactions: Sequence[Transaction]
    ) -> dict[int, list[Transaction]]:
        """Group transactions by account, each group in (date, sequence) order."""
        grouped: dict[int, list[Transaction]] = defaultdict(list)
        for txn in transactions:
            grouped[txn.account_id].append(txn)
        for txns in grouped.values():
            txns.sort(key=lambda txn: txn.sort_key)
        return dict(grouped)

    def build_row(
        self,
        account_id: int,
        display_name: str,
        summary_date: date,
        transactions: Sequence[Transaction],
    ) -> DailySummaryRow:
        """Aggregate one account's transactions for the date into a row."""
        total_receivable = sum(
            (txn.amount for txn in transactions if txn.type is TransactionType.RECEIVABLE),
            ZERO,
        )
        total_payable = sum(
            (txn.amount for txn in transactions if txn.type is TransactionType.PAYABLE),
            ZERO,
        )
        return DailySummaryRow(
            account_id=account_id,
            display_name=display_name,
            date=summary_date,
            opening_balance=transactions[0].opening_balance,
            total_receivable=total_receivable,
            total_payable=total_payable,
            closing_balance=transactions[-1].closing_balance,
            transaction_count=len(transactions),
        )

    def build_totals(self, rows: Sequence[DailySummaryRow]) -> DaySummaryTotals:
        """Sum rows field by field into the day's global totals."""
        opening = sum((row.opening_balance for row in rows), ZERO)
        closing = sum((row.closing_balance for row in rows), ZERO)
        return DaySummaryTotals(
            opening_balance=opening,
            total_receivable=sum((row.total_receivable for row in rows), ZERO),
            total_payable=sum((row.total_payable for row in rows), ZERO),
            closing_balance=closing,
            net_change=closing - opening,
            transaction_count=sum(row.transaction_count for row in rows),
            account_count=len(rows),
        )

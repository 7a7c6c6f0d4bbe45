"""Domain model entities for ledgerbook.

These are pure data classes representing ledger concepts, independent of
database schema. Balance snapshots on a Transaction are derived values; only
the balance recalculator produces them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

MONEY_PLACES = 2
# Largest magnitude, in minor units, that fits the 64-bit storage column.
MAX_MINOR_UNITS = 2**63 - 1
ZERO = Decimal("0")


class TransactionType(str, Enum):
    """Direction of a ledger entry."""

    RECEIVABLE = "receivable"
    PAYABLE = "payable"

    def signed(self, amount: Decimal) -> Decimal:
        """Return the amount with the sign this type applies to the balance."""
        return amount if self is TransactionType.RECEIVABLE else -amount


class TransactionStatus(str, Enum):
    """Settlement status shown on ledger screens."""

    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Account:
    """Vendor or customer ledger account."""

    id: int
    display_name: str
    opening_anchor: Decimal
    current_balance: Decimal
    created_at: datetime
    is_corrupted: bool = False


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction with its opening/closing balance snapshot."""

    id: int
    account_id: int
    type: TransactionType
    amount: Decimal
    date: datetime
    sequence: int
    description: Optional[str]
    status: TransactionStatus
    opening_balance: Decimal
    closing_balance: Decimal
    created_at: datetime

    @property
    def posting_date(self) -> date:
        """Calendar date that governs ordering and day boundaries."""
        return self.date.date()

    @property
    def signed_amount(self) -> Decimal:
        return self.type.signed(self.amount)

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.posting_date, self.sequence)


@dataclass(frozen=True)
class DailySummaryRow:
    """One account's aggregate for one calendar date."""

    account_id: int
    display_name: str
    date: date
    opening_balance: Decimal
    total_receivable: Decimal
    total_payable: Decimal
    closing_balance: Decimal
    transaction_count: int

    @property
    def net_change(self) -> Decimal:
        return self.closing_balance - self.opening_balance


@dataclass(frozen=True)
class DaySummaryTotals:
    """Global totals for one calendar date across all account rows."""

    opening_balance: Decimal = ZERO
    total_receivable: Decimal = ZERO
    total_payable: Decimal = ZERO
    closing_balance: Decimal = ZERO
    net_change: Decimal = ZERO
    transaction_count: int = 0
    account_count: int = 0


@dataclass(frozen=True)
class DaySummary:
    """Day-end summary: per-account rows plus their global totals."""

    date: date
    rows: tuple[DailySummaryRow, ...] = ()
    totals: DaySummaryTotals = field(default_factory=DaySummaryTotals)


@dataclass(frozen=True)
class AccountLedger:
    """Range-bounded view of one account's ledger."""

    account: Account
    start_date: Optional[date]
    end_date: Optional[date]
    opening_balance: Decimal
    closing_balance: Decimal
    transactions: tuple[Transaction, ...]
    total_receivable: Decimal = ZERO
    total_payable: Decimal = ZERO

    @property
    def total_transactions(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class DailyLedger:
    """All transactions posted on one date, with the matching day summary."""

    date: date
    transactions: tuple[Transaction, ...]
    summary: DaySummary


@dataclass(frozen=True)
class AuditReport:
    """Outcome of a consistency audit over every account."""

    checked_accounts: int
    violations: dict[int, int] = field(default_factory=dict)
    repaired: tuple[int, ...] = ()
    corrupted: tuple[int, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.violations

"""Ledger engine: the contract exposed to API and CLI collaborators."""

from decimal import Decimal
from typing import Any, Callable, Optional

from ledgerbook.config import LedgerSettings
from ledgerbook.database.base import Database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.balance import BalanceRecalculator
from ledgerbook.domain.entities import (
    Account,
    AccountLedger,
    AuditReport,
    DailyLedger,
    DaySummary,
    Transaction,
    TransactionStatus,
)
from ledgerbook.domain.errors import (
    AccountCorrupted,
    RecomputeFailure,
    ValidationError,
)
from ledgerbook.domain.ledger_query import VendorLedgerQuery
from ledgerbook.domain.locks import AccountLockManager
from ledgerbook.domain.summary import DailySummaryAggregator
from ledgerbook.domain.transaction import TransactionStore
from ledgerbook.domain.validation import ConsistencyValidator
from ledgerbook.domain.values import to_calendar_date
from ledgerbook.logging_config import get_logger

logger = get_logger("domain.ledger")

EDITABLE_FIELDS = frozenset({"type", "amount", "date", "description", "status"})


class LedgerEngine:
    """Serializes mutations per account and keeps balance snapshots consistent.

    Each mutation holds the account's writer lock and runs the store change
    plus the cascade recompute in a single unit of work, so readers only ever
    observe a fully recomputed ledger.
    """

    def __init__(self, db: Database, settings: Optional[LedgerSettings] = None):
        """Initialize ledger engine.

        Args:
            db: Database instance
            settings: Engine settings (defaults to LedgerSettings())
        """
        self.db = db
        self.settings = settings or LedgerSettings()
        self.locks = AccountLockManager(timeout=self.settings.lock_timeout)
        self.accounts = AccountService(db)
        self.store = TransactionStore(db)
        self.validator = ConsistencyValidator(db)
        self.recalculator = BalanceRecalculator(
            db, self.validator, strict=self.settings.strict_validation
        )
        self.aggregator = DailySummaryAggregator(db)
        self.ledger_query = VendorLedgerQuery(db)

    # Account operations
    def create_account(self, display_name: str, opening_anchor: Any = Decimal("0")) -> Account:
        """Create an account whose balance starts at ``opening_anchor``."""
        with self.db.transaction():
            account_id = self.accounts.create_account(display_name, opening_anchor)
            account = self.accounts.require_account(account_id)
        logger.info(
            "account_created",
            extra={"account_id": account.id, "opening_anchor": str(account.opening_anchor)},
        )
        return account

    def get_account(self, account_id: int) -> Account:
        """Get account by ID.

        Raises:
            AccountNotFound: If the account doesn't exist
        """
        return self.accounts.require_account(account_id)

    def list_accounts(self, search: Optional[str] = None) -> list[Account]:
        """List accounts with their current balances, ordered by name."""
        return self.accounts.list_accounts(search=search)

    def rename_account(self, account_id: int, display_name: str) -> Account:
        """Rename an account under its writer lock."""
        self.accounts.require_account(account_id)
        with self.locks.hold(account_id):
            with self.db.transaction():
                self.accounts.rename_account(account_id, display_name)
                return self.accounts.require_account(account_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that has no transactions."""
        self.accounts.require_account(account_id)
        with self.locks.hold(account_id):
            with self.db.transaction():
                self.accounts.delete_account(account_id)
        self.locks.forget(account_id)
        logger.info("account_deleted", extra={"account_id": account_id})

    # Transaction operations
    def add_transaction(
        self,
        account_id: int,
        type: Any,
        amount: Any,
        date: Any,
        description: Optional[str] = None,
        status: Any = TransactionStatus.COMPLETED,
    ) -> Transaction:
        """Add a transaction and cascade the balances after it.

        Returns:
            The new transaction with its final snapshots
        """
        txn = self._mutate(
            account_id,
            lambda: self.store.add(
                account_id=account_id,
                type=type,
                amount=amount,
                date=date,
                description=description,
                status=status,
            ).id,
        )
        logger.info(
            "transaction_added",
            extra={"account_id": account_id, "transaction_id": txn.id, "sequence": txn.sequence},
        )
        return txn

    def edit_transaction(self, transaction_id: int, **fields: Any) -> Transaction:
        """Edit amount, type, date, description or status of a transaction.

        Returns:
            The edited transaction with its recomputed snapshots

        Raises:
            TransactionNotFound: If the transaction doesn't exist
            ValidationError: If an unknown field is given
        """
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit transaction field(s): {', '.join(unknown)}")

        account_id = self.store.get(transaction_id).account_id
        txn = self._mutate(
            account_id, lambda: self.store.edit(transaction_id, **fields).id
        )
        logger.info(
            "transaction_edited",
            extra={
                "account_id": account_id,
                "transaction_id": transaction_id,
                "fields": ",".join(sorted(fields)),
            },
        )
        return txn

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and cascade the balances after it.

        Raises:
            TransactionNotFound: If the transaction doesn't exist
        """
        account_id = self.store.get(transaction_id).account_id

        def remove() -> None:
            self.store.delete(transaction_id)

        self._mutate(account_id, remove)
        logger.info(
            "transaction_deleted",
            extra={"account_id": account_id, "transaction_id": transaction_id},
        )

    def list_transactions(self, account_id: int) -> tuple[Transaction, ...]:
        """Get the account's full ordered transaction sequence."""
        with self.db.transaction():
            return self.store.list_for_account(account_id)

    # Read views
    def get_account_ledger(
        self,
        account_id: int,
        start_date: Optional[Any] = None,
        end_date: Optional[Any] = None,
    ) -> AccountLedger:
        """Get the account's ledger for an inclusive date range."""
        with self.db.transaction():
            return self.ledger_query.query(account_id, start_date, end_date)

    def get_day_summary(self, day: Any) -> DaySummary:
        """Get the day-end summary for a calendar date."""
        if self.settings.preflight_reads:
            self._preflight(day)
        with self.db.transaction():
            return self.aggregator.summarize(day)

    def get_daily_ledger(self, day: Any) -> DailyLedger:
        """Get every transaction posted on a date together with its summary."""
        if self.settings.preflight_reads:
            self._preflight(day)
        with self.db.transaction():
            transactions = self.aggregator.transactions_on(day)
            summary = self.aggregator.summarize(day)
        return DailyLedger(
            date=to_calendar_date(day), transactions=tuple(transactions), summary=summary
        )

    # Consistency
    def audit(self) -> AuditReport:
        """Validate every account and rebuild the ones that fail.

        Accounts whose rebuild also fails are flagged corrupted and reported.
        """
        accounts = self.accounts.list_accounts()
        violations = self.validator.validate_all()
        repaired: list[int] = []
        corrupted: list[int] = []

        for account_id, index in sorted(violations.items()):
            logger.error("audit_violation", extra={"account_id": account_id, "index": index})
            try:
                self.repair_account(account_id)
            except AccountCorrupted:
                corrupted.append(account_id)
            else:
                repaired.append(account_id)

        return AuditReport(
            checked_accounts=len(accounts),
            violations=violations,
            repaired=tuple(repaired),
            corrupted=tuple(corrupted),
        )

    def repair_account(self, account_id: int) -> Account:
        """Rebuild an account from its anchor and clear its corrupted flag.

        Raises:
            AccountNotFound: If the account doesn't exist
            AccountCorrupted: If the rebuilt ledger still fails validation
        """
        self.accounts.require_account(account_id)
        with self.locks.hold(account_id):
            try:
                with self.db.transaction():
                    self.accounts.require_account(account_id)
                    self._rebuild_or_corrupt(account_id)
                    self.db.set_account_corrupted(account_id, False)
            except AccountCorrupted:
                self._mark_corrupted(account_id)
                raise
            return self.accounts.require_account(account_id)

    def _preflight(self, day: Any) -> None:
        account_ids = {txn.account_id for txn in self.aggregator.transactions_on(day)}
        for account_id in sorted(account_ids):
            index = self.validator.validate(account_id)
            if index is not None:
                logger.error(
                    "audit_violation", extra={"account_id": account_id, "index": index}
                )
                self.repair_account(account_id)

    def _mutate(
        self, account_id: int, operation: Callable[[], Optional[int]]
    ) -> Optional[Transaction]:
        """Run a store operation and its recompute atomically under the account lock.

        ``operation`` returns the ID of the transaction to hand back, or None.
        """
        # Unknown accounts must not leave an entry in the lock registry.
        self.accounts.require_account(account_id)
        with self.locks.hold(account_id):
            account = self.accounts.require_account(account_id)
            if account.is_corrupted:
                raise AccountCorrupted(account_id)
            try:
                try:
                    with self.db.transaction():
                        transaction_id = operation()
                        self._recompute(account_id)
                        if transaction_id is None:
                            return None
                        return self.store.get(transaction_id)
                except AccountCorrupted:
                    self._mark_corrupted(account_id)
                    raise
            finally:
                # Aborted mutations may leave a dirty mark behind.
                self.store.pop_dirty(account_id)

    def _recompute(self, account_id: int) -> None:
        dirty_from = self.store.pop_dirty(account_id)
        if dirty_from is None:
            return
        try:
            self.recalculator.recalculate(account_id, dirty_from)
        except RecomputeFailure as exc:
            logger.error(
                "recompute_failed",
                extra={"account_id": account_id, "index": exc.index, "dirty_from": dirty_from},
            )
            self._rebuild_or_corrupt(account_id)

    def _rebuild_or_corrupt(self, account_id: int) -> None:
        try:
            self.recalculator.rebuild(account_id)
        except RecomputeFailure as exc:
            logger.critical(
                "account_corrupted", extra={"account_id": account_id, "index": exc.index}
            )
            raise AccountCorrupted(account_id, exc.index) from exc
        logger.warning("account_rebuilt", extra={"account_id": account_id})

    def _mark_corrupted(self, account_id: int) -> None:
        with self.db.transaction():
            self.db.set_account_corrupted(account_id, True)

"""Cascading balance recalculation."""

from decimal import Decimal
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.errors import AccountNotFound, InvalidAmount, RecomputeFailure
from ledgerbook.domain.validation import ConsistencyValidator
from ledgerbook.domain.values import is_storable
from ledgerbook.logging_config import get_logger

logger = get_logger("domain.balance")


class BalanceRecalculator:
    """Re-derives opening/closing snapshots after a mutation.

    This is the only writer of transaction snapshots and of an account's
    cached current balance.
    """

    def __init__(
        self,
        db: Database,
        validator: Optional[ConsistencyValidator] = None,
        strict: bool = False,
    ):
        """Initialize balance recalculator.

        Args:
            db: Database instance
            validator: Validator run after each pass (defaults to one over ``db``)
            strict: Validate the whole account rather than the recomputed suffix
        """
        self.db = db
        self.validator = validator or ConsistencyValidator(db)
        self.strict = strict

    def recalculate(self, account_id: int, dirty_from: int = 0) -> Decimal:
        """Walk the account's sequence from ``dirty_from`` and fix snapshots.

        Only the suffix is walked, and only rows whose snapshot differs are
        written, so a repeated call with no intervening mutation writes nothing.

        Args:
            account_id: Account ID
            dirty_from: Index of the earliest possibly-stale transaction

        Returns:
            The account's new current balance

        Raises:
            AccountNotFound: If the account doesn't exist
            InvalidAmount: If a running balance would be too large to store
            RecomputeFailure: If the snapshots fail validation afterwards
        """
        return self._run(account_id, dirty_from, full_check=self.strict)

    def rebuild(self, account_id: int) -> Decimal:
        """Replay the account's full sequence from its opening anchor.

        Raises:
            RecomputeFailure: If the rebuilt ledger still fails validation
        """
        return self._run(account_id, 0, full_check=True)

    def _run(self, account_id: int, dirty_from: int, full_check: bool) -> Decimal:
        account = self.db.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        ordered = self.db.list_account_transactions(account_id)

        start = max(0, min(dirty_from, len(ordered)))
        opening = account.opening_anchor if start == 0 else ordered[start - 1].closing_balance

        changed: list[tuple[int, Decimal, Decimal]] = []
        for txn in ordered[start:]:
            closing = opening + txn.signed_amount
            if not is_storable(closing):
                raise InvalidAmount(
                    f"Balance of account {account_id} would reach {closing}, which is out of range"
                )
            if txn.opening_balance != opening or txn.closing_balance != closing:
                changed.append((txn.id, opening, closing))
            opening = closing

        if changed:
            self.db.update_snapshots(changed)
        if account.current_balance != opening:
            self.db.set_account_balance(account_id, opening)

        logger.debug(
            "balances_recomputed",
            extra={
                "account_id": account_id,
                "dirty_from": start,
                "rows_written": len(changed),
            },
        )

        index = self.validator.validate(account_id, start=0 if full_check else start)
        if index is not None:
            raise RecomputeFailure(account_id, index)
        return opening

"""Tests for LedgerEngine mutations, recovery and concurrency."""

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from ledgerbook.config import LedgerSettings
from ledgerbook.domain.entities import TransactionStatus, TransactionType
from ledgerbook.domain.errors import (
    AccountCorrupted,
    AccountNotFound,
    ConcurrentModification,
    ConflictError,
    DependencyError,
    InvalidAmount,
    TransactionNotFound,
    ValidationError,
)
from ledgerbook.domain.ledger import LedgerEngine


def _chain(engine, account_id):
    return [
        (txn.opening_balance, txn.closing_balance)
        for txn in engine.list_transactions(account_id)
    ]


class TestAccounts:
    """Account operations exposed by the engine."""

    def test_create_and_list(self, engine):
        engine.create_account("Ali Paints", Decimal("250.50"))
        engine.create_account("Berger Depot")

        accounts = engine.list_accounts()
        assert [acc.display_name for acc in accounts] == ["Ali Paints", "Berger Depot"]
        assert accounts[0].current_balance == Decimal("250.50")
        assert accounts[1].opening_anchor == Decimal("0")

    def test_search(self, engine):
        engine.create_account("Ali Paints")
        engine.create_account("Berger Depot")

        assert [acc.display_name for acc in engine.list_accounts(search="paint")] == [
            "Ali Paints"
        ]

    def test_duplicate_name(self, engine, sample_account):
        with pytest.raises(ConflictError):
            engine.create_account("Ali Paints")

    def test_empty_name(self, engine):
        with pytest.raises(ValidationError):
            engine.create_account("   ")

    def test_rename(self, engine, sample_account):
        renamed = engine.rename_account(sample_account.id, "Ali Paints & Hardware")
        assert renamed.display_name == "Ali Paints & Hardware"

    def test_delete_blocked_by_transactions(self, engine, sample_account, add):
        add(sample_account.id, "receivable", 5, "2024-01-01")
        with pytest.raises(DependencyError):
            engine.delete_account(sample_account.id)

    def test_delete_empty_account(self, engine, sample_account):
        engine.delete_account(sample_account.id)
        assert engine.list_accounts() == []


class TestMutations:
    """Transaction mutations keep the snapshot chain intact."""

    def test_add_logs_event(self, engine, sample_account, add, caplog):
        caplog.set_level(logging.INFO, logger="ledgerbook")
        txn = add(sample_account.id, "receivable", 5, "2024-01-01")

        record = next(r for r in caplog.records if r.getMessage() == "transaction_added")
        assert record.transaction_id == txn.id
        assert record.account_id == sample_account.id

    def test_edit_amount_cascades(self, engine, sample_account, add):
        first = add(sample_account.id, "receivable", 500, "2024-01-01")
        add(sample_account.id, "payable", 200, "2024-01-03")

        edited = engine.edit_transaction(first.id, amount=Decimal("800"))

        assert edited.closing_balance == Decimal("1800")
        assert _chain(engine, sample_account.id)[-1] == (Decimal("1800"), Decimal("1600"))
        assert engine.get_account(sample_account.id).current_balance == Decimal("1600")

    def test_edit_type_flips_sign(self, engine, sample_account, add):
        txn = add(sample_account.id, "receivable", 100, "2024-01-01")
        edited = engine.edit_transaction(txn.id, type=TransactionType.PAYABLE)
        assert edited.closing_balance == Decimal("900")

    def test_description_and_status_edit_write_no_snapshots(
        self, temp_db, engine, sample_account, add, monkeypatch
    ):
        txn = add(sample_account.id, "receivable", 100, "2024-01-01")
        add(sample_account.id, "payable", 10, "2024-01-02")
        calls = []
        monkeypatch.setattr(temp_db, "update_snapshots", lambda rows: calls.append(rows))

        edited = engine.edit_transaction(
            txn.id, description="Weathershield 20L", status=TransactionStatus.PENDING
        )

        assert calls == []
        assert edited.description == "Weathershield 20L"
        assert edited.status is TransactionStatus.PENDING
        assert edited.closing_balance == Decimal("1100")

    def test_move_to_earlier_date_reorders(self, engine, sample_account, add):
        a = add(sample_account.id, "receivable", 100, "2024-01-01")
        b = add(sample_account.id, "payable", 50, "2024-01-05")

        engine.edit_transaction(b.id, date=datetime(2023, 12, 30, 12, 0))

        ordered = engine.list_transactions(sample_account.id)
        assert [txn.id for txn in ordered] == [b.id, a.id]
        assert _chain(engine, sample_account.id) == [
            (Decimal("1000"), Decimal("950")),
            (Decimal("950"), Decimal("1050")),
        ]

    def test_delete_last_updates_balance(self, engine, sample_account, add):
        add(sample_account.id, "receivable", 100, "2024-01-01")
        last = add(sample_account.id, "receivable", 40, "2024-01-02")

        engine.delete_transaction(last.id)

        assert engine.get_account(sample_account.id).current_balance == Decimal("1100")

    def test_delete_only_transaction_resets_to_anchor(self, engine, sample_account, add):
        txn = add(sample_account.id, "payable", 100, "2024-01-01")
        engine.delete_transaction(txn.id)
        assert engine.get_account(sample_account.id).current_balance == Decimal("1000")

    def test_edit_unknown_field(self, engine, sample_account, add):
        txn = add(sample_account.id, "receivable", 1, "2024-01-01")
        with pytest.raises(ValidationError):
            engine.edit_transaction(txn.id, account_id=99)

    def test_edit_and_delete_unknown_transaction(self, engine):
        with pytest.raises(TransactionNotFound):
            engine.edit_transaction(77, amount=1)
        with pytest.raises(TransactionNotFound):
            engine.delete_transaction(77)

    def test_failed_add_leaves_ledger_untouched(self, engine, sample_account, add):
        add(sample_account.id, "receivable", 1, "2024-01-01")
        with pytest.raises(ValidationError):
            engine.add_transaction(sample_account.id, "receivable", 0, date(2024, 1, 2))
        assert len(engine.list_transactions(sample_account.id)) == 1
        assert engine.store.pop_dirty(sample_account.id) is None

    def test_amount_too_large_to_store(self, engine, sample_account):
        with pytest.raises(InvalidAmount, match="out of range"):
            engine.add_transaction(
                sample_account.id, "receivable", Decimal("100000000000000000"), date(2024, 1, 1)
            )
        assert engine.list_transactions(sample_account.id) == ()

    def test_running_balance_too_large_to_store(self, engine, sample_account, add):
        add(sample_account.id, "receivable", Decimal("50000000000000000"), "2024-01-01")

        with pytest.raises(InvalidAmount, match="out of range"):
            engine.add_transaction(
                sample_account.id, "receivable", Decimal("50000000000000000"), date(2024, 1, 2)
            )

        account = engine.get_account(sample_account.id)
        assert account.current_balance == Decimal("50000000000001000")
        assert not account.is_corrupted
        assert len(engine.list_transactions(sample_account.id)) == 1
        assert engine.validator.validate_all() == {}

    def test_edit_pushing_balance_out_of_range_is_rolled_back(
        self, engine, sample_account, add
    ):
        first = add(sample_account.id, "receivable", Decimal("40000000000000000"), "2024-01-01")
        add(sample_account.id, "receivable", Decimal("40000000000000000"), "2024-01-02")
        before = _chain(engine, sample_account.id)

        with pytest.raises(InvalidAmount):
            engine.edit_transaction(first.id, amount=Decimal("60000000000000000"))

        assert _chain(engine, sample_account.id) == before
        assert engine.store.get(first.id).amount == Decimal("40000000000000000")
        assert not engine.get_account(sample_account.id).is_corrupted


class TestRecovery:
    """Validation failures trigger a rebuild, then corruption."""

    def test_transient_failure_is_rebuilt(
        self, temp_db, engine, sample_account, add, monkeypatch, caplog
    ):
        caplog.set_level(logging.INFO, logger="ledgerbook")
        original = temp_db.update_snapshots
        dropped = []

        def drop_first(rows):
            if not dropped:
                dropped.append(list(rows))
                return None
            return original(rows)

        monkeypatch.setattr(temp_db, "update_snapshots", drop_first)

        txn = add(sample_account.id, "receivable", 500, "2024-01-01")

        assert txn.closing_balance == Decimal("1500")
        messages = [record.getMessage() for record in caplog.records]
        assert "recompute_failed" in messages
        assert "account_rebuilt" in messages
        assert not engine.get_account(sample_account.id).is_corrupted

    def test_persistent_failure_corrupts_account(
        self, temp_db, engine, sample_account, add, monkeypatch, caplog
    ):
        caplog.set_level(logging.INFO, logger="ledgerbook")
        add(sample_account.id, "receivable", 500, "2024-01-01")
        monkeypatch.setattr(temp_db, "update_snapshots", lambda rows: None)

        with pytest.raises(AccountCorrupted):
            add(sample_account.id, "payable", 100, "2023-12-01")

        account = engine.get_account(sample_account.id)
        assert account.is_corrupted
        # The failed mutation was rolled back
        assert len(engine.list_transactions(sample_account.id)) == 1
        assert "account_corrupted" in [record.getMessage() for record in caplog.records]

        with pytest.raises(AccountCorrupted):
            add(sample_account.id, "receivable", 1, "2024-02-01")

        monkeypatch.undo()
        repaired = engine.repair_account(sample_account.id)
        assert not repaired.is_corrupted
        assert repaired.current_balance == Decimal("1500")
        add(sample_account.id, "receivable", 1, "2024-02-01")

    def test_other_accounts_unaffected_by_corruption(
        self, temp_db, engine, add, monkeypatch
    ):
        broken = engine.create_account("Broken", Decimal("0"))
        healthy = engine.create_account("Healthy", Decimal("0"))
        original = temp_db.update_snapshots
        txn = add(broken.id, "receivable", 10, "2024-01-01")

        temp_db.update_snapshots([(txn.id, Decimal("3"), Decimal("13"))])
        monkeypatch.setattr(temp_db, "update_snapshots", lambda rows: None)
        with pytest.raises(AccountCorrupted):
            engine.repair_account(broken.id)
        monkeypatch.setattr(temp_db, "update_snapshots", original)

        assert engine.get_account(broken.id).is_corrupted
        assert add(healthy.id, "receivable", 5, "2024-01-01").closing_balance == Decimal("5")


class TestAudit:
    """Consistency audit over every account."""

    def test_clean_audit(self, engine, sample_account, add):
        add(sample_account.id, "receivable", 1, "2024-01-01")
        report = engine.audit()
        assert report.is_clean
        assert report.checked_accounts == 1

    def test_audit_repairs_external_tampering(self, temp_db, engine, sample_account, add):
        add(sample_account.id, "receivable", 500, "2024-01-01")
        second = add(sample_account.id, "payable", 200, "2024-01-02")
        temp_db.update_snapshots([(second.id, Decimal("0"), Decimal("-200"))])

        report = engine.audit()

        assert report.violations == {sample_account.id: 1}
        assert report.repaired == (sample_account.id,)
        assert report.corrupted == ()
        assert engine.validator.validate_all() == {}
        assert _chain(engine, sample_account.id)[1] == (Decimal("1500"), Decimal("1300"))

    def test_audit_detects_stale_balance(self, temp_db, engine, sample_account, add):
        add(sample_account.id, "receivable", 500, "2024-01-01")
        temp_db.set_account_balance(sample_account.id, Decimal("0"))

        report = engine.audit()

        assert report.violations == {sample_account.id: 1}
        assert engine.get_account(sample_account.id).current_balance == Decimal("1500")

    def test_audit_reports_unrepairable(
        self, temp_db, engine, sample_account, add, monkeypatch
    ):
        txn = add(sample_account.id, "receivable", 500, "2024-01-01")
        temp_db.update_snapshots([(txn.id, Decimal("0"), Decimal("500"))])
        monkeypatch.setattr(temp_db, "update_snapshots", lambda rows: None)

        report = engine.audit()

        assert report.corrupted == (sample_account.id,)
        assert engine.get_account(sample_account.id).is_corrupted

    def test_preflight_reads_repair_before_summary(self, temp_db, sample_account, add):
        engine = LedgerEngine(temp_db, LedgerSettings(preflight_reads=True))
        txn = add(sample_account.id, "receivable", 500, "2024-01-01")
        temp_db.update_snapshots([(txn.id, Decimal("0"), Decimal("500"))])

        summary = engine.get_day_summary(date(2024, 1, 1))

        assert summary.rows[0].opening_balance == Decimal("1000")
        assert summary.rows[0].closing_balance == Decimal("1500")


class TestConcurrency:
    """Per-account writer locks."""

    def test_lock_timeout(self, temp_db, sample_account):
        engine = LedgerEngine(temp_db, LedgerSettings(lock_timeout=0.05))

        with engine.locks.hold(sample_account.id):
            with pytest.raises(ConcurrentModification) as exc_info:
                engine.add_transaction(
                    sample_account.id, "receivable", Decimal("1"), date(2024, 1, 1)
                )
        assert exc_info.value.account_id == sample_account.id
        assert engine.list_transactions(sample_account.id) == ()

    def test_different_accounts_do_not_contend(self, temp_db, engine, add):
        first = engine.create_account("First", Decimal("0"))
        second = engine.create_account("Second", Decimal("0"))

        with engine.locks.hold(first.id):
            txn = add(second.id, "receivable", 5, "2024-01-01")
        assert txn.closing_balance == Decimal("5")

    def test_unknown_account_takes_no_lock(self, engine):
        with pytest.raises(AccountNotFound):
            engine.add_transaction(999, "receivable", Decimal("1"), date(2024, 1, 1))
        with pytest.raises(AccountNotFound):
            engine.rename_account(999, "Ghost")
        with pytest.raises(AccountNotFound):
            engine.repair_account(999)
        with pytest.raises(AccountNotFound):
            engine.delete_account(999)

        assert 999 not in engine.locks._locks

    def test_concurrent_adds_keep_invariant(self, temp_db, engine):
        accounts = [
            engine.create_account(f"Vendor {n}", Decimal(n * 100)) for n in range(3)
        ]
        rng = random.Random(7)
        jobs = [
            (
                rng.choice(accounts).id,
                rng.choice(["receivable", "payable"]),
                Decimal(rng.randint(1, 50000)) / 100,
                datetime(2024, 1, 1) + timedelta(days=rng.randint(0, 30)),
            )
            for _ in range(60)
        ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda job: engine.add_transaction(*job), jobs))

        assert engine.validator.validate_all() == {}
        for account in accounts:
            expected = account.opening_anchor + sum(
                (
                    TransactionType(type).signed(amount)
                    for account_id, type, amount, _ in jobs
                    if account_id == account.id
                ),
                Decimal("0"),
            )
            assert engine.get_account(account.id).current_balance == expected

    def test_readers_never_see_partial_recompute(self, temp_db, sample_account):
        engine = LedgerEngine(
            temp_db, LedgerSettings(strict_validation=True, lock_timeout=30.0)
        )
        account_id = sample_account.id
        anchor = sample_account.opening_anchor
        days = [date(2024, 1, 1) + timedelta(days=n) for n in range(5)]
        writers_done = threading.Event()
        failures = []
        failures_lock = threading.Lock()

        def record(message):
            with failures_lock:
                failures.append(message)

        def check_ledger():
            ledger = engine.get_account_ledger(account_id)
            expected_opening = anchor
            for txn in ledger.transactions:
                if txn.opening_balance != expected_opening:
                    record(f"transaction {txn.id} opens at {txn.opening_balance}")
                if txn.closing_balance != txn.opening_balance + txn.signed_amount:
                    record(f"transaction {txn.id} closes at {txn.closing_balance}")
                expected_opening = txn.closing_balance
            if ledger.closing_balance != expected_opening:
                record(f"ledger closes at {ledger.closing_balance}")
            if ledger.account.current_balance != ledger.closing_balance:
                record(f"account balance {ledger.account.current_balance} is stale")

        def check_summary(day):
            for row in engine.get_day_summary(day).rows:
                if row.net_change != row.total_receivable - row.total_payable:
                    record(f"summary row for {day} moves by {row.net_change}")

        def reader(seed):
            rng = random.Random(seed)
            try:
                while not writers_done.is_set():
                    check_ledger()
                    check_summary(rng.choice(days))
            except Exception as exc:
                record(f"reader failed: {exc!r}")

        def writer(seed):
            rng = random.Random(seed)
            owned = []
            try:
                for _ in range(6):
                    txn = engine.add_transaction(
                        account_id,
                        rng.choice(["receivable", "payable"]),
                        Decimal(rng.randint(1, 90000)) / 100,
                        datetime.combine(rng.choice(days), datetime.min.time()),
                    )
                    owned.append(txn.id)
                for transaction_id in owned[:3]:
                    engine.edit_transaction(
                        transaction_id,
                        date=datetime.combine(rng.choice(days), datetime.min.time()),
                    )
                for transaction_id in owned[3:5]:
                    engine.delete_transaction(transaction_id)
            except Exception as exc:
                record(f"writer failed: {exc!r}")

        with ThreadPoolExecutor(max_workers=7) as pool:
            readers = [pool.submit(reader, seed) for seed in range(3)]
            writers = [pool.submit(writer, seed) for seed in range(10, 14)]
            for future in writers:
                future.result()
            writers_done.set()
            for future in readers:
                future.result()

        assert failures == []
        assert engine.validator.validate_all() == {}
        assert len(engine.list_transactions(account_id)) == 4 * 4
        check_ledger()
        assert failures == []

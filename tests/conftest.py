"""Shared pytest fixtures for ledgerbook tests."""

import logging
import tempfile
import os
from datetime import datetime
from decimal import Decimal
import pytest

from ledgerbook.config import LedgerSettings
from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.ledger import LedgerEngine
from ledgerbook.domain.transaction import TransactionStore


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def settings():
    """Settings used by engine tests: strict validation, short lock timeout."""
    return LedgerSettings(strict_validation=True, lock_timeout=2.0)


@pytest.fixture
def engine(temp_db, settings):
    """Create a LedgerEngine over a temporary database."""
    return LedgerEngine(temp_db, settings)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_store(temp_db):
    """Create a TransactionStore with a temporary database."""
    return TransactionStore(temp_db)


@pytest.fixture
def sample_account(engine):
    """Create a sample account with an opening balance of 1000."""
    return engine.create_account("Ali Paints", Decimal("1000"))


@pytest.fixture
def add(engine):
    """Shortcut for adding transactions through the engine."""

    def _add(account_id, type, amount, date, **kwargs):
        if isinstance(date, str):
            date = datetime.fromisoformat(date)
        return engine.add_transaction(account_id, type, Decimal(str(amount)), date, **kwargs)

    return _add


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture(autouse=True)
def reset_ledgerbook_logging():
    """Drop handlers the CLI installs so later tests don't write to closed streams."""
    yield
    root = logging.getLogger("ledgerbook")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)

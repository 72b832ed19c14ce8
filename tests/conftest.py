"""Shared pytest fixtures for ledgerkit tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.category import CategoryService
from ledgerkit.domain.entities import AccountType, CreateTransactionRequest, TransactionType
from ledgerkit.domain.report import ReportService
from ledgerkit.domain.snapshot import SnapshotService
from ledgerkit.domain.transaction import TransactionService

OWNER = "alice"
OTHER_USER = "bob"


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
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db)


@pytest.fixture
def snapshot_service(temp_db):
    """Create a SnapshotService with a temporary database."""
    return SnapshotService(temp_db)


@pytest.fixture
def report_service(temp_db, snapshot_service):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db, snapshot_service)


@pytest.fixture
def checking(account_service):
    """A standard account owned by OWNER with an opening balance of 1000.00."""
    account_id = account_service.create_account(
        owner_id=OWNER,
        name="Checking",
        type=AccountType.STANDARD,
        initial_balance=Decimal("1000.00"),
    )
    return account_service.get_account(OWNER, account_id)


@pytest.fixture
def savings(account_service):
    """A second standard account owned by OWNER."""
    account_id = account_service.create_account(owner_id=OWNER, name="Savings")
    return account_service.get_account(OWNER, account_id)


@pytest.fixture
def card(account_service):
    """A credit card owned by OWNER closing on the 10th with a 5000.00 limit."""
    account_id = account_service.create_account(
        owner_id=OWNER,
        name="Visa",
        type=AccountType.CREDIT,
        closing_day=10,
        due_day=20,
        credit_limit=Decimal("5000.00"),
    )
    return account_service.get_account(OWNER, account_id)


@pytest.fixture
def groceries(temp_db):
    """A global category."""
    return temp_db.create_category(name="Groceries")


@pytest.fixture
def make_request():
    """Build a CreateTransactionRequest with sensible defaults."""

    def _make(account_id, amount="100.00", **overrides):
        fields = {
            "account_id": account_id,
            "type": TransactionType.EXPENSE,
            "amount": Decimal(amount),
            "description": "Test entry",
            "date": date(2025, 1, 15),
        }
        fields.update(overrides)
        return CreateTransactionRequest(**fields)

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

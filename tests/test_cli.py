"""Tests for transaction, report and snapshot commands."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerkit.cli.main import cli
from ledgerkit.domain.entities import TransactionFilter, TransactionType


def _invoke(cli_runner, temp_db, *args, user="alice", input=None):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--user", user, *args], input=input
    )


def _entries(temp_db, account_id):
    return list(reversed(temp_db.list_transactions(TransactionFilter(account_id=account_id, limit=100))))


def test_add_expense(cli_runner, temp_db, checking):
    """Test adding a plain expense by account name."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Checking",
        "--amount",
        "50.00",
        "--description",
        "Groceries",
        "--date",
        "2025-01-15",
    )

    assert result.exit_code == 0
    assert "Created 1 transaction" in result.output
    assert "Groceries" in result.output
    [txn] = _entries(temp_db, checking.id)
    assert txn.amount == Decimal("-50.00")
    assert txn.date == date(2025, 1, 15)


def test_add_updates_snapshots(cli_runner, temp_db, checking):
    """Test adding an entry brings the daily snapshots up to date."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        str(checking.id),
        "--type",
        "income",
        "--amount",
        "250",
        "--description",
        "Refund",
        "--date",
        "2025-01-15",
    )

    assert result.exit_code == 0
    assert temp_db.get_snapshot(checking.id, date(2025, 1, 15)).balance == Decimal("1250.00")
    assert temp_db.get_snapshot(checking.id, date.today()).balance == Decimal("1250.00")


def test_add_installments(cli_runner, temp_db, card):
    """Test splitting a card purchase into installments."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Visa",
        "--amount",
        "100",
        "--description",
        "Headphones",
        "--installments",
        "3",
        "--date",
        "2025-01-05",
    )

    assert result.exit_code == 0
    assert "Created 3 transactions" in result.output
    assert "[3/3]" in result.output
    assert "invoice 2025-03" in result.output
    assert [t.amount for t in _entries(temp_db, card.id)] == [
        Decimal("-33.33"),
        Decimal("-33.33"),
        Decimal("-33.34"),
    ]


def test_add_recurring(cli_runner, temp_db, checking):
    """Test creating a recurring series."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Checking",
        "--type",
        "income",
        "--amount",
        "3000",
        "--description",
        "Salary",
        "--repeat",
        "monthly",
        "--count",
        "4",
        "--date",
        "2025-01-05",
    )

    assert result.exit_code == 0
    assert "Created 4 transactions" in result.output
    assert len(_entries(temp_db, checking.id)) == 4


def test_add_recurring_on_card_refused(cli_runner, temp_db, card):
    """Test recurring entries are refused on credit cards."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Visa",
        "--amount",
        "10",
        "--description",
        "Streaming",
        "--repeat",
        "monthly",
        "--count",
        "3",
    )

    assert result.exit_code == 1
    assert "not allowed on credit cards" in result.output


def test_add_count_without_repeat(cli_runner, temp_db, checking):
    """Test --count needs --repeat."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Checking",
        "--amount",
        "10",
        "--description",
        "Oops",
        "--count",
        "3",
    )

    assert result.exit_code == 1
    assert "require --repeat" in result.output


def test_add_transfer(cli_runner, temp_db, checking, savings):
    """Test a transfer between two accounts."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Checking",
        "--type",
        "transfer",
        "--to",
        "Savings",
        "--amount",
        "200",
        "--description",
        "Saving up",
        "--date",
        "2025-01-15",
    )

    assert result.exit_code == 0
    assert "Created 2 transactions" in result.output
    assert temp_db.get_snapshot(savings.id, date.today()).balance == Decimal("200.00")
    assert temp_db.get_snapshot(checking.id, date.today()).balance == Decimal("800.00")


@pytest.mark.parametrize(
    "args,message",
    [
        (["--amount", "-5"], "Invalid amount"),
        (["--amount", "abc"], "Invalid amount"),
        (["--amount", "5", "--date", "not a date"], "Invalid date"),
        (["--amount", "5", "--category", "Nope"], "Category 'Nope' not found"),
        (["--amount", "5", "--invoice-month", "2025-1"], "Invalid invoice month"),
    ],
)
def test_add_invalid_input(cli_runner, temp_db, checking, args, message):
    """Test bad input is reported with an error and exit code 1."""
    result = _invoke(
        cli_runner, temp_db, "add", "--account", "Checking", "--description", "Bad", *args
    )

    assert result.exit_code == 1
    assert message in result.output


def test_add_unknown_account(cli_runner, temp_db):
    """Test adding to an account that does not exist."""
    result = _invoke(
        cli_runner, temp_db, "add", "--account", "Nope", "--amount", "5", "--description", "x"
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_with_category_name(cli_runner, temp_db, checking, groceries):
    """Test categories can be given by name, case-insensitively."""
    result = _invoke(
        cli_runner,
        temp_db,
        "add",
        "--account",
        "Checking",
        "--amount",
        "5",
        "--description",
        "Apples",
        "--category",
        "groceries",
    )

    assert result.exit_code == 0
    assert _entries(temp_db, checking.id)[0].category_id == groceries


def test_transaction_list(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test listing with pagination hints."""
    for day in (1, 2, 3):
        transaction_service.create(
            "alice", make_request(checking.id, description=f"Day {day}", date=date(2025, 1, day))
        )

    result = _invoke(cli_runner, temp_db, "transaction", "list", "--limit", "2")

    assert result.exit_code == 0
    assert "Day 3" in result.output
    assert "Day 2" in result.output
    assert "Day 1" not in result.output
    assert "More results: --cursor" in result.output


def test_transaction_list_empty(cli_runner, temp_db, checking):
    """Test listing with no transactions."""
    result = _invoke(cli_runner, temp_db, "transaction", "list", "--account", "Checking")

    assert result.exit_code == 0
    assert "No transactions found" in result.output


def test_transaction_list_invalid_limit(cli_runner, temp_db):
    """Test the page size limit."""
    result = _invoke(cli_runner, temp_db, "transaction", "list", "--limit", "500")

    assert result.exit_code == 1
    assert "Limit must be between 1 and 100" in result.output


def test_transaction_show(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test showing an installment with its series."""
    entries = transaction_service.create(
        "alice", make_request(checking.id, "90.00", total_installments=3)
    ).result

    result = _invoke(cli_runner, temp_db, "transaction", "show", str(entries[1].id))

    assert result.exit_code == 0
    assert f"Transaction {entries[1].id}" in result.output
    assert "Installment series (3 entries)" in result.output


def test_transaction_show_hidden(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test other users cannot see the transaction."""
    txn = transaction_service.create("alice", make_request(checking.id)).result

    result = _invoke(cli_runner, temp_db, "transaction", "show", str(txn.id), user="bob")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_transaction_update_scope(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test updating the rest of a series."""
    entries = transaction_service.create(
        "alice", make_request(checking.id, "90.00", total_installments=3)
    ).result

    result = _invoke(
        cli_runner,
        temp_db,
        "transaction",
        "update",
        str(entries[1].id),
        "--description",
        "Renamed",
        "--scope",
        "following",
    )

    assert result.exit_code == 0
    assert "Updated 2 transactions" in result.output
    assert [t.description for t in _entries(temp_db, checking.id)] == [
        "Test entry",
        "Renamed",
        "Renamed",
    ]


def test_transaction_update_amount_refreshes_snapshots(
    cli_runner, temp_db, transaction_service, checking, make_request
):
    """Test balance-changing updates recompute snapshots."""
    txn = transaction_service.create("alice", make_request(checking.id)).result

    result = _invoke(cli_runner, temp_db, "transaction", "update", str(txn.id), "--amount", "40")

    assert result.exit_code == 0
    assert temp_db.get_snapshot(checking.id, date.today()).balance == Decimal("960.00")


def test_transaction_update_nothing(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test an update without fields is an error."""
    txn = transaction_service.create("alice", make_request(checking.id)).result

    result = _invoke(cli_runner, temp_db, "transaction", "update", str(txn.id))

    assert result.exit_code == 1
    assert "Nothing to update" in result.output


def test_transaction_delete_transfer(
    cli_runner, temp_db, transaction_service, checking, savings, make_request
):
    """Test deleting a transfer leg removes both legs."""
    source, _ = transaction_service.create(
        "alice",
        make_request(
            checking.id, type=TransactionType.TRANSFER, destination_account_id=savings.id
        ),
    ).result

    result = _invoke(cli_runner, temp_db, "transaction", "delete", str(source.id), "--yes")

    assert result.exit_code == 0
    assert "Deleted 2 transactions" in result.output
    assert temp_db.get_account_transaction_count(savings.id) == 0


def test_transaction_delete_cancelled(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test declining the confirmation keeps the transaction."""
    txn = transaction_service.create("alice", make_request(checking.id)).result

    result = _invoke(cli_runner, temp_db, "transaction", "delete", str(txn.id), input="n\n")

    assert result.exit_code == 0
    assert "Deletion cancelled" in result.output
    assert temp_db.get_transaction(txn.id) is not None


def test_report_balance(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test the balance report over an explicit window."""
    transaction_service.create("alice", make_request(checking.id, date=date(2025, 1, 15)))

    result = _invoke(
        cli_runner,
        temp_db,
        "report",
        "balance",
        "--from",
        "2025-01-14",
        "--to",
        "2025-01-16",
        "--granularity",
        "day",
    )

    assert result.exit_code == 0
    assert "2025-01-14" in result.output
    assert "1,000.00" in result.output
    assert "900.00" in result.output
    assert "-100.00" in result.output


def test_report_balance_period_conflict(cli_runner, temp_db, checking):
    """Test --period cannot be combined with --from."""
    result = _invoke(
        cli_runner, temp_db, "report", "balance", "--period", "this-month", "--from", "2025-01-01"
    )

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_report_cash_flow(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test the cash flow report."""
    transaction_service.create(
        "alice",
        make_request(checking.id, "3000", type=TransactionType.INCOME, date=date(2025, 1, 5)),
    )
    transaction_service.create("alice", make_request(checking.id, "500", date=date(2025, 1, 10)))

    result = _invoke(
        cli_runner, temp_db, "report", "cash-flow", "--from", "2025-01-01", "--to", "2025-01-31"
    )

    assert result.exit_code == 0
    assert "2025-01" in result.output
    assert "3,000.00" in result.output
    assert "2,500.00" in result.output


def test_report_spending(cli_runner, temp_db, transaction_service, checking, groceries, make_request):
    """Test the spending report."""
    transaction_service.create("alice", make_request(checking.id, "75", category_id=groceries))
    transaction_service.create("alice", make_request(checking.id, "25"))

    result = _invoke(
        cli_runner, temp_db, "report", "spending", "--from", "2025-01-01", "--to", "2025-01-31"
    )

    assert result.exit_code == 0
    assert "Groceries" in result.output
    assert "75.00%" in result.output
    assert "Uncategorized" in result.output


def test_report_spending_empty(cli_runner, temp_db, checking):
    """Test the spending report without expenses."""
    result = _invoke(cli_runner, temp_db, "report", "spending")

    assert result.exit_code == 0
    assert "No expenses found" in result.output


def test_snapshot_rebuild(cli_runner, temp_db, transaction_service, checking, make_request):
    """Test rebuilding one account from a date."""
    transaction_service.create("alice", make_request(checking.id, date=date(2025, 1, 15)))

    result = _invoke(cli_runner, temp_db, "snapshot", "rebuild", "Checking", "--from", "2025-01-01")

    expected = (date.today() - date(2025, 1, 1)).days + 1
    assert result.exit_code == 0
    assert f"Rebuilt {expected} snapshots across 1 account" in result.output
    assert temp_db.get_snapshot(checking.id, date(2025, 1, 14)).balance == Decimal("1000.00")
    assert temp_db.get_snapshot(checking.id, date(2025, 1, 15)).balance == Decimal("900.00")


def test_snapshot_rebuild_all(cli_runner, temp_db, transaction_service, checking, savings, make_request):
    """Test rebuilding every visible account."""
    transaction_service.create("alice", make_request(checking.id, date=date(2025, 1, 15)))

    result = _invoke(cli_runner, temp_db, "snapshot", "rebuild")

    assert result.exit_code == 0
    assert "across 2 accounts" in result.output
    assert temp_db.get_snapshot(checking.id, date.today()).balance == Decimal("900.00")


def test_report_export(cli_runner, temp_db, transaction_service, checking, groceries, make_request):
    """Test the CSV export written to stdout."""
    transaction_service.create("alice", make_request(checking.id, "75", category_id=groceries))

    result = _invoke(
        cli_runner, temp_db, "report", "export", "--from", "2025-01-01", "--to", "2025-01-31"
    )

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "Date,Description,Category,Account,Type,Amount,Paid",
        "2025-01-15,Test entry,Groceries,Checking,EXPENSE,-75.00,yes",
    ]


def test_report_export_to_file(cli_runner, temp_db, transaction_service, checking, make_request, tmp_path):
    """Test the CSV export written to a file."""
    transaction_service.create("alice", make_request(checking.id, "20"))
    target = tmp_path / "out.csv"

    result = _invoke(cli_runner, temp_db, "report", "export", "-o", str(target))

    assert result.exit_code == 0
    lines = target.read_text().splitlines()
    assert lines[0] == "Date,Description,Category,Account,Type,Amount,Paid"
    assert lines[1] == "2025-01-15,Test entry,Uncategorized,Checking,EXPENSE,-20.00,yes"


def test_report_export_invalid_invoice_month(cli_runner, temp_db, checking):
    """Test a malformed invoice month is reported as an error."""
    result = _invoke(cli_runner, temp_db, "report", "export", "--invoice-month", "2025-13")

    assert result.exit_code == 1
    assert "Invalid invoice month" in result.output

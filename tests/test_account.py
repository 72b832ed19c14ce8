"""Tests for account management."""

from decimal import Decimal

import pytest

from ledgerkit.cli.main import cli
from ledgerkit.domain.entities import AccountType, ShareRole
from ledgerkit.domain.errors import (
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


def _invoke(cli_runner, temp_db, *args, user="alice", input=None):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--user", user, *args], input=input
    )


def test_create_standard_account(account_service):
    """Test creating a standard account with an opening balance."""
    account_id = account_service.create_account("alice", "Checking", initial_balance=Decimal("10.5"))
    account = account_service.get_account("alice", account_id)

    assert account.name == "Checking"
    assert account.type == AccountType.STANDARD
    assert account.initial_balance == Decimal("10.50")
    assert account.owner_id == "alice"
    assert account.credit_card_info is None


def test_create_credit_account(account_service):
    """Test credit accounts carry card data and open at zero."""
    account_id = account_service.create_account(
        "alice",
        "Visa",
        type=AccountType.CREDIT,
        initial_balance=Decimal("500"),
        closing_day=5,
        due_day=15,
        credit_limit=Decimal("3000"),
        brand="Visa",
    )
    account = account_service.get_account("alice", account_id)

    assert account.is_credit
    assert account.initial_balance == Decimal("0.00")
    assert account.credit_card_info.closing_day == 5
    assert account.credit_card_info.due_day == 15
    assert account.credit_card_info.credit_limit == Decimal("3000.00")
    assert account.credit_card_info.brand == "Visa"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"type": AccountType.CREDIT, "closing_day": 5},
        {"type": AccountType.CREDIT, "closing_day": 0, "due_day": 10},
        {"type": AccountType.CREDIT, "closing_day": 5, "due_day": 32},
        {"type": AccountType.CREDIT, "closing_day": 5, "due_day": 10, "credit_limit": Decimal("-1")},
        {"type": AccountType.STANDARD, "closing_day": 5},
        {"type": AccountType.STANDARD, "brand": "Visa"},
    ],
)
def test_create_account_invalid_card_data(account_service, kwargs):
    """Test card data is required on credit accounts and refused elsewhere."""
    with pytest.raises(ValidationError):
        account_service.create_account("alice", "Card", **kwargs)


def test_create_account_blank_name(account_service):
    """Test a name is required."""
    with pytest.raises(ValidationError):
        account_service.create_account("alice", "   ")


def test_create_account_duplicate_name(account_service, checking):
    """Test names are unique per owner only."""
    with pytest.raises(ConflictError):
        account_service.create_account("alice", "Checking")
    assert account_service.create_account("bob", "Checking") != checking.id


def test_get_account_access(account_service, temp_db, checking):
    """Test other users cannot see an account until it is shared."""
    with pytest.raises(ForbiddenError):
        account_service.get_account("bob", checking.id)
    with pytest.raises(NotFoundError):
        account_service.get_account("alice", 999)

    temp_db.set_account_share(checking.id, "bob", ShareRole.VIEWER)
    assert account_service.get_account("bob", checking.id).id == checking.id


def test_list_accounts_owned_and_shared(account_service, checking, savings):
    """Test listing returns owned accounts plus shares."""
    bobs = account_service.create_account("bob", "Bob wallet")
    account_service.share_account("alice", savings.id, "bob", ShareRole.VIEWER)

    assert [a.id for a in account_service.list_accounts("alice")] == [checking.id, savings.id]
    assert {a.id for a in account_service.list_accounts("bob")} == {bobs, savings.id}


def test_rename_account(account_service, checking, savings):
    """Test renaming, and that names stay unique."""
    updated = account_service.update_account("alice", checking.id, name="Main")
    assert updated.name == "Main"

    with pytest.raises(ConflictError):
        account_service.update_account("alice", checking.id, name="Savings")


def test_update_card_fields_merge(account_service, card):
    """Test changing one card field keeps the others."""
    updated = account_service.update_account("alice", card.id, closing_day=3)

    assert updated.credit_card_info.closing_day == 3
    assert updated.credit_card_info.due_day == 20
    assert updated.credit_card_info.credit_limit == Decimal("5000.00")


def test_update_card_fields_on_standard_account(account_service, checking):
    """Test card fields cannot be set on a standard account."""
    with pytest.raises(ForbiddenError):
        account_service.update_account("alice", checking.id, closing_day=3)


def test_update_requires_write_access(account_service, temp_db, checking):
    """Test viewers cannot edit an account."""
    temp_db.set_account_share(checking.id, "bob", ShareRole.VIEWER)
    with pytest.raises(ForbiddenError):
        account_service.update_account("bob", checking.id, name="Mine")


def test_share_account(account_service, temp_db, checking):
    """Test the owner can grant and change roles."""
    account_service.share_account("alice", checking.id, "bob", ShareRole.VIEWER)
    account_service.share_account("alice", checking.id, "bob", ShareRole.ADMIN)
    assert temp_db.get_account_share(checking.id, "bob").role == ShareRole.ADMIN

    account_service.share_account("bob", checking.id, "carol", ShareRole.EDITOR)
    assert temp_db.get_account_share(checking.id, "carol").role == ShareRole.EDITOR


def test_share_account_rules(account_service, temp_db, checking):
    """Test who may share and with whom."""
    with pytest.raises(ForbiddenError):
        account_service.share_account("bob", checking.id, "carol", ShareRole.VIEWER)

    temp_db.set_account_share(checking.id, "bob", ShareRole.EDITOR)
    with pytest.raises(ForbiddenError):
        account_service.share_account("bob", checking.id, "carol", ShareRole.VIEWER)

    with pytest.raises(ValidationError):
        account_service.share_account("alice", checking.id, "alice", ShareRole.VIEWER)
    with pytest.raises(NotFoundError):
        account_service.share_account("alice", 999, "bob", ShareRole.VIEWER)


def test_delete_account(account_service, snapshot_service, checking):
    """Test deleting an account without transactions."""
    snapshot_service.ensure_snapshots(checking.id, checking.created_at.date(), checking.created_at.date())
    account_service.delete_account("alice", checking.id)

    with pytest.raises(NotFoundError):
        account_service.get_account("alice", checking.id)


def test_delete_account_with_transactions(account_service, transaction_service, checking, make_request):
    """Test accounts with transactions cannot be deleted."""
    transaction_service.create("alice", make_request(checking.id))
    with pytest.raises(DependencyError, match="1 transaction"):
        account_service.delete_account("alice", checking.id)


def test_delete_account_owner_only(account_service, temp_db, checking):
    """Test even admins cannot delete someone else's account."""
    temp_db.set_account_share(checking.id, "bob", ShareRole.ADMIN)
    with pytest.raises(ForbiddenError):
        account_service.delete_account("bob", checking.id)


def test_cli_account_create(cli_runner, temp_db):
    """Test creating an account from the command line."""
    result = _invoke(cli_runner, temp_db, "account", "create", "Checking", "--initial-balance", "1500")

    assert result.exit_code == 0
    assert "Created account 'Checking'" in result.output
    assert "ID:" in result.output


def test_cli_account_create_credit(cli_runner, temp_db):
    """Test creating a credit card from the command line."""
    result = _invoke(
        cli_runner,
        temp_db,
        "account",
        "create",
        "Visa",
        "--type",
        "credit",
        "--closing-day",
        "5",
        "--due-day",
        "15",
        "--limit",
        "3000",
    )

    assert result.exit_code == 0
    account = temp_db.list_accounts(owner_id="alice")[0]
    assert account.credit_card_info.credit_limit == Decimal("3000.00")


def test_cli_account_create_duplicate(cli_runner, temp_db, checking):
    """Test duplicate names are reported."""
    result = _invoke(cli_runner, temp_db, "account", "create", "Checking")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_cli_account_create_missing_card_data(cli_runner, temp_db):
    """Test credit cards need billing days."""
    result = _invoke(cli_runner, temp_db, "account", "create", "Visa", "--type", "credit")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_cli_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = _invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_cli_account_list(cli_runner, temp_db, checking, card):
    """Test listing shows balances and available credit."""
    result = _invoke(cli_runner, temp_db, "account", "list")

    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "1,000.00" in result.output
    assert "Available: 5,000.00" in result.output
    assert "Closes day 10, due day 20" in result.output


def test_cli_account_list_other_user(cli_runner, temp_db, checking):
    """Test users only list their own accounts."""
    result = _invoke(cli_runner, temp_db, "account", "list", user="bob")

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_cli_account_update(cli_runner, temp_db, checking):
    """Test renaming an account by name."""
    result = _invoke(cli_runner, temp_db, "account", "update", "Checking", "--name", "Main")

    assert result.exit_code == 0
    assert "Updated account 'Main'" in result.output
    assert temp_db.get_account(checking.id).name == "Main"


def test_cli_account_share(cli_runner, temp_db, checking):
    """Test sharing an account."""
    result = _invoke(cli_runner, temp_db, "account", "share", "Checking", "bob", "--role", "editor")

    assert result.exit_code == 0
    assert f"Shared account {checking.id} with 'bob' as editor" in result.output
    assert temp_db.get_account_share(checking.id, "bob").role == ShareRole.EDITOR


def test_cli_account_delete(cli_runner, temp_db, checking):
    """Test deleting an account with --yes."""
    result = _invoke(cli_runner, temp_db, "account", "delete", "Checking", "--yes")

    assert result.exit_code == 0
    assert "Deleted account 'Checking'" in result.output
    assert temp_db.get_account(checking.id) is None


def test_cli_account_delete_cancelled(cli_runner, temp_db, checking):
    """Test declining the confirmation keeps the account."""
    result = _invoke(cli_runner, temp_db, "account", "delete", "Checking", input="n\n")

    assert result.exit_code == 0
    assert "Deletion cancelled" in result.output
    assert temp_db.get_account(checking.id) is not None


def test_cli_account_delete_with_transactions(
    cli_runner, temp_db, transaction_service, checking, make_request
):
    """Test deletion is blocked while transactions exist."""
    transaction_service.create("alice", make_request(checking.id))
    result = _invoke(cli_runner, temp_db, "account", "delete", str(checking.id), "--yes")

    assert result.exit_code == 1
    assert "Please delete them first" in result.output


def test_cli_account_not_found(cli_runner, temp_db):
    """Test referring to an unknown account."""
    result = _invoke(cli_runner, temp_db, "account", "delete", "Nope", "--yes")

    assert result.exit_code == 1
    assert "not found" in result.output

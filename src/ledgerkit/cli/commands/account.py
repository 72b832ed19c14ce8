"""Account management commands."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.balance import BalanceService
from ledgerkit.domain.entities import AccountType, ShareRole
from ledgerkit.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(["standard", "credit"], case_sensitive=False),
    default="standard",
    show_default=True,
    help="Account type",
)
@click.option("--initial-balance", default="0", help="Opening balance (standard accounts only)")
@click.option("--closing-day", type=int, help="Invoice closing day (credit cards)")
@click.option("--due-day", type=int, help="Invoice due day (credit cards)")
@click.option("--limit", "credit_limit", help="Credit limit (credit cards)")
@click.option("--brand", help="Card brand (credit cards)")
@click.pass_context
def create_account(
    ctx,
    name: str,
    account_type: str,
    initial_balance: str,
    closing_day: int | None,
    due_day: int | None,
    credit_limit: str | None,
    brand: str | None,
):
    """Create a new account.

    Examples:
        ledgerkit account create "Checking" --initial-balance 1500
        ledgerkit account create "Visa" --type credit --closing-day 5 --due-day 15 --limit 3000
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            owner_id=ctx.obj["user"],
            name=name,
            type=AccountType(account_type.upper()),
            initial_balance=parse_amount(initial_balance),
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=parse_amount(credit_limit) if credit_limit is not None else None,
            brand=brand,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List your accounts with their balances."""
    db = ctx.obj["db"]
    service = BalanceService(db)

    balances = service.list_account_balances(ctx.obj["user"])
    if not balances:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for item in balances:
        acc = item.account
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.type.value:8s} | Balance: {item.balance:>12,.2f}"
        if item.available_limit is not None:
            line += f" | Available: {item.available_limit:,.2f}"
        if acc.credit_card_info is not None:
            info = acc.credit_card_info
            line += f" | Closes day {info.closing_day}, due day {info.due_day}"
        click.echo(line)


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--closing-day", type=int, help="New invoice closing day")
@click.option("--due-day", type=int, help="New invoice due day")
@click.option("--limit", "credit_limit", help="New credit limit")
@click.option("--brand", help="New card brand")
@click.pass_context
def update_account(
    ctx,
    account: str,
    name: str | None,
    closing_day: int | None,
    due_day: int | None,
    credit_limit: str | None,
    brand: str | None,
) -> None:
    """Rename an account or change its card settings.

    ACCOUNT can be an account name or ID. Changing the closing day only
    affects purchases recorded afterwards.

    Examples:
        ledgerkit account update "Checking" --name "Main Checking"
        ledgerkit account update Visa --closing-day 8 --limit 5000
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        updated = service.update_account(
            ctx.obj["user"],
            account_id,
            name=name,
            closing_day=closing_day,
            due_day=due_day,
            credit_limit=parse_amount(credit_limit) if credit_limit is not None else None,
            brand=brand,
        )
        click.echo(f"Updated account '{updated.name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("share")
@click.argument("account", metavar="ACCOUNT")
@click.argument("user_id", metavar="USER")
@click.option(
    "--role",
    type=click.Choice(["viewer", "editor", "admin"], case_sensitive=False),
    default="viewer",
    show_default=True,
    help="Role granted to the user",
)
@click.pass_context
def share_account(ctx, account: str, user_id: str, role: str) -> None:
    """Share an account with another user.

    Examples:
        ledgerkit account share "Checking" alice --role editor
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.share_account(ctx.obj["user"], account_id, user_id, ShareRole(role.upper()))
        click.echo(f"Shared account {account_id} with '{user_id}' as {role.lower()}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID.

    The account can only be deleted if it has no transactions. Use
    'transaction delete' to remove them first.

    Examples:
        ledgerkit account delete "Old Savings"
        ledgerkit account delete 3 --yes
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        account_obj = service.get_account(ctx.obj["user"], account_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(ctx.obj["user"], account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")

"""Transaction management commands."""

import click
from ledgerkit.cli.account_resolution import (
    apply_change,
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerkit.cli.commands.add import format_entry
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    MutationScope,
    TransactionFilter,
    TransactionPatch,
    TransactionType,
)
from ledgerkit.domain.transaction import TransactionService

SCOPES = {
    "one": MutationScope.ONE,
    "following": MutationScope.THIS_AND_FOLLOWING,
    "all": MutationScope.ALL,
}

scope_option = click.option(
    "--scope",
    type=click.Choice(list(SCOPES), case_sensitive=False),
    default="one",
    show_default=True,
    help="For installments and recurring entries: this one, this and following, or all",
)


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--from", "start", help="Start date")
@click.option("--to", "end", help="End date")
@click.option(
    "--type",
    "txn_type",
    type=click.Choice(["income", "expense", "transfer"], case_sensitive=False),
    help="Only this transaction type",
)
@click.option("--search", help="Text contained in the description")
@click.option("--invoice-month", help="Credit card invoice (YYYY-MM)")
@click.option("--limit", type=int, default=30, show_default=True, help="Page size (max 100)")
@click.option("--cursor", type=int, help="Continue after this transaction ID")
@click.pass_context
def list_transactions(
    ctx,
    account: str | None,
    category: str | None,
    start: str | None,
    end: str | None,
    txn_type: str | None,
    search: str | None,
    invoice_month: str | None,
    limit: int,
    cursor: int | None,
) -> None:
    """List transactions, newest first.

    Examples:
        ledgerkit transaction list --account Checking --from "last month"
        ledgerkit transaction list --account Visa --invoice-month 2025-03
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    criteria = TransactionFilter(
        account_id=(
            resolve_account_or_exit(ctx, AccountService(db), account) if account is not None else None
        ),
        category_id=resolve_category_or_exit(ctx, category) if category is not None else None,
        start_date=parse_date_or_exit(ctx, start) if start is not None else None,
        end_date=parse_date_or_exit(ctx, end) if end is not None else None,
        type=TransactionType(txn_type.upper()) if txn_type is not None else None,
        text=search,
        invoice_month=invoice_month,
        limit=limit,
        cursor_id=cursor,
    )

    try:
        page = service.list_transactions(ctx.obj["user"], criteria)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not page.items:
        click.echo("No transactions found.")
        return

    for txn in page.items:
        click.echo(format_entry(txn))
    if page.next_cursor_id is not None:
        click.echo(f"\nMore results: --cursor {page.next_cursor_id}")


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int) -> None:
    """Show a transaction and the series it belongs to."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        txn = service.get_transaction(ctx.obj["user"], transaction_id)
        series = service.get_series(ctx.obj["user"], transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transaction {txn.id}")
    click.echo(f"  Account: {txn.account_id}")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    click.echo(f"  Description: {txn.description}")
    click.echo(f"  Status: {'paid' if txn.is_paid else 'pending'}")
    if txn.category_id is not None:
        click.echo(f"  Category: {txn.category_id}")
    if txn.tags:
        click.echo(f"  Tags: {', '.join(txn.tags)}")
    if txn.purchase_date is not None:
        click.echo(f"  Purchase date: {txn.purchase_date}")
    if txn.invoice_month is not None:
        click.echo(f"  Invoice: {txn.invoice_month}")
    if txn.transfer_id is not None:
        click.echo(f"  Transfer: {txn.transfer_id}")

    if series is not None:
        click.echo(f"\n{series.kind.value.title()} series ({len(series.members)} entries):")
        for member in series.members:
            click.echo(format_entry(member))


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--date", "date_str", help="New date; series entries shift by the same number of days")
@click.option("--amount", help="New amount (positive)")
@click.option("--description", help="New description")
@click.option("--category", help="Category name or ID")
@click.option("--clear-category", is_flag=True, help="Remove the category")
@click.option("--paid/--unpaid", default=None, help="Mark as settled or pending")
@scope_option
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    date_str: str | None,
    amount: str | None,
    description: str | None,
    category: str | None,
    clear_category: bool,
    paid: bool | None,
    scope: str,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Transfers always update both legs.

    Examples:
        ledgerkit transaction update 12 --amount 75.00
        ledgerkit transaction update 40 --category Housing --scope all
        ledgerkit transaction update 41 --date 2025-04-10 --scope following
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    patch = TransactionPatch(
        category_id=resolve_category_or_exit(ctx, category) if category is not None else None,
        clear_category=clear_category,
        description=description,
        date=parse_date_or_exit(ctx, date_str) if date_str is not None else None,
        is_paid=paid,
        amount=parse_amount_or_exit(ctx, amount) if amount is not None else None,
    )
    if patch.is_empty:
        click.echo("Error: Nothing to update", err=True)
        ctx.exit(1)

    try:
        change = service.update(ctx.obj["user"], transaction_id, patch, SCOPES[scope.lower()])
    except ValueError as e:
        handle_domain_error(ctx, e)

    apply_change(db, change)
    updated = change.transactions
    click.echo(f"Updated {len(updated)} transaction{'s' if len(updated) != 1 else ''}")
    for txn in updated:
        click.echo(format_entry(txn))


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@scope_option
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, scope: str, yes: bool) -> None:
    """Delete a transaction.

    Deleting either side of a transfer deletes both.

    Examples:
        ledgerkit transaction delete 12
        ledgerkit transaction delete 40 --scope following --yes
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        txn = service.get_transaction(ctx.obj["user"], transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Are you sure you want to delete transaction {txn.id} ('{txn.description}')?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        change = service.delete(ctx.obj["user"], transaction_id, SCOPES[scope.lower()])
    except ValueError as e:
        handle_domain_error(ctx, e)

    apply_change(db, change)
    count = len(change.deleted_ids)
    click.echo(f"Deleted {count} transaction{'s' if count != 1 else ''}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")

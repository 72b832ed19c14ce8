"""Add transaction command."""

import click
from ledgerkit.cli.account_resolution import (
    apply_change,
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_category_or_exit,
)
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import (
    CreateTransactionRequest,
    RecurrenceFrequency,
    RecurrenceSpec,
    Transaction,
    TransactionType,
)
from ledgerkit.domain.transaction import TransactionService


def format_entry(txn: Transaction) -> str:
    """One-line summary of a ledger entry."""
    line = f"  #{txn.id:<5d} {txn.date}  {txn.amount:>12,.2f}  {txn.type.value:8s}"
    if txn.installment_number is not None and txn.total_installments is not None:
        line += f"  [{txn.installment_number}/{txn.total_installments}]"
    if txn.invoice_month is not None:
        line += f"  invoice {txn.invoice_month}"
    line += "  paid" if txn.is_paid else "  pending"
    if txn.description:
        line += f"  {txn.description}"
    return line


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Amount as a positive number (e.g., 123.45)")
@click.option("--description", required=True, help="Transaction description")
@click.option(
    "--type",
    "txn_type",
    type=click.Choice(["income", "expense", "transfer"], case_sensitive=False),
    default="expense",
    show_default=True,
    help="Transaction type",
)
@click.option(
    "--date",
    "date_str",
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday'; defaults to today)",
)
@click.option("--category", help="Category name or ID")
@click.option("--installments", type=int, help="Split an expense into N monthly installments")
@click.option(
    "--repeat",
    type=click.Choice(["monthly", "weekly", "yearly", "custom"], case_sensitive=False),
    help="Create a recurring series",
)
@click.option("--count", type=int, help="Number of occurrences for --repeat")
@click.option("--forever", is_flag=True, help="Repeat for the maximum number of occurrences")
@click.option("--interval-days", type=int, help="Days between occurrences for --repeat custom")
@click.option("--to", "destination", help="Destination account name or ID for transfers")
@click.option("--paid/--unpaid", default=True, show_default=True, help="Whether the entry is settled")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--invoice-month", help="Credit card invoice override (YYYY-MM)")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    amount: str,
    description: str,
    txn_type: str,
    date_str: str | None,
    category: str | None,
    installments: int | None,
    repeat: str | None,
    count: int | None,
    forever: bool,
    interval_days: int | None,
    destination: str | None,
    paid: bool,
    tags: tuple[str, ...],
    invoice_month: str | None,
):
    """Add a transaction manually.

    Examples:
        ledgerkit add --account Checking --amount 50 --description "Groceries"
        ledgerkit add --account Checking --type income --amount 3000 --description Salary --repeat monthly --count 12
        ledgerkit add --account Visa --amount 1200 --description Laptop --installments 10
        ledgerkit add --account Checking --type transfer --to Visa --amount 450 --description "Card bill"
    """
    db = ctx.obj["db"]
    actor_id = ctx.obj["user"]
    account_service = AccountService(db)
    transaction_service = TransactionService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    destination_id = (
        resolve_account_or_exit(ctx, account_service, destination) if destination is not None else None
    )
    txn_amount = parse_amount_or_exit(ctx, amount)
    txn_date = parse_date_or_exit(ctx, date_str) if date_str is not None else None
    category_id = resolve_category_or_exit(ctx, category) if category is not None else None

    recurrence = None
    if repeat is not None:
        recurrence = RecurrenceSpec(
            frequency=RecurrenceFrequency(repeat.upper()),
            count=count,
            forever=forever,
            interval_days=interval_days,
        )
    elif count is not None or forever or interval_days is not None:
        click.echo("Error: --count, --forever and --interval-days require --repeat", err=True)
        ctx.exit(1)

    request = CreateTransactionRequest(
        account_id=account_id,
        type=TransactionType(txn_type.upper()),
        amount=txn_amount,
        description=description,
        date=txn_date,
        category_id=category_id,
        is_paid=paid,
        total_installments=installments,
        destination_account_id=destination_id,
        recurrence=recurrence,
        tags=tags or None,
        invoice_month=invoice_month,
    )

    try:
        change = transaction_service.create(actor_id, request)
    except ValueError as e:
        handle_domain_error(ctx, e)

    apply_change(db, change)

    created = change.transactions
    click.echo(f"Created {len(created)} transaction{'s' if len(created) != 1 else ''}")
    for txn in created:
        click.echo(format_entry(txn))


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)

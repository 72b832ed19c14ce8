"""Report commands."""

import click
from ledgerkit.cli.account_resolution import resolve_account_or_exit
from ledgerkit.cli.date_filters import period_option, resolve_cli_date_range
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.entities import Granularity
from ledgerkit.domain.report import ReportService

account_option = click.option(
    "--account", "accounts", multiple=True, help="Account name or ID (repeatable; default: all)"
)


def _resolve_accounts(ctx, accounts: tuple[str, ...]) -> list[int] | None:
    if not accounts:
        return None
    service = AccountService(ctx.obj["db"])
    return [resolve_account_or_exit(ctx, service, account) for account in accounts]


@click.group()
def report_group():
    """Balance history, cash flow, spending and CSV export reports."""
    pass


@report_group.command("balance")
@account_option
@click.option("--from", "start", help="Start date (default: 90 days ago)")
@click.option("--to", "end", help="End date (default: today)")
@period_option
@click.option(
    "--granularity",
    type=click.Choice(["day", "week", "month"], case_sensitive=False),
    help="Sampling step (inferred from the range when omitted)",
)
@click.option("--change-only", is_flag=True, help="Only show points where the balance changed")
@click.pass_context
def balance_report(
    ctx,
    accounts: tuple[str, ...],
    start: str | None,
    end: str | None,
    period: str | None,
    granularity: str | None,
    change_only: bool,
) -> None:
    """Show total balance over time.

    Examples:
        ledgerkit report balance
        ledgerkit report balance --account Checking --period this-year --granularity month
    """
    db = ctx.obj["db"]
    service = ReportService(db)
    start_date, end_date = resolve_cli_date_range(ctx, start_date=start, end_date=end, period=period)

    try:
        points = service.balance_history(
            ctx.obj["user"],
            start=start_date,
            end=end_date,
            account_ids=_resolve_accounts(ctx, accounts),
            granularity=Granularity(granularity.upper()) if granularity else None,
            change_only=change_only,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not points:
        click.echo("No balance data found.")
        return

    click.echo(f"\n{'Period':<12} {'Balance':>14} {'Change':>12}")
    click.echo("-" * 40)
    for point in points:
        delta = f"{point.delta:+,.2f}" if point.delta is not None else ""
        click.echo(f"{point.label:<12} {point.balance:>14,.2f} {delta:>12}")


@report_group.command("cash-flow")
@account_option
@click.option("--from", "start", help="Start date")
@click.option("--to", "end", help="End date")
@period_option
@click.option("--invoice-month", help="Only this credit card invoice month (YYYY-MM)")
@click.option("--include-pending", is_flag=True, help="Include entries not yet paid")
@click.pass_context
def cash_flow_report(
    ctx,
    accounts: tuple[str, ...],
    start: str | None,
    end: str | None,
    period: str | None,
    invoice_month: str | None,
    include_pending: bool,
) -> None:
    """Show income and expenses per month.

    Credit card purchases are counted in the month of their invoice.
    """
    db = ctx.obj["db"]
    service = ReportService(db)
    start_date, end_date = resolve_cli_date_range(ctx, start_date=start, end_date=end, period=period)

    try:
        rows = service.cash_flow(
            ctx.obj["user"],
            start=start_date,
            end=end_date,
            account_ids=_resolve_accounts(ctx, accounts),
            invoice_month=invoice_month,
            include_pending=include_pending,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No transactions found.")
        return

    click.echo(f"\n{'Month':<8} {'Income':>14} {'Expense':>14} {'Net':>14}")
    click.echo("-" * 53)
    for row in rows:
        click.echo(f"{row.period:<8} {row.income:>14,.2f} {row.expense:>14,.2f} {row.balance:>14,.2f}")


@report_group.command("spending")
@account_option
@click.option("--from", "start", help="Start date")
@click.option("--to", "end", help="End date")
@period_option
@click.option("--invoice-month", help="Only this credit card invoice month (YYYY-MM)")
@click.option("--include-pending", is_flag=True, help="Include entries not yet paid")
@click.pass_context
def spending_report(
    ctx,
    accounts: tuple[str, ...],
    start: str | None,
    end: str | None,
    period: str | None,
    invoice_month: str | None,
    include_pending: bool,
) -> None:
    """Show expenses grouped by category."""
    db = ctx.obj["db"]
    service = ReportService(db)
    start_date, end_date = resolve_cli_date_range(ctx, start_date=start, end_date=end, period=period)

    try:
        rows = service.spending_by_category(
            ctx.obj["user"],
            start=start_date,
            end=end_date,
            account_ids=_resolve_accounts(ctx, accounts),
            invoice_month=invoice_month,
            include_pending=include_pending,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No expenses found.")
        return

    click.echo(f"\n{'Category':<24} {'Amount':>14} {'Share':>8}")
    click.echo("-" * 48)
    for row in rows:
        click.echo(f"{row.category_name:<24} {row.amount:>14,.2f} {row.percentage:>7}%")


@report_group.command("export")
@account_option
@click.option("--from", "start", help="Start date")
@click.option("--to", "end", help="End date")
@period_option
@click.option("--invoice-month", help="Only this credit card invoice month (YYYY-MM)")
@click.option("--include-pending", is_flag=True, help="Include entries not yet paid")
@click.option(
    "--output", "-o", type=click.File("w"), default="-", help="Output file (default: stdout)"
)
@click.pass_context
def export_report(
    ctx,
    accounts: tuple[str, ...],
    start: str | None,
    end: str | None,
    period: str | None,
    invoice_month: str | None,
    include_pending: bool,
    output,
) -> None:
    """Export transactions as CSV.

    Examples:
        ledgerkit report export --period last-month -o transactions.csv
        ledgerkit report export --account Visa --invoice-month 2025-03
    """
    db = ctx.obj["db"]
    service = ReportService(db)
    start_date, end_date = resolve_cli_date_range(ctx, start_date=start, end_date=end, period=period)

    try:
        content = service.export_transactions_csv(
            ctx.obj["user"],
            start=start_date,
            end=end_date,
            account_ids=_resolve_accounts(ctx, accounts),
            invoice_month=invoice_month,
            include_pending=include_pending,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(content, file=output, nl=False)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")

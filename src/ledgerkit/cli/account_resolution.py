"""CLI helpers for account resolution and shared option parsing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click
from ledgerkit.database.base import Database
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.category import CategoryService
from ledgerkit.domain.entities import LedgerChange
from ledgerkit.domain.snapshot import SnapshotService
from ledgerkit.utils.account_resolver import resolve_account
from ledgerkit.utils.amount_parser import parse_positive_amount
from ledgerkit.utils.date_parser import parse_date


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID among the acting user's accounts, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, ctx.obj["user"], account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def parse_date_or_exit(ctx: click.Context, value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid date format: {exc}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str) -> Decimal:
    try:
        return parse_positive_amount(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid amount format: {exc}", err=True)
        ctx.exit(1)


def apply_change(db: Database, change: LedgerChange) -> int:
    """Bring daily snapshots up to date after a committed change."""
    return SnapshotService(db).apply(change.impacts)


def resolve_category_or_exit(ctx: click.Context, category: str) -> int:
    """Resolve a category name or ID visible to the acting user, or exit with a CLI error."""
    categories = CategoryService(ctx.obj["db"]).list_categories(ctx.obj["user"])
    if category.isdigit():
        category_id = int(category)
        if any(cat.id == category_id for cat in categories):
            return category_id
    matches = [cat for cat in categories if cat.name.lower() == category.lower()]
    if len(matches) == 1:
        return matches[0].id
    if len(matches) > 1:
        click.echo(f"Error: Category name '{category}' is ambiguous, use its ID", err=True)
    else:
        click.echo(f"Error: Category '{category}' not found", err=True)
    ctx.exit(1)

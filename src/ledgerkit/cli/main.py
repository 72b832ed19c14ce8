"""Main CLI entry point."""

import logging

import click
from ledgerkit.database.factories import create_sqlite_database
from ledgerkit.logging_config import setup_logging

# Import and register all commands at module level
from ledgerkit.cli.commands import (
    account,
    add,
    category,
    report,
    snapshot,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKIT_DB_PATH environment variable)",
    envvar="LEDGERKIT_DB_PATH",
)
@click.option(
    "--user",
    default="local",
    show_default=True,
    help="Acting user ID (overrides LEDGERKIT_USER environment variable)",
    envvar="LEDGERKIT_USER",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, user: str, verbose: bool):
    """Ledgerkit - Personal finance ledger.

    Record income, expenses, transfers, installment plans and recurring
    entries across bank accounts and credit cards, and follow your balances
    over time.
    """
    ctx.ensure_object(dict)
    setup_logging(logging.DEBUG if verbose else None)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user"] = user
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
report.register_commands(cli)
snapshot.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

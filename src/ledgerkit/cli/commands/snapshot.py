"""Snapshot maintenance commands."""

import click
from ledgerkit.cli.account_resolution import parse_date_or_exit, resolve_account_or_exit
from ledgerkit.domain.account import AccountService
from ledgerkit.domain.snapshot import SnapshotService


@click.group()
def snapshot_group():
    """Maintain daily balance snapshots."""
    pass


@snapshot_group.command("rebuild")
@click.argument("account", required=False, metavar="[ACCOUNT]")
@click.option("--from", "start", help="Only rebuild from this date on")
@click.pass_context
def rebuild_snapshots(ctx, account: str | None, start: str | None) -> None:
    """Recompute daily balance snapshots.

    Without ACCOUNT, every account you can see is rebuilt from its first
    paid entry.

    Examples:
        ledgerkit snapshot rebuild
        ledgerkit snapshot rebuild Checking --from 2025-01-01
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = SnapshotService(db)

    if account is not None:
        account_ids = [resolve_account_or_exit(ctx, account_service, account)]
    else:
        account_ids = [acc.id for acc in account_service.list_accounts(ctx.obj["user"])]

    since = parse_date_or_exit(ctx, start) if start is not None else None
    total = 0
    for account_id in account_ids:
        if since is not None:
            total += service.recompute(account_id, since)
        else:
            total += service.rebuild(account_id)

    click.echo(f"Rebuilt {total} snapshots across {len(account_ids)} account{'s' if len(account_ids) != 1 else ''}")


def register_commands(cli):
    """Register snapshot commands with main CLI."""
    cli.add_command(snapshot_group, name="snapshot")

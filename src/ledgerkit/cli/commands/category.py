"""Category management commands."""

import click
from ledgerkit.cli.error_handling import handle_domain_error
from ledgerkit.domain.category import CategoryService
from ledgerkit.domain.entities import Category


def print_category_tree(categories: list[Category], parent_id: int | None = None, indent: int = 0) -> None:
    """Recursively print category tree."""
    for cat in categories:
        if cat.parent_id != parent_id:
            continue
        prefix = "  " * indent
        scope = "" if cat.owner_id is None else " [personal]"
        click.echo(f"{prefix}{cat.name} (ID: {cat.id}){scope}")
        print_category_tree(categories, cat.id, indent + 1)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List global and personal categories in tree format."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    categories = service.list_categories(ctx.obj["user"])
    if not categories:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    print_category_tree(categories)


@category_group.command("create")
@click.argument("name")
@click.option("--parent", "parent_id", type=int, help="Parent category ID")
@click.pass_context
def create_category(ctx, name: str, parent_id: int | None):
    """Create a new personal category."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    try:
        category_id = service.create_category(ctx.obj["user"], name=name, parent_id=parent_id)
        parent_str = f" under category {parent_id}" if parent_id is not None else ""
        click.echo(f"Created category '{name}'{parent_str} (ID: {category_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")

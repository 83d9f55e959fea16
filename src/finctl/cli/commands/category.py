"""Category management commands."""

import click
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json
from finctl.domain.category import CategoryService
from finctl.domain.dre import KeywordClassifier
from finctl.domain.entities import CategoryType
from finctl.domain.errors import DomainError
from finctl.domain.payloads import category_payload


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--type", "category_type", type=click.Choice([t.value for t in CategoryType]))
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def list_categories(ctx, category_type: str | None, as_json: bool):
    """List categories with the DRE line each expense category rolls up into."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    service = CategoryService(db)

    categories = service.list_categories(
        tenant_id, CategoryType(category_type) if category_type else None
    )

    if as_json:
        echo_json([category_payload(cat) for cat in categories])
        return

    if not categories:
        click.echo("No categories found. Run 'category init' to create default categories.")
        return

    classify = KeywordClassifier()
    click.echo("\nCategories:")
    for cat in categories:
        line = f"  {cat.name} (ID: {cat.id}, {cat.type.value})"
        if cat.type == CategoryType.EXPENSE:
            line += f" -> {classify(cat.name).value}"
        click.echo(line)


@category_group.command("create")
@click.argument("name")
@click.option(
    "--type",
    "category_type",
    type=click.Choice([t.value for t in CategoryType], case_sensitive=False),
    default="expense",
    help="Category type (default: expense)",
)
@click.pass_context
def create_category(ctx, name: str, category_type: str):
    """Create a new category."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    service = CategoryService(db)

    try:
        category = service.create_category(tenant_id, name, category_type.lower())
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {category.type.value} category '{category.name}' (ID: {category.id})")


@category_group.command("init")
@click.pass_context
def init_categories(ctx):
    """Create the default categories for a tenant that has none."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    created = CategoryService(db).ensure_default_categories(tenant_id)
    if not created:
        click.echo("Categories already exist; nothing created.")
        return
    click.echo(f"Created {len(created)} default categories.")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")

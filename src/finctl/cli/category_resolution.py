"""CLI helpers for category resolution."""

from __future__ import annotations

import click
from finctl.domain.category import CategoryService


def resolve_category_or_exit(
    ctx: click.Context, category_service: CategoryService, tenant_id: str, category: str
) -> int:
    """Resolve a category name or ID to an ID, or exit with a CLI error."""
    if category.isdigit():
        found = category_service.get_category(tenant_id, int(category))
    else:
        found = category_service.get_category_by_name(tenant_id, category)
    if found is None:
        click.echo(f"Error: Category '{category}' not found", err=True)
        ctx.exit(1)
    return found.id

"""Installment group commands."""

import click
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json, money
from finctl.domain.entities import DueDateUpdate
from finctl.domain.errors import DomainError
from finctl.domain.installments import InstallmentGrouper
from finctl.domain.payloads import group_payload
from finctl.domain.transaction import TransactionService
from finctl.utils.date_parser import parse_date


@click.group()
def group_group():
    """View and maintain installment groups."""
    pass


@group_group.command("list")
@click.option("--unpaid", is_flag=True, help="Show only groups with open installments")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def list_groups(ctx, unpaid: bool, as_json: bool) -> None:
    """Show transactions grouped by installment plan, newest first."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    groups = InstallmentGrouper(db).groups_for_tenant(tenant_id)
    if unpaid:
        groups = [group for group in groups if not group.is_paid]

    if as_json:
        echo_json([group_payload(group) for group in groups])
        return

    if not groups:
        click.echo("No installment groups found.")
        return

    for group in groups:
        state = "paid" if group.is_paid else f"remaining {money(group.remaining)}"
        click.echo(f"\n{group.description}  [{group.key}]")
        click.echo(f"  Total: {money(group.total)} | Interest: {money(group.interest_total)} | {state}")
        click.echo("  " + "-" * 70)
        for view in group.installments:
            txn = view.transaction
            click.echo(
                f"  ID: {txn.id:<6} {str(view.display_due_date):<12} {money(txn.amount):>12} "
                f"{txn.status.value:<10} {txn.description or ''}"
            )
        for message in group.diagnostics:
            click.echo(f"  Note: {message}")


def _parse_update(ctx, value: str) -> DueDateUpdate:
    transaction_id, sep, due_date = value.partition("=")
    if not sep or not transaction_id.strip().isdigit():
        click.echo(f"Error: Expected TRANSACTION_ID=DATE, got '{value}'", err=True)
        ctx.exit(1)
    try:
        parsed = parse_date(due_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
    return DueDateUpdate(transaction_id=int(transaction_id), due_date=parsed)


@group_group.command("reschedule")
@click.argument("group_key")
@click.argument("changes", nargs=-1, required=True)
@click.pass_context
def reschedule_group(ctx, group_key: str, changes: tuple[str, ...]) -> None:
    """Change due dates of several installments at once.

    Either every change is applied or none is.

    Examples:
        finctl group reschedule sale-1a2b3c4d5e6f 12=2024-02-10 13=2024-03-10
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    updates = [_parse_update(ctx, value) for value in changes]
    try:
        updated = TransactionService(db).reschedule_group(tenant_id, group_key, updates)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Rescheduled {len(updated)} installment(s) of group {group_key}")


@group_group.command("repair-dates")
@click.argument("group_key")
@click.pass_context
def repair_group_dates(ctx, group_key: str) -> None:
    """Spread installments that share one due date over consecutive months."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        updated = TransactionService(db).repair_group_dates(tenant_id, group_key)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not updated:
        click.echo(f"Group {group_key} already has distinct due dates; nothing to repair.")
        return
    click.echo(f"Repaired {len(updated)} installment(s) of group {group_key}:")
    for txn in updated:
        click.echo(f"  ID: {txn.id:<6} due {txn.due_date}")


def register_commands(cli: click.Group) -> None:
    """Register installment group commands with main CLI."""
    cli.add_command(group_group, name="group")

"""Bank statement reconciliation commands."""

import click
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json, money
from finctl.domain.entities import BankItemStatus
from finctl.domain.errors import DomainError
from finctl.domain.payloads import bank_item_payload, match_candidate_payload
from finctl.domain.reconciliation import ReconciliationService
from finctl.utils.amount_parser import parse_amount
from finctl.utils.date_parser import parse_date


@click.group()
def bank_group():
    """Import bank statement items and reconcile them."""
    pass


@bank_group.command("import")
@click.argument("item_date", required=False)
@click.argument("amount", required=False)
@click.argument("description", required=False)
@click.option("--csv", "csv_file", type=click.Path(exists=True), help="Import a statement CSV file")
@click.pass_context
def import_items(
    ctx, item_date: str | None, amount: str | None, description: str | None, csv_file: str | None
) -> None:
    """Import one bank statement line, or a whole CSV statement.

    The CSV file needs date, amount and description columns.

    Examples:
        finctl bank import 2024-01-15 100.00 "PIX received"
        finctl bank import --csv statement.csv
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    service = ReconciliationService(db)

    if csv_file:
        if item_date or amount or description:
            click.echo("Error: --csv cannot be combined with DATE AMOUNT DESCRIPTION", err=True)
            ctx.exit(1)
        try:
            result = service.import_csv(tenant_id, csv_file)
        except (DomainError, FileNotFoundError) as e:
            handle_domain_error(ctx, e)
        click.echo("\nImport complete:")
        click.echo(f"  Imported: {result['imported']} item(s)")
        if result["errors"]:
            click.echo(f"  Errors: {len(result['errors'])}")
            for error in result["errors"]:
                click.echo(f"    {error}", err=True)
        return

    if not (item_date and amount and description):
        click.echo("Error: Provide DATE AMOUNT DESCRIPTION or --csv FILE", err=True)
        ctx.exit(1)

    try:
        parsed_date = parse_date(item_date)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
    try:
        parsed_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        item = service.import_item(tenant_id, parsed_date, parsed_amount, description)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Imported bank item {item.id}: {item.date} {money(item.amount)} {item.description}")


@bank_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in BankItemStatus]))
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def list_items(ctx, status: str | None, as_json: bool) -> None:
    """List bank statement items."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    items = ReconciliationService(db).list_items(
        tenant_id, BankItemStatus(status) if status else None
    )

    if as_json:
        echo_json([bank_item_payload(item) for item in items])
        return

    if not items:
        click.echo("No bank statement items found.")
        return

    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>12} {'Status':<11} {'Txn':<6} {'Description':<40}")
    click.echo("-" * 92)
    for item in items:
        linked = str(item.transaction_id) if item.transaction_id is not None else ""
        click.echo(
            f"{item.id:<6} {str(item.date):<12} {money(item.amount):>12} {item.status.value:<11} "
            f"{linked:<6} {item.description[:40]:<40}"
        )


@bank_group.command("match")
@click.argument("bank_item_id", type=int)
@click.argument("transaction_id", type=int)
@click.pass_context
def match_item(ctx, bank_item_id: int, transaction_id: int) -> None:
    """Reconcile a bank item with a transaction."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        ReconciliationService(db).match(tenant_id, bank_item_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reconciled bank item {bank_item_id} with transaction {transaction_id}")


@bank_group.command("suggest")
@click.argument("bank_item_id", type=int)
@click.option("--window", type=int, default=5, show_default=True, help="Date window in days")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def suggest_matches(ctx, bank_item_id: int, window: int, as_json: bool) -> None:
    """Suggest transactions that could settle a bank item."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        candidates = ReconciliationService(db).suggest_matches(tenant_id, bank_item_id, window)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json([match_candidate_payload(candidate) for candidate in candidates])
        return

    if not candidates:
        click.echo("No matching transactions found.")
        return

    for candidate in candidates:
        txn = candidate.transaction
        click.echo(
            f"ID: {txn.id:<6} {str(txn.due_date or ''):<12} {money(txn.amount):>12} "
            f"{candidate.days_apart:>3} day(s) apart  {txn.description or ''}"
        )


@bank_group.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear_items(ctx, yes: bool) -> None:
    """Delete every bank statement item of the tenant.

    Transactions keep their reconciled flag.
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    if not yes and not click.confirm("Delete all bank statement items?"):
        click.echo("Clear cancelled.")
        return
    count = ReconciliationService(db).clear(tenant_id)
    click.echo(f"Deleted {count} bank statement item(s)")


def register_commands(cli: click.Group) -> None:
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")

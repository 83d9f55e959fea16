"""Transaction management commands."""

import click
from finctl.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json, money
from finctl.domain.entities import TermsEdit, TransactionFilters, TransactionStatus, TransactionType
from finctl.domain.errors import DomainError
from finctl.domain.installments import settlement_totals
from finctl.domain.payloads import settlement_payload, transaction_payload
from finctl.domain.payment import PaymentService
from finctl.domain.transaction import TransactionService
from finctl.utils.amount_parser import parse_amount
from finctl.utils.date_parser import parse_date


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("list")
@period_options
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]))
@click.option("--status", type=click.Choice([s.value for s in TransactionStatus]))
@click.option("--customer", help="Customer ID")
@click.option("--supplier", help="Supplier ID")
@click.option("--group", "group_key", help="Installment group key")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    txn_type: str | None,
    status: str | None,
    customer: str | None,
    supplier: str | None,
    group_key: str | None,
    as_json: bool,
    **period_flags,
):
    """View transactions with optional filters, newest due date first."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    service = TransactionService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(period_flags),
    )

    filters = TransactionFilters(
        customer_id=customer,
        supplier_id=supplier,
        type=TransactionType(txn_type) if txn_type else None,
        status=TransactionStatus(status) if status else None,
        installment_group=group_key,
        start_date=start,
        end_date=end,
    )
    transactions = service.list_transactions(tenant_id, filters)
    totals = settlement_totals(transactions)

    if as_json:
        echo_json(
            {
                "transactions": [transaction_payload(txn) for txn in transactions],
                "totals": settlement_payload(totals),
            }
        )
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    click.echo(
        f"{'ID':<6} {'Type':<9} {'Due':<12} {'Amount':>12} {'Paid':>12} {'Status':<10} "
        f"{'Rec':<4} {'Description':<40}"
    )
    click.echo("-" * 110)

    for txn in transactions:
        paid = money(txn.paid_amount) if txn.paid_amount is not None else ""
        reconciled = "yes" if txn.is_reconciled else ""
        description = (txn.description or "")[:40]
        click.echo(
            f"{txn.id:<6} {txn.type.value:<9} {str(txn.due_date or ''):<12} {money(txn.amount):>12} "
            f"{paid:>12} {txn.status.value:<10} {reconciled:<4} {description:<40}"
        )

    click.echo("-" * 110)
    click.echo(
        f"{'TOTAL':<6} Received: {money(totals.received)} | Pending: {money(totals.pending)} "
        f"| Count: {len(transactions)}"
    )


@transaction_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option("--amount", help="New installment amount")
@click.option("--due-date", help="New due date")
@click.pass_context
def edit_transaction(ctx, transaction_id: int, amount: str | None, due_date: str | None) -> None:
    """Change the amount and/or due date of an installment.

    The amount before the first edit is kept as the original amount.

    Examples:
        finctl transaction edit 12 --amount 150.00
        finctl transaction edit 12 --due-date 2024-03-10
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]

    new_amount = None
    if amount is not None:
        try:
            new_amount = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    new_due_date = None
    if due_date is not None:
        try:
            new_due_date = parse_date(due_date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        txn = PaymentService(db).edit_terms(
            tenant_id, transaction_id, TermsEdit(amount=new_amount, due_date=new_due_date)
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Updated transaction {transaction_id}: amount {money(txn.amount)}, due {txn.due_date}"
    )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a transaction.

    Reconciled transactions cannot be deleted.

    Examples:
        finctl transaction delete 1
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    transaction_service = TransactionService(db)

    try:
        transaction_service.require_transaction(tenant_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        transaction_service.delete_transaction(tenant_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("void")
@click.argument("transaction_id", type=int)
@click.pass_context
def void_transaction(ctx, transaction_id: int) -> None:
    """Mark a pending or partially paid transaction as cancelled."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        PaymentService(db).void_transaction(tenant_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Voided transaction {transaction_id}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")

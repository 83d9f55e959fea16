"""Sale and purchase entry commands."""

from datetime import date

import click
from finctl.cli.category_resolution import resolve_category_or_exit
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json, money
from finctl.domain.category import CategoryService
from finctl.domain.entities import EntryRequest, TransactionType
from finctl.domain.errors import DomainError
from finctl.domain.payloads import transaction_payload
from finctl.domain.transaction import TransactionService
from finctl.utils.amount_parser import ZERO, parse_amount, parse_rate
from finctl.utils.date_parser import parse_date


@click.group()
def entry_group():
    """Record sales and purchases."""
    pass


def _record_entry(
    ctx,
    txn_type: TransactionType,
    amount: str,
    entry_date: str | None,
    installments: int,
    due_dates: tuple[str, ...],
    description: str | None,
    party: str | None,
    category: str | None,
    payment_method: str | None,
    paid: bool,
    card_fee: str | None,
    as_json: bool,
) -> None:
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    transaction_service = TransactionService(db)

    try:
        total = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        base_date = parse_date(entry_date) if entry_date else date.today()
        custom_dates = tuple(parse_date(value) for value in due_dates)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    card_fee_rate = None
    if card_fee is not None:
        try:
            card_fee_rate = parse_rate(card_fee)
        except ValueError as e:
            click.echo(f"Error: Invalid card fee rate: {e}", err=True)
            ctx.exit(1)

    category_id = None
    if category:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), tenant_id, category)

    request = EntryRequest(
        type=txn_type,
        total_amount=total,
        entry_date=base_date,
        installment_count=installments,
        description=description,
        customer_id=party if txn_type == TransactionType.SALE else None,
        supplier_id=party if txn_type == TransactionType.PURCHASE else None,
        category_id=category_id,
        payment_method=payment_method,
        paid=paid,
        has_card_fee=card_fee_rate is not None,
        card_fee_rate=card_fee_rate if card_fee_rate is not None else ZERO,
        custom_due_dates=custom_dates,
    )

    try:
        created = transaction_service.create_entry(tenant_id, request)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json([transaction_payload(txn) for txn in created])
        return

    click.echo(
        f"Recorded {txn_type.value} of {money(total)} in {len(created)} installment(s) "
        f"(group: {created[0].installment_group})"
    )
    for txn in created:
        click.echo(
            f"  ID: {txn.id:<6} {str(txn.due_date):<12} {money(txn.amount):>12} "
            f"{txn.status.value:<10} {txn.description}"
        )


def _entry_options(func):
    options = [
        click.argument("amount"),
        click.option("--date", "entry_date", help="Entry date (default: today)"),
        click.option(
            "--installments", "-n", type=int, default=1, show_default=True,
            help="Number of monthly installments",
        ),
        click.option(
            "--due-date", "due_dates", multiple=True,
            help="Custom installment due date (repeat once per installment)",
        ),
        click.option("--description", help="Description (default: Sale / Purchase)"),
        click.option("--category", help="Category name or ID"),
        click.option("--payment-method", help="Payment method (e.g. pix, credit_card, cash)"),
        click.option("--paid", is_flag=True, help="Record the installments as already paid"),
        click.option("--card-fee", help="Card fee rate in percent (e.g. 3.5)"),
        click.option("--json", "as_json", is_flag=True, help="Print the created rows as JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@entry_group.command("sale")
@_entry_options
@click.option("--customer", help="Customer ID")
@click.pass_context
def record_sale(ctx, customer: str | None, **kwargs) -> None:
    """Record a sale, optionally split into installments.

    Examples:
        finctl entry sale 300.00 --installments 3 --category Sales
        finctl entry sale "R$ 1.234,56" --paid --payment-method pix
    """
    _record_entry(ctx, TransactionType.SALE, party=customer, **kwargs)


@entry_group.command("purchase")
@_entry_options
@click.option("--supplier", help="Supplier ID")
@click.pass_context
def record_purchase(ctx, supplier: str | None, **kwargs) -> None:
    """Record a purchase, optionally split into installments.

    Examples:
        finctl entry purchase 900.00 -n 3 --category "Merchandise Purchases"
    """
    _record_entry(ctx, TransactionType.PURCHASE, party=supplier, **kwargs)


def register_commands(cli: click.Group) -> None:
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")

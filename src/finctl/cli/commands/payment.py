"""Payment commands."""

import click
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import money
from finctl.domain.entities import PaymentConfirmation
from finctl.domain.errors import DomainError
from finctl.domain.payment import PaymentService
from finctl.utils.amount_parser import ZERO, parse_amount, parse_rate
from finctl.utils.date_parser import parse_datetime


@click.group()
def payment_group():
    """Confirm and cancel payments of installments."""
    pass


@payment_group.command("confirm")
@click.argument("transaction_id", type=int)
@click.argument("paid_amount")
@click.option("--interest", default="0", help="Interest or late fee paid on top")
@click.option("--date", "payment_date", help="Payment date (default: now)")
@click.option("--method", "payment_method", help="Payment method (e.g. pix, credit_card)")
@click.option("--card-fee", help="Card fee rate in percent (e.g. 3.5)")
@click.pass_context
def confirm_payment(
    ctx,
    transaction_id: int,
    paid_amount: str,
    interest: str,
    payment_date: str | None,
    payment_method: str | None,
    card_fee: str | None,
) -> None:
    """Record a payment against one installment.

    The installment becomes paid when paid amount plus interest covers its
    amount, otherwise partial.

    Examples:
        finctl payment confirm 12 100.00
        finctl payment confirm 12 40.00 --interest 2.50 --method pix
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]

    try:
        paid = parse_amount(paid_amount)
        interest_amount = parse_amount(interest)
        fee_rate = parse_rate(card_fee) if card_fee is not None else ZERO
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    when = None
    if payment_date:
        try:
            when = parse_datetime(payment_date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    confirmation = PaymentConfirmation(
        paid_amount=paid,
        interest=interest_amount,
        payment_date=when,
        payment_method=payment_method,
        has_card_fee=card_fee is not None,
        card_fee_rate=fee_rate,
    )
    try:
        txn = PaymentService(db).confirm_payment(tenant_id, transaction_id, confirmation)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Transaction {transaction_id} is now {txn.status.value} "
        f"(paid {money(txn.paid_amount)} + interest {money(txn.interest)} of {money(txn.amount)})"
    )


@payment_group.command("cancel")
@click.argument("transaction_id", type=int)
@click.pass_context
def cancel_payment(ctx, transaction_id: int) -> None:
    """Undo a recorded payment; the installment returns to pending."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        PaymentService(db).cancel_payment(tenant_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Payment of transaction {transaction_id} cancelled; it is pending again")


def register_commands(cli: click.Group) -> None:
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")

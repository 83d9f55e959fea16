"""DRE report commands."""

import click
from finctl.cli.date_filters import period_options, pop_period_flags, resolve_cli_date_range
from finctl.cli.error_handling import handle_domain_error
from finctl.cli.output import echo_json, money
from finctl.domain.dre import DREService
from finctl.domain.errors import DomainError
from finctl.domain.payloads import dre_payload, monthly_payload


@click.group()
def report_group():
    """Income statement (DRE) reports."""
    pass


def _line(label: str, value, indent: int = 0) -> None:
    click.echo(f"{' ' * indent}{label:<{50 - indent}} {money(value):>20}")


@report_group.command("dre")
@period_options
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def dre_report(ctx, start_date: str | None, end_date: str | None, as_json: bool, **period_flags):
    """Show the DRE for a period.

    Transactions count in the period of their payment date, or of their due
    date while unpaid.
    """
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(period_flags),
    )

    report = DREService(db).build_report(tenant_id, start, end)

    if as_json:
        echo_json(dre_payload(report))
        return

    period = f"{start or 'beginning'} to {end or 'today'}"
    click.echo(f"\nDRE ({period}):")
    click.echo("-" * 71)
    _line("Gross revenue", report.gross_revenue)
    for name, value in sorted(report.revenue_by_category.items()):
        _line(name, value, indent=4)
    _line("(-) Deductions", report.deductions)
    _line("Net revenue", report.net_revenue)
    _line("(-) Direct costs", report.direct_costs)
    _line(f"Gross profit ({report.gross_margin}%)", report.gross_profit)
    _line("(-) Selling expenses", report.selling_expenses)
    _line("(-) Administrative expenses", report.admin_expenses)
    _line("(-) Other operating expenses", report.other_operating_expenses)
    _line(f"Operating result ({report.operating_margin}%)", report.operating_result)
    _line("(-) Taxes", report.taxes)
    click.echo("=" * 71)
    _line(f"NET RESULT ({report.net_margin}%)", report.net_result)

    if report.payment_methods:
        click.echo("\nBy payment method:")
        for method, summary in sorted(report.payment_methods.items()):
            click.echo(
                f"    {method:<20} income {money(summary.income):>14}  "
                f"expense {money(summary.expense):>14}  ({summary.count})"
            )
    for message in report.diagnostics:
        click.echo(f"Note: {message}", err=True)


@report_group.command("monthly")
@click.option("--months", type=int, default=12, show_default=True, help="Number of months")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON")
@click.pass_context
def monthly_report(ctx, months: int, as_json: bool):
    """Compare revenue, expenses and profit month by month."""
    db = ctx.obj["db"]
    tenant_id = ctx.obj["tenant"]
    try:
        comparison = DREService(db).monthly_comparison(tenant_id, months)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(monthly_payload(comparison))
        return

    click.echo(f"\n{'Month':<10} {'Revenue':>16} {'Expenses':>16} {'Profit':>16} {'Margin':>9}")
    click.echo("-" * 71)
    for result in comparison.months:
        click.echo(
            f"{result.month.strftime('%Y-%m'):<10} {money(result.revenue):>16} "
            f"{money(result.expenses):>16} {money(result.profit):>16} {result.margin:>8}%"
        )
    click.echo("-" * 71)
    click.echo(
        f"{'Average':<10} {money(comparison.average_revenue):>16} "
        f"{money(comparison.average_expenses):>16} {money(comparison.average_profit):>16} "
        f"{comparison.average_margin:>8}%"
    )
    click.echo(f"Profitable months: {comparison.profitable_months_percent}%")


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")

"""Period options shared by commands that filter by date."""

from datetime import date
from typing import Callable

import click

from finctl.utils.date_parser import get_date_range, parse_date

PERIODS = ("this-month", "this-year", "last-month", "last-year")


def period_options(func: Callable) -> Callable:
    """Add --start-date, --end-date and one flag per named period."""
    options = [
        click.option(
            "--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')"
        ),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')"),
    ]
    for period in PERIODS:
        options.append(
            click.option(
                f"--{period}",
                period.replace("-", "_"),
                is_flag=True,
                help=f"Filter to {period.replace('-', ' ')}",
            )
        )
    for option in reversed(options):
        func = option(func)
    return func


def pop_period_flags(kwargs: dict) -> dict[str, bool]:
    """Remove the period flags added by period_options from a command's kwargs."""
    return {period: kwargs.pop(period.replace("-", "_")) for period in PERIODS}


def _parse_bound(ctx: click.Context, label: str, value: str | None) -> date | None:
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} date: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx: click.Context,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve a date range from at most one period flag or explicit bounds.

    Exits with an error when several periods are chosen, when a period is
    mixed with explicit bounds, or when the range is reversed.
    """
    chosen = [period for period, is_set in period_flags.items() if is_set]
    flag_names = ", ".join(f"--{period}" for period in period_flags)

    if len(chosen) > 1:
        click.echo(f"Error: Only one period option ({flag_names}) can be specified at a time.", err=True)
        ctx.exit(1)
    if chosen and (start_date or end_date):
        click.echo(
            f"Error: Period options ({flag_names}) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if chosen:
        start, end = get_date_range(chosen[0])
    else:
        start = _parse_bound(ctx, "start", start_date)
        end = _parse_bound(ctx, "end", end_date)
        if start is None and end is None and default_range is not None:
            start, end = default_range

    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must not be after end date.", err=True)
        ctx.exit(1)
    return start, end

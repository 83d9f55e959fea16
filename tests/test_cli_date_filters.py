"""Tests for the shared period options."""

import json
from datetime import date

import click
import pytest
from click.testing import CliRunner

from finctl.cli.date_filters import PERIODS, period_options, pop_period_flags, resolve_cli_date_range
from finctl.utils.date_parser import get_date_range


@click.command()
@period_options
@click.pass_context
def show_range(ctx, start_date, end_date, **period_flags):
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=pop_period_flags(period_flags),
        default_range=(date(2020, 1, 1), date(2020, 1, 31)),
    )
    click.echo(json.dumps([str(start), str(end)]))


@pytest.fixture
def invoke():
    runner = CliRunner()
    return lambda *args: runner.invoke(show_range, list(args))


def test_every_period_has_a_flag(invoke):
    result = invoke("--help")

    for period in PERIODS:
        assert f"--{period}" in result.output


def test_period_flag_sets_range(invoke):
    result = invoke("--last-month")

    assert result.exit_code == 0
    assert json.loads(result.output) == [str(d) for d in get_date_range("last-month")]


def test_explicit_bounds(invoke):
    result = invoke("--start-date", "2024-01-02", "--end-date", "02/03/2024")

    assert result.exit_code == 0
    assert json.loads(result.output) == ["2024-01-02", "2024-03-02"]


def test_open_ended_bound(invoke):
    result = invoke("--start-date", "2024-01-02")

    assert json.loads(result.output) == ["2024-01-02", "None"]


def test_default_range_without_options(invoke):
    result = invoke()

    assert json.loads(result.output) == ["2020-01-01", "2020-01-31"]


@pytest.mark.parametrize(
    "args,message",
    [
        (("--this-month", "--last-year"), "Only one period option"),
        (("--this-year", "--end-date", "2024-01-01"), "cannot be combined with --start-date or --end-date"),
        (("--start-date", "not-a-date"), "Invalid start date"),
        (("--end-date", "someday"), "Invalid end date"),
        (("--start-date", "2024-02-01", "--end-date", "2024-01-01"), "Start date must not be after end date"),
    ],
)
def test_rejected_combinations(invoke, args, message):
    result = invoke(*args)

    assert result.exit_code == 1
    assert message in result.output


def test_pop_period_flags_leaves_other_options():
    kwargs = {"this_month": True, "this_year": False, "last_month": False, "last_year": False, "as_json": True}

    flags = pop_period_flags(kwargs)

    assert flags == {"this-month": True, "this-year": False, "last-month": False, "last-year": False}
    assert kwargs == {"as_json": True}

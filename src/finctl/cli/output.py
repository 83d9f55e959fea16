"""CLI output helpers."""

import json
from decimal import Decimal
from typing import Any, Optional

import click

from finctl.utils.amount_parser import format_amount


def money(value: Optional[Decimal]) -> str:
    """Amount with thousands separators, or "-" when absent."""
    if value is None:
        return "-"
    return f"{Decimal(format_amount(value)):,.2f}"


def echo_json(payload: Any) -> None:
    """Print a payload as indented JSON."""
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))

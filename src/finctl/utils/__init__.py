"""Utility functions for finctl."""

from finctl.utils.date_parser import parse_date
from finctl.utils.amount_parser import parse_amount, to_cents, format_amount

__all__ = ["parse_date", "parse_amount", "to_cents", "format_amount"]

"""Amount parsing and cent rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, ROUND_FLOOR
from typing import Iterable, Optional, Union
import re

CENT = Decimal("0.01")
# Card fee rates are percentages kept to four places, e.g. 3.125
RATE_STEP = Decimal("0.0001")
ZERO = Decimal("0.00")

AmountLike = Union[Decimal, int, str, float, None]

_SYMBOLS = re.compile(r"R\$|[$€£¥%]")


def _normalize_separators(text: str) -> str:
    # Whichever separator appears last is the decimal one
    if text.rfind(",") > text.rfind("."):
        return text.replace(".", "").replace(",", ".")
    return text.replace(",", "")


def _parse_decimal(amount_str: str) -> Decimal:
    text = (amount_str or "").strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    text = _normalize_separators(_SYMBOLS.sub("", text).strip())
    if not text:
        raise ValueError("Empty amount string")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if negative else amount


def parse_amount(amount_str: str) -> Decimal:
    """Parse a typed or imported amount into a Decimal rounded to cents.

    Both "1,234.56" and "1.234,56" read as 1234.56. Currency symbols such as
    "R$" are ignored, and "(50.00)" is negative, as on bank statements.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    return to_cents(_parse_decimal(amount_str))


def parse_rate(rate_str: str) -> Decimal:
    """Parse a percentage such as "3.125", "3,5" or "2.5%" without rounding to cents."""
    return to_rate(_parse_decimal(rate_str))


def to_cents(value: AmountLike) -> Decimal:
    """Round a value to two decimal places. None becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_rate(value: AmountLike) -> Decimal:
    """Round a percentage rate to four decimal places. None becomes zero."""
    if value is None:
        return Decimal("0.0000")
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(RATE_STEP, rounding=ROUND_HALF_UP)


def add_cents(total: Decimal, value: AmountLike) -> Decimal:
    """Add value to total, rounding to cents after the addition."""
    return to_cents(to_cents(total) + to_cents(value))


def sum_cents(values: Iterable[AmountLike]) -> Decimal:
    """Sum values, rounding to cents after each addition."""
    total = ZERO
    for value in values:
        total = add_cents(total, value)
    return total


def split_amount(total: Decimal, count: int) -> list[Decimal]:
    """Split total into count parts; the last part absorbs the remainder.

    Every part but the last is ``total / count`` floored to the cent.
    """
    if count < 1:
        raise ValueError("Installment count must be at least 1")
    total = to_cents(total)
    share = (total / count).quantize(CENT, rounding=ROUND_FLOOR)
    last = to_cents(total - share * (count - 1))
    return [share] * (count - 1) + [last]


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """Return part as a percentage of whole, or zero if whole is not positive."""
    if whole <= 0:
        return ZERO
    return to_cents(part / whole * 100)


def format_amount(value: Optional[Decimal]) -> Optional[str]:
    """Render an amount as a decimal string with exactly two fraction digits."""
    if value is None:
        return None
    return f"{to_cents(value):.2f}"


def format_rate(value: Decimal) -> str:
    """Render a rate with two fraction digits, or up to four when it needs them."""
    rate = to_rate(value)
    if rate == rate.quantize(CENT):
        return f"{rate:.2f}"
    return f"{rate.normalize():f}"

"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from ledgerkit.utils.money import quantize_amount

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥]|R\$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount into a two-place Decimal.

    Accepts "123.45", "$1,234.56", "R$ 10.00", "-50" and the accounting
    notation "(123.45)" for negatives.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount rounded to cents

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    text = _CURRENCY_SYMBOLS.sub("", text).replace(",", "").replace(" ", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")

    return quantize_amount(-amount if negative else amount)


def parse_positive_amount(amount_str: str) -> Decimal:
    """Parse an amount that must be strictly positive (a magnitude).

    Raises:
        ValueError: If the amount cannot be parsed or is not positive
    """
    amount = parse_amount(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
    return amount

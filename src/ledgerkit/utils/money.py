"""Exact money helpers working in minor units (cents)."""

from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to an integer number of cents (half-up)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(cents: int) -> Decimal:
    """Convert an integer number of cents back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENTS)


def quantize_amount(amount: Decimal) -> Decimal:
    """Round an amount to cents."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def split_exact(total_minor: int, parts: int) -> list[int]:
    """Split a total in minor units into ``parts`` shares that add up exactly.

    Every share but the last equals ``total_minor // parts``; the last share
    absorbs the whole remainder. This ordering is part of the contract: an
    installment plan of 1000.00 in 3 parts is always 333.33, 333.33, 333.34.

    Args:
        total_minor: Non-negative total, in minor units
        parts: Number of shares (>= 1)

    Returns:
        List of ``parts`` integer shares

    Raises:
        ValueError: If parts < 1 or total_minor is negative
    """
    if parts < 1:
        raise ValueError(f"Cannot split into {parts} parts")
    if total_minor < 0:
        raise ValueError("Cannot split a negative total")

    base = total_minor // parts
    shares = [base] * (parts - 1)
    shares.append(total_minor - base * (parts - 1))
    return shares

"""Tests for minor-unit money helpers."""

from decimal import Decimal

import pytest

from ledgerkit.utils.money import from_minor_units, quantize_amount, split_exact, to_minor_units


def test_split_exact_puts_remainder_on_last_share():
    """Test that 1000.00 in 3 parts is 333.33, 333.33, 333.34."""
    assert split_exact(100000, 3) == [33333, 33333, 33334]


def test_split_exact_even_split():
    """Test an evenly divisible total."""
    assert split_exact(1200, 4) == [300, 300, 300, 300]


def test_split_exact_sums_to_total():
    """Test that shares always add up to the total."""
    for total, parts in [(1, 7), (99999, 12), (100, 360), (5, 1)]:
        shares = split_exact(total, parts)
        assert len(shares) == parts
        assert sum(shares) == total


def test_split_exact_more_parts_than_cents():
    """Test that small totals leave zero shares and the whole amount last."""
    assert split_exact(2, 3) == [0, 0, 2]


def test_split_exact_rejects_zero_parts():
    """Test that fewer than one part is rejected."""
    with pytest.raises(ValueError):
        split_exact(100, 0)


def test_split_exact_rejects_negative_total():
    """Test that a negative total is rejected."""
    with pytest.raises(ValueError):
        split_exact(-100, 2)


def test_to_minor_units_rounds_half_up():
    """Test conversion to cents."""
    assert to_minor_units(Decimal("10.005")) == 1001
    assert to_minor_units(Decimal("0.01")) == 1
    assert to_minor_units(Decimal("1234.5")) == 123450


def test_from_minor_units():
    """Test conversion back to a two-place Decimal."""
    assert from_minor_units(33334) == Decimal("333.34")
    assert from_minor_units(5) == Decimal("0.05")


def test_quantize_amount():
    """Test rounding to cents."""
    assert quantize_amount(Decimal("2.345")) == Decimal("2.35")
    assert str(quantize_amount(Decimal("7"))) == "7.00"

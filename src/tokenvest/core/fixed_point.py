"""
Fixed-point helpers for vesting percentages.

Percentages are stored as integers scaled by ``SCALE`` (10**20), so 50% is
``5 * 10**19``. All amount arithmetic stays in integers and rounds down,
which never pays out more than the schedule allows.
"""

from __future__ import annotations

from decimal import Decimal

# Fixed point denominator for vesting percentages
SCALE = 10**20


def mul_div(a: int, b: int, denominator: int, round_up: bool = False) -> int:
    """
    Calculate (a * b) / denominator with full precision and controlled rounding.

    Args:
        a: First multiplicand
        b: Second multiplicand
        denominator: Divisor
        round_up: If True, round up (for charging users)
                  If False, round down (for paying users)

    Returns:
        Result of (a * b) / denominator

    Raises:
        ValueError: If denominator is zero
    """
    if denominator == 0:
        raise ValueError("Division by zero")

    result = a * b

    if round_up:
        return (result + denominator - 1) // denominator
    return result // denominator


def percent_to_fixed(percent: float | str | Decimal) -> int:
    """Convert a human percentage (``50`` or ``"12.5"``) to a scaled integer."""
    value = Decimal(str(percent))
    if value < 0 or value > 100:
        raise ValueError(f"Percent must be between 0 and 100, got {percent}")
    return int(value * SCALE / 100)


def fixed_to_percent(value: int) -> Decimal:
    """Inverse of :func:`percent_to_fixed`, for display."""
    return Decimal(value) * 100 / SCALE

"""
Money rounding shared by the calculator and the totals schema.
"""

from decimal import Decimal, ROUND_HALF_UP

CENTS = Decimal("0.01")


def round_money(amount: float) -> float:
    """Round half-up to 2 decimal places."""
    return float(Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP))

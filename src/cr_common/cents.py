"""Integer arithmetic utilities for cents-based credit amounts.

All balances, envelope amounts and order amounts use int (cents).
Decimal only appears at the API boundary, where 2-decimal amounts are
converted in with to_cents and rendered with cents_to_display.
"""

from decimal import Decimal


def to_cents(amount: Decimal) -> int:
    """Convert a 2-decimal amount to cents: Decimal('12.34') -> 1234.

    Raises ValueError if the amount carries more than 2 decimal places.
    """
    cents = amount * 100
    if cents != cents.to_integral_value():
        raise ValueError(f"Amount must have at most 2 decimal places, got {amount}")
    return int(cents)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '65.00', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"


def div_round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero, for non-negative inputs.

    10000 / 3 -> 3333, 5 / 2 -> 3, 1 / 3 -> 0
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if numerator < 0:
        raise ValueError(f"numerator must be non-negative, got {numerator}")
    return (2 * numerator + denominator) // (2 * denominator)


def calculate_fee(amount: int, fee_rate_bps: int) -> int:
    """Envelope fee in cents, rounded half-up to the nearest cent.

    fee = round(amount * fee_rate_bps / 10000)
    """
    if amount == 0 or fee_rate_bps == 0:
        return 0
    return div_round_half_up(amount * fee_rate_bps, 10000)

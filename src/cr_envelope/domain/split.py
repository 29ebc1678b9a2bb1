"""Share computation for fixed and random ("two-times-average") envelopes.

All inputs and outputs are integer cents; the minimum share is 1 cent.
Called once per claim with the envelope's pre-claim remaining state.
"""

import random

from src.cr_common.cents import div_round_half_up
from src.cr_common.enums import EnvelopeType

MIN_SHARE: int = 1  # cents

_system_rng = random.SystemRandom()


def fixed_unit_share(total_amount: int, total_count: int) -> int:
    """Non-final share of a fixed envelope: total / count, rounded half-up to a cent."""
    return div_round_half_up(total_amount, total_count)


def fixed_share(total_amount: int, total_count: int, remaining_amount: int, remaining_count: int) -> int:
    # Last share absorbs all rounding residue
    if remaining_count == 1:
        return remaining_amount
    return fixed_unit_share(total_amount, total_count)


def random_share(
    remaining_amount: int, remaining_count: int, rng: random.Random | None = None
) -> int:
    """Two-times-average draw.

    The share lies in [1, upper] where
        upper = min(floor(2 * remaining / count), remaining - (count - 1))
    so no draw exceeds twice the current average and every later claimant
    is still left at least one cent.
    """
    if remaining_count == 1:
        return remaining_amount

    if remaining_amount < MIN_SHARE * remaining_count:
        # Degenerate low remainder: equal split
        return div_round_half_up(remaining_amount, remaining_count)

    upper = min(
        (2 * remaining_amount) // remaining_count,
        remaining_amount - MIN_SHARE * (remaining_count - 1),
    )
    upper = max(upper, MIN_SHARE)

    span = upper - MIN_SHARE
    if span <= 0:
        return MIN_SHARE
    return MIN_SHARE + (rng or _system_rng).randint(0, span)


def split_share(
    envelope_type: EnvelopeType,
    *,
    total_amount: int,
    total_count: int,
    remaining_amount: int,
    remaining_count: int,
    rng: random.Random | None = None,
) -> int:
    """Amount paid to the next claimant."""
    if remaining_count <= 0:
        raise ValueError(f"No shares left to split (remaining_count={remaining_count})")
    if envelope_type == EnvelopeType.FIXED:
        return fixed_share(total_amount, total_count, remaining_amount, remaining_count)
    return random_share(remaining_amount, remaining_count, rng)

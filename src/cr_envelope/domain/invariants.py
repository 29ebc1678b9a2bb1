"""Envelope invariant verification after each claim and settlement."""

import logging

from src.cr_common.enums import EnvelopeStatus
from src.cr_envelope.domain.models import Envelope

logger = logging.getLogger(__name__)


def check_envelope_invariants(
    envelope: Envelope, claimed_sum: int, claim_count: int, refunded: int = 0
) -> list[str]:
    """Return a list of violated invariants (empty when consistent).

    INV-E1: remaining_amount >= 0 and remaining_count >= 0
    INV-E2: sum(claims) + remaining_amount + refunded == total_amount
    INV-E3: remaining_count == total_count - count(claims), unless EXPIRED
    INV-E4: remaining_count == 0 exactly when the envelope is terminal
    """
    violations: list[str] = []

    if envelope.remaining_amount < 0 or envelope.remaining_count < 0:
        violations.append(
            f"INV-E1 violated: remaining_amount={envelope.remaining_amount}, "
            f"remaining_count={envelope.remaining_count}"
        )

    if claimed_sum + envelope.remaining_amount + refunded != envelope.total_amount:
        violations.append(
            f"INV-E2 violated: claims({claimed_sum}) + remaining({envelope.remaining_amount}) "
            f"+ refunded({refunded}) != total({envelope.total_amount})"
        )

    if (
        envelope.status != EnvelopeStatus.EXPIRED
        and envelope.remaining_count != envelope.total_count - claim_count
    ):
        violations.append(
            f"INV-E3 violated: remaining_count={envelope.remaining_count} "
            f"!= total_count({envelope.total_count}) - claims({claim_count})"
        )

    terminal = envelope.status in (EnvelopeStatus.FINISHED, EnvelopeStatus.EXPIRED)
    if (envelope.remaining_count == 0) != terminal:
        violations.append(
            f"INV-E4 violated: remaining_count={envelope.remaining_count} "
            f"with status={envelope.status.value}"
        )

    for msg in violations:
        logger.error("envelope=%s %s", envelope.id, msg)
    return violations

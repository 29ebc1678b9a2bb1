"""Creation limits and claim policy, read-only inputs to the envelope service."""

from dataclasses import dataclass
from datetime import timedelta

from config.settings import Settings


@dataclass(frozen=True)
class EnvelopePolicy:
    enabled: bool = True
    min_amount: int = 100              # cents
    max_amount: int = 1_000_000        # cents
    max_recipients: int = 100
    daily_limit: int = 10
    fee_rate_bps: int = 0
    lifetime: timedelta = timedelta(hours=24)
    allow_self_claim: bool = True

    @classmethod
    def from_settings(cls, s: Settings) -> "EnvelopePolicy":
        return cls(
            enabled=s.RED_ENVELOPE_ENABLED,
            min_amount=s.RED_ENVELOPE_MIN_AMOUNT_CENTS,
            max_amount=s.RED_ENVELOPE_MAX_AMOUNT_CENTS,
            max_recipients=s.RED_ENVELOPE_MAX_RECIPIENTS,
            daily_limit=s.RED_ENVELOPE_DAILY_LIMIT,
            fee_rate_bps=s.RED_ENVELOPE_FEE_BPS,
            lifetime=timedelta(seconds=s.RED_ENVELOPE_LIFETIME_SECONDS),
            allow_self_claim=s.RED_ENVELOPE_ALLOW_SELF_CLAIM,
        )

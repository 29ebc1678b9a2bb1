"""Domain models for cr_envelope — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, replace
from datetime import datetime

from src.cr_common.enums import EnvelopeStatus, EnvelopeType


@dataclass
class Envelope:
    id: int
    creator_id: str
    envelope_type: EnvelopeType
    total_amount: int        # cents
    remaining_amount: int    # cents
    total_count: int
    remaining_count: int
    status: EnvelopeStatus
    expires_at: datetime
    greeting: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def claimed_amount(self) -> int:
        return self.total_amount - self.remaining_amount

    @property
    def claimed_count(self) -> int:
        return self.total_count - self.remaining_count

    def is_expired_at(self, now: datetime) -> bool:
        return self.status == EnvelopeStatus.EXPIRED or self.expires_at <= now

    def is_exhausted(self) -> bool:
        return self.status == EnvelopeStatus.FINISHED or self.remaining_count <= 0

    def after_claim(self, amount: int) -> "Envelope":
        """Counters after paying out one share; FINISHED when the last share goes."""
        if self.status != EnvelopeStatus.ACTIVE:
            raise ValueError(f"Envelope {self.id} is {self.status.value}, cannot pay a share")
        if not (0 <= amount <= self.remaining_amount):
            raise ValueError(
                f"Share {amount} outside [0, {self.remaining_amount}] for envelope {self.id}"
            )
        remaining_count = self.remaining_count - 1
        return replace(
            self,
            remaining_amount=self.remaining_amount - amount,
            remaining_count=remaining_count,
            status=EnvelopeStatus.FINISHED if remaining_count <= 0 else self.status,
        )


@dataclass
class Claim:
    id: int
    envelope_id: int
    user_id: str
    amount: int              # cents
    claimed_at: datetime | None = None

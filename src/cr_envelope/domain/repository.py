"""Repository Protocols — dependency inversion for testability.

lock_for_claim and conditional_expire are the two serialization points of an
envelope: the first is a non-blocking row lock for claims, the second a
status-guarded write that lets exactly one settlement attempt win.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.enums import EnvelopeBox
from src.cr_envelope.domain.models import Claim, Envelope


class EnvelopeRepositoryProtocol(Protocol):
    async def insert_envelope(self, db: AsyncSession, envelope: Envelope) -> Envelope: ...

    async def get_envelope(self, db: AsyncSession, envelope_id: int) -> Envelope | None: ...

    async def lock_for_claim(self, db: AsyncSession, envelope_id: int) -> Envelope | None:
        """Row-lock without waiting. Raises LockContentionError if already locked."""
        ...

    async def find_claim(
        self, db: AsyncSession, envelope_id: int, user_id: str
    ) -> Claim | None: ...

    async def insert_claim(self, db: AsyncSession, claim: Claim) -> Claim:
        """Raises AlreadyClaimedError on a (envelope, user) unique violation."""
        ...

    async def update_counters(self, db: AsyncSession, envelope: Envelope) -> None: ...

    async def claim_totals(self, db: AsyncSession, envelope_id: int) -> tuple[int, int]:
        """(count, summed amount) of the envelope's claims."""
        ...

    async def conditional_expire(
        self, db: AsyncSession, envelope_id: int, now: datetime
    ) -> Envelope | None:
        """ACTIVE → EXPIRED if past deadline; returns the pre-update snapshot, or None
        when this call did not perform the transition."""
        ...

    async def next_expired_page(
        self, db: AsyncSession, after_id: int, now: datetime, limit: int
    ) -> list[Envelope]: ...

    async def count_created_since(
        self, db: AsyncSession, creator_id: str, since: datetime
    ) -> int: ...

    async def list_claims(self, db: AsyncSession, envelope_id: int) -> list[Claim]: ...

    async def list_envelopes(
        self, db: AsyncSession, user_id: str, box: EnvelopeBox, offset: int, limit: int
    ) -> tuple[int, list[Envelope]]: ...


class ExpiryTimerProtocol(Protocol):
    async def arm(self, envelope_id: int, expires_at: datetime, now: datetime) -> None: ...

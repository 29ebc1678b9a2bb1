"""EnvelopeRepository — concrete implementation of EnvelopeRepositoryProtocol.

Mutations are raw PostgreSQL with RETURNING; read-side listings use ORM select().

Serialization points:
  - lock_for_claim: SELECT ... FOR UPDATE NOWAIT. A held lock surfaces as
    SQLSTATE 55P03 and becomes LockContentionError instead of queueing.
  - conditional_expire: one statement that locks the row and updates it only
    while status = 'ACTIVE'. Zero rows means another caller already settled
    it (or it finished / is not yet due).

Transaction ownership: The CALLER is responsible for commit/rollback.
"""

from datetime import datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_common.database import LOCK_NOT_AVAILABLE, UNIQUE_VIOLATION, sqlstate_of
from src.cr_common.enums import EnvelopeBox, EnvelopeStatus, EnvelopeType
from src.cr_common.errors import AlreadyClaimedError, InternalError, LockContentionError
from src.cr_envelope.domain.models import Claim, Envelope
from src.cr_envelope.infrastructure.db_models import RedEnvelopeClaimORM, RedEnvelopeORM

_ENVELOPE_COLUMNS = (
    "id, creator_id, envelope_type, total_amount, remaining_amount, "
    "total_count, remaining_count, greeting, status, expires_at, created_at, updated_at"
)

_INSERT_ENVELOPE_SQL = text(f"""
    INSERT INTO red_envelopes
        (id, creator_id, envelope_type, total_amount, remaining_amount,
         total_count, remaining_count, greeting, status, expires_at)
    VALUES
        (:id, :creator_id, :envelope_type, :total_amount, :remaining_amount,
         :total_count, :remaining_count, :greeting, :status, :expires_at)
    RETURNING {_ENVELOPE_COLUMNS}
""")

_LOCK_FOR_CLAIM_SQL = text(f"""
    SELECT {_ENVELOPE_COLUMNS}
    FROM red_envelopes
    WHERE id = :id
    FOR UPDATE NOWAIT
""")

_FIND_CLAIM_SQL = text("""
    SELECT id, red_envelope_id, user_id, amount, claimed_at
    FROM red_envelope_claims
    WHERE red_envelope_id = :envelope_id AND user_id = :user_id
""")

_INSERT_CLAIM_SQL = text("""
    INSERT INTO red_envelope_claims (id, red_envelope_id, user_id, amount)
    VALUES (:id, :envelope_id, :user_id, :amount)
    RETURNING id, red_envelope_id, user_id, amount, claimed_at
""")

_UPDATE_COUNTERS_SQL = text("""
    UPDATE red_envelopes
    SET remaining_amount = :remaining_amount,
        remaining_count  = :remaining_count,
        status           = :status,
        updated_at       = NOW()
    WHERE id = :id AND status = 'ACTIVE'
""")

_CLAIM_TOTALS_SQL = text("""
    SELECT COUNT(*) AS claim_count, COALESCE(SUM(amount), 0) AS claimed_sum
    FROM red_envelope_claims
    WHERE red_envelope_id = :envelope_id
""")

# The CTE takes the row lock; the UPDATE re-checks status on the locked row,
# so of two concurrent callers only the first sees a row come back.
_CONDITIONAL_EXPIRE_SQL = text(f"""
    WITH prev AS (
        SELECT {_ENVELOPE_COLUMNS}
        FROM red_envelopes
        WHERE id = :id AND status = 'ACTIVE' AND expires_at <= :now
        FOR UPDATE
    )
    UPDATE red_envelopes AS e
    SET status = 'EXPIRED',
        remaining_amount = 0,
        remaining_count = 0,
        updated_at = NOW()
    FROM prev
    WHERE e.id = prev.id AND e.status = 'ACTIVE'
    RETURNING prev.id, prev.creator_id, prev.envelope_type, prev.total_amount,
              prev.remaining_amount, prev.total_count, prev.remaining_count,
              prev.greeting, prev.status, prev.expires_at, prev.created_at,
              prev.updated_at
""")

_NEXT_EXPIRED_PAGE_SQL = text(f"""
    SELECT {_ENVELOPE_COLUMNS}
    FROM red_envelopes
    WHERE id > :after_id
      AND status = 'ACTIVE'
      AND expires_at < :now
      AND remaining_amount > 0
    ORDER BY id ASC
    LIMIT :limit
""")

_COUNT_CREATED_SINCE_SQL = text("""
    SELECT COUNT(*) FROM red_envelopes
    WHERE creator_id = :creator_id AND created_at >= :since
""")


def _row_to_envelope(row: object) -> Envelope:
    return Envelope(
        id=row.id,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        envelope_type=EnvelopeType(row.envelope_type),  # type: ignore[attr-defined]
        total_amount=row.total_amount,  # type: ignore[attr-defined]
        remaining_amount=row.remaining_amount,  # type: ignore[attr-defined]
        total_count=row.total_count,  # type: ignore[attr-defined]
        remaining_count=row.remaining_count,  # type: ignore[attr-defined]
        greeting=row.greeting or "",  # type: ignore[attr-defined]
        status=EnvelopeStatus(row.status),  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_claim(row: object) -> Claim:
    return Claim(
        id=row.id,  # type: ignore[attr-defined]
        envelope_id=row.red_envelope_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        claimed_at=row.claimed_at,  # type: ignore[attr-defined]
    )


class EnvelopeRepository:
    async def insert_envelope(self, db: AsyncSession, envelope: Envelope) -> Envelope:
        result = await db.execute(
            _INSERT_ENVELOPE_SQL,
            {
                "id": envelope.id,
                "creator_id": envelope.creator_id,
                "envelope_type": envelope.envelope_type.value,
                "total_amount": envelope.total_amount,
                "remaining_amount": envelope.remaining_amount,
                "total_count": envelope.total_count,
                "remaining_count": envelope.remaining_count,
                "greeting": envelope.greeting,
                "status": envelope.status.value,
                "expires_at": envelope.expires_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Envelope insert returned no rows — this should never happen")
        return _row_to_envelope(row)

    async def get_envelope(self, db: AsyncSession, envelope_id: int) -> Envelope | None:
        orm = (
            await db.execute(select(RedEnvelopeORM).where(RedEnvelopeORM.id == envelope_id))
        ).scalar_one_or_none()
        return _row_to_envelope(orm) if orm else None

    async def lock_for_claim(self, db: AsyncSession, envelope_id: int) -> Envelope | None:
        try:
            result = await db.execute(_LOCK_FOR_CLAIM_SQL, {"id": envelope_id})
        except DBAPIError as exc:
            if sqlstate_of(exc) == LOCK_NOT_AVAILABLE:
                raise LockContentionError(envelope_id) from exc
            raise
        row = result.fetchone()
        return _row_to_envelope(row) if row else None

    async def find_claim(
        self, db: AsyncSession, envelope_id: int, user_id: str
    ) -> Claim | None:
        result = await db.execute(
            _FIND_CLAIM_SQL, {"envelope_id": envelope_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_claim(row) if row else None

    async def insert_claim(self, db: AsyncSession, claim: Claim) -> Claim:
        try:
            result = await db.execute(
                _INSERT_CLAIM_SQL,
                {
                    "id": claim.id,
                    "envelope_id": claim.envelope_id,
                    "user_id": claim.user_id,
                    "amount": claim.amount,
                },
            )
        except IntegrityError as exc:
            if sqlstate_of(exc) == UNIQUE_VIOLATION:
                raise AlreadyClaimedError(claim.envelope_id) from exc
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Claim insert returned no rows — this should never happen")
        return _row_to_claim(row)

    async def update_counters(self, db: AsyncSession, envelope: Envelope) -> None:
        result = await db.execute(
            _UPDATE_COUNTERS_SQL,
            {
                "id": envelope.id,
                "remaining_amount": envelope.remaining_amount,
                "remaining_count": envelope.remaining_count,
                "status": envelope.status.value,
            },
        )
        if result.rowcount != 1:
            raise InternalError(f"Locked envelope {envelope.id} left ACTIVE during claim")

    async def claim_totals(self, db: AsyncSession, envelope_id: int) -> tuple[int, int]:
        row = (await db.execute(_CLAIM_TOTALS_SQL, {"envelope_id": envelope_id})).fetchone()
        if row is None:
            return 0, 0
        return int(row.claim_count), int(row.claimed_sum)

    async def conditional_expire(
        self, db: AsyncSession, envelope_id: int, now: datetime
    ) -> Envelope | None:
        result = await db.execute(_CONDITIONAL_EXPIRE_SQL, {"id": envelope_id, "now": now})
        row = result.fetchone()
        return _row_to_envelope(row) if row else None

    async def next_expired_page(
        self, db: AsyncSession, after_id: int, now: datetime, limit: int
    ) -> list[Envelope]:
        result = await db.execute(
            _NEXT_EXPIRED_PAGE_SQL, {"after_id": after_id, "now": now, "limit": limit}
        )
        return [_row_to_envelope(row) for row in result.fetchall()]

    async def count_created_since(
        self, db: AsyncSession, creator_id: str, since: datetime
    ) -> int:
        result = await db.execute(
            _COUNT_CREATED_SINCE_SQL, {"creator_id": creator_id, "since": since}
        )
        return int(result.scalar_one())

    async def list_claims(self, db: AsyncSession, envelope_id: int) -> list[Claim]:
        rows = (
            await db.execute(
                select(RedEnvelopeClaimORM)
                .where(RedEnvelopeClaimORM.red_envelope_id == envelope_id)
                .order_by(RedEnvelopeClaimORM.claimed_at.desc(), RedEnvelopeClaimORM.id.desc())
            )
        ).scalars().all()
        return [_row_to_claim(row) for row in rows]

    async def list_envelopes(
        self, db: AsyncSession, user_id: str, box: EnvelopeBox, offset: int, limit: int
    ) -> tuple[int, list[Envelope]]:
        query = select(RedEnvelopeORM)
        if box == EnvelopeBox.RECEIVED:
            query = query.join(
                RedEnvelopeClaimORM,
                RedEnvelopeClaimORM.red_envelope_id == RedEnvelopeORM.id,
            ).where(RedEnvelopeClaimORM.user_id == user_id)
        else:
            query = query.where(RedEnvelopeORM.creator_id == user_id)

        total = (
            await db.execute(select(func.count()).select_from(query.subquery()))
        ).scalar_one()
        rows = (
            await db.execute(
                query.order_by(RedEnvelopeORM.created_at.desc(), RedEnvelopeORM.id.desc())
                .offset(offset)
                .limit(limit)
            )
        ).scalars().all()
        return int(total), [_row_to_envelope(row) for row in rows]

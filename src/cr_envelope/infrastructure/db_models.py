"""SQLAlchemy ORM models for cr_envelope.

These map to existing tables created by Alembic migrations (003, 004).
DO NOT add/remove columns here without a corresponding migration.
Used by the read-side queries; mutations go through raw SQL in persistence.py.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from src.cr_common.database import Base


class RedEnvelopeORM(Base):
    __tablename__ = "red_envelopes"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    envelope_type: Mapped[str] = mapped_column(String(20), nullable=False)
    total_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    remaining_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False)
    remaining_count: Mapped[int] = mapped_column(Integer, nullable=False)
    greeting: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class RedEnvelopeClaimORM(Base):
    __tablename__ = "red_envelope_claims"
    __table_args__ = (
        UniqueConstraint("red_envelope_id", "user_id", name="uq_claims_envelope_user"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    red_envelope_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("red_envelopes.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    # NOTE: no updated_at, claims are never modified

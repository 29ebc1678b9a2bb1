"""004: create red_envelope_claims table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE red_envelope_claims (
            id                  BIGINT      PRIMARY KEY,
            red_envelope_id     BIGINT      NOT NULL REFERENCES red_envelopes (id),
            user_id             VARCHAR(64) NOT NULL,
            amount              BIGINT      NOT NULL,
            claimed_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_claims_envelope_user UNIQUE (red_envelope_id, user_id),
            CONSTRAINT ck_claims_amount_gt_0   CHECK (amount > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_claims_user_claimed
            ON red_envelope_claims (user_id, claimed_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS red_envelope_claims CASCADE;")

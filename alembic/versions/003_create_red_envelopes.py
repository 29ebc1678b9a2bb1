"""003: create red_envelopes table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE red_envelopes (
            id                  BIGINT       PRIMARY KEY,
            creator_id          VARCHAR(64)  NOT NULL,
            envelope_type       VARCHAR(20)  NOT NULL,
            total_amount        BIGINT       NOT NULL,
            remaining_amount    BIGINT       NOT NULL,
            total_count         INTEGER      NOT NULL,
            remaining_count     INTEGER      NOT NULL,
            greeting            VARCHAR(100) NOT NULL DEFAULT '',
            status              VARCHAR(20)  NOT NULL DEFAULT 'ACTIVE',
            expires_at          TIMESTAMPTZ  NOT NULL,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_red_envelopes_type CHECK (envelope_type IN ('FIXED', 'RANDOM')),
            CONSTRAINT ck_red_envelopes_status
                CHECK (status IN ('ACTIVE', 'FINISHED', 'EXPIRED')),
            CONSTRAINT ck_red_envelopes_total_gt_0      CHECK (total_amount > 0),
            CONSTRAINT ck_red_envelopes_count_gt_0      CHECK (total_count > 0),
            CONSTRAINT ck_red_envelopes_remaining_amount
                CHECK (remaining_amount >= 0 AND remaining_amount <= total_amount),
            CONSTRAINT ck_red_envelopes_remaining_count
                CHECK (remaining_count >= 0 AND remaining_count <= total_count),
            CONSTRAINT ck_red_envelopes_terminal_count
                CHECK ((remaining_count = 0) = (status <> 'ACTIVE'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_red_envelopes_creator_created
            ON red_envelopes (creator_id, created_at DESC);
    """)
    # Sweep scan: ACTIVE rows only, walked by id
    op.execute("""
        CREATE INDEX idx_red_envelopes_active_expires
            ON red_envelopes (id, expires_at)
            WHERE status = 'ACTIVE';
    """)
    op.execute("""
        CREATE TRIGGER trg_red_envelopes_updated_at
            BEFORE UPDATE ON red_envelopes
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS red_envelopes CASCADE;")

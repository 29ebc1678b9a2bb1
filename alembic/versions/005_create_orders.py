"""005: create orders table (append-only ledger)

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  BIGSERIAL    PRIMARY KEY,
            order_name          VARCHAR(64)  NOT NULL,
            payer_user_id       VARCHAR(64),
            payee_user_id       VARCHAR(64),
            amount              BIGINT       NOT NULL,
            order_type          VARCHAR(30)  NOT NULL,
            status              VARCHAR(20)  NOT NULL DEFAULT 'SUCCESS',
            remark              VARCHAR(255) NOT NULL DEFAULT '',
            reference_id        VARCHAR(64),
            trade_time          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            expires_at          TIMESTAMPTZ  NOT NULL,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_orders_party
                CHECK (payer_user_id IS NOT NULL OR payee_user_id IS NOT NULL),
            CONSTRAINT ck_orders_type CHECK (order_type IN (
                'ENVELOPE_SEND', 'ENVELOPE_RECEIVE', 'ENVELOPE_REFUND'
            )),
            CONSTRAINT ck_orders_status CHECK (status IN ('SUCCESS'))
        );
    """)
    op.execute("CREATE INDEX idx_orders_reference ON orders (reference_id, order_type);")
    op.execute("CREATE INDEX idx_orders_payer ON orders (payer_user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_payee ON orders (payee_user_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_append_only
            BEFORE UPDATE OR DELETE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")

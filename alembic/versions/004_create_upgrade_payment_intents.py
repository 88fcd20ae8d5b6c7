"""004: create upgrade_payment_intents table

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
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE upgrade_payment_intents (
            id              VARCHAR(128)    PRIMARY KEY,
            release_id      INTEGER         NOT NULL,
            user_id         INTEGER         NOT NULL,
            company_id      INTEGER,
            product_types   TEXT[]          NOT NULL,
            line_items      JSONB           NOT NULL,
            amount_cents    INTEGER         NOT NULL,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'usd',
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            receipt_email   VARCHAR(254),
            receipt_name    VARCHAR(255),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_upi_amount_gt_0 CHECK (amount_cents > 0),
            CONSTRAINT ck_upi_status CHECK (
                status IN ('pending', 'succeeded', 'canceled', 'failed')
            ),
            CONSTRAINT ck_upi_types_not_empty CHECK (cardinality(product_types) > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_upi_release ON upgrade_payment_intents (release_id, created_at DESC);
    """)
    op.execute("""
        CREATE TRIGGER trg_upi_updated_at
        BEFORE UPDATE ON upgrade_payment_intents
        FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON COLUMN upgrade_payment_intents.line_items IS "
        "'product_type -> price in cents, fixed when the intent was created';"
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_upi_updated_at ON upgrade_payment_intents;")
    op.execute("DROP TABLE IF EXISTS upgrade_payment_intents;")

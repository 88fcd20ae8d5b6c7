"""005: create upgrade_purchase_records table

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
        CREATE TABLE upgrade_purchase_records (
            id                  BIGSERIAL       PRIMARY KEY,
            release_id          INTEGER         NOT NULL,
            product_type        VARCHAR(36)     NOT NULL,
            funding_method      VARCHAR(8)      NOT NULL,
            amount_cents        INTEGER         NOT NULL DEFAULT 0,
            credits_consumed    INTEGER         NOT NULL DEFAULT 0,
            payment_intent_id   VARCHAR(128)    REFERENCES upgrade_payment_intents (id),
            user_id             INTEGER         NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_upr_release_type UNIQUE (release_id, product_type),
            CONSTRAINT ck_upr_funding_method CHECK (funding_method IN ('cash', 'credit')),
            CONSTRAINT ck_upr_funding_consistent CHECK (
                (funding_method = 'cash' AND payment_intent_id IS NOT NULL AND credits_consumed = 0)
                OR (funding_method = 'credit' AND payment_intent_id IS NULL AND amount_cents = 0
                    AND credits_consumed > 0)
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_upr_intent
        ON upgrade_purchase_records (payment_intent_id)
        WHERE payment_intent_id IS NOT NULL;
    """)
    op.execute(
        "COMMENT ON TABLE upgrade_purchase_records IS "
        "'Permanent audit of applied upgrades — exactly one row per (release, product_type)';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS upgrade_purchase_records;")

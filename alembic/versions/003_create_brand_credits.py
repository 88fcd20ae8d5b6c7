"""003: create brand_credits table

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
        CREATE TABLE IF NOT EXISTS brand_credits (
            id              SERIAL          PRIMARY KEY,
            user_id         INTEGER         NOT NULL,
            company_id      INTEGER,
            pr_id           INTEGER,
            credits         INTEGER         NOT NULL,
            product_type    VARCHAR(36),
            notes           VARCHAR(48),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_brand_credits_nonzero CHECK (credits <> 0)
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_brand_credits_balance
        ON brand_credits (user_id, product_type, company_id);
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_brand_credits_release
        ON brand_credits (pr_id)
        WHERE pr_id IS NOT NULL;
    """)
    op.execute(
        "COMMENT ON TABLE brand_credits IS "
        "'Credit ledger — append-only; grants positive, consumption negative with pr_id; "
        "company_id NULL = user-level credit';"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_brand_credits_release;")
    op.execute("DROP INDEX IF EXISTS idx_brand_credits_balance;")

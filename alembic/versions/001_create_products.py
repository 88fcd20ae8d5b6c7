"""001: create products table

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Owned by the admin application; created here only for fresh environments
    op.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id              SERIAL          PRIMARY KEY,
            partner_id      INTEGER,
            short_name      VARCHAR(64),
            display_name    VARCHAR(128),
            description     TEXT,
            label           VARCHAR(32),
            icon            VARCHAR(64),
            price           INTEGER         NOT NULL DEFAULT 0,
            product_type    VARCHAR(12),
            is_deleted      BOOLEAN         NOT NULL DEFAULT FALSE,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            is_upgrade      BOOLEAN         NOT NULL DEFAULT FALSE,
            is_solo_upgrade BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gte_0 CHECK (price >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_products_upgrades
        ON products (partner_id, price)
        WHERE is_upgrade = TRUE AND is_active = TRUE AND is_deleted = FALSE;
    """)
    op.execute("COMMENT ON COLUMN products.price IS 'Price in cents';")
    op.execute(
        "COMMENT ON COLUMN products.is_solo_upgrade IS "
        "'Solo upgrades cannot be combined with any other upgrade on a release';"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_products_upgrades;")

"""002: create releases table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Owned by the release authoring application; only the columns this
    # service reads are guaranteed here.
    op.execute("""
        CREATE TABLE IF NOT EXISTS releases (
            id              SERIAL          PRIMARY KEY,
            uuid            VARCHAR(36)     NOT NULL UNIQUE,
            user_id         INTEGER         NOT NULL,
            company_id      INTEGER,
            title           VARCHAR(180),
            is_deleted      BOOLEAN         NOT NULL DEFAULT FALSE,
            distribution    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    # Older installs declared distribution as VARCHAR(20), too short for
    # combined upgrades like 'enhanced,yahoo,...'
    op.execute("ALTER TABLE releases ALTER COLUMN distribution TYPE VARCHAR(64);")
    op.execute("CREATE INDEX IF NOT EXISTS idx_releases_user ON releases (user_id);")
    op.execute(
        "COMMENT ON COLUMN releases.distribution IS "
        "'standard, or sorted comma-joined purchased upgrade types; written only by the reconciler';"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_releases_user;")

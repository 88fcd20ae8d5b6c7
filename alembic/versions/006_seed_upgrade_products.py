"""006: seed default upgrade products

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Global (partner_id NULL) upgrades; skipped if the admin app already created them
    op.execute("""
        INSERT INTO products
            (partner_id, short_name, display_name, description, label, icon,
             price, product_type, is_active, is_upgrade, is_solo_upgrade)
        SELECT NULL, v.short_name, v.display_name, v.description, v.label, v.icon,
               v.price, v.product_type, TRUE, TRUE, v.is_solo
        FROM (VALUES
            ('Enhanced', 'Enhanced Distribution',
             'AI-optimized distribution with an engagement report', NULL, 'sparkles',
             7500, 'enhanced', FALSE),
            ('Yahoo', 'Yahoo Finance',
             'Guaranteed placement on Yahoo Finance', 'Popular', 'rocket',
             15000, 'yahoo', FALSE),
            ('Exclusive', 'Exclusive Placement',
             'Premium exclusive placement; cannot be combined with other upgrades', 'Premium', 'crown',
             50000, 'exclusive', TRUE)
        ) AS v(short_name, display_name, description, label, icon, price, product_type, is_solo)
        WHERE NOT EXISTS (
            SELECT 1 FROM products p
            WHERE p.product_type = v.product_type AND p.partner_id IS NULL AND p.is_upgrade = TRUE
        );
    """)


def downgrade() -> None:
    op.execute("""
        DELETE FROM products
        WHERE partner_id IS NULL AND is_upgrade = TRUE
          AND product_type IN ('enhanced', 'yahoo', 'exclusive');
    """)

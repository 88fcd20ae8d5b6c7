"""ProductRepository — read-only access to the ``products`` table.

The catalog is maintained by the admin application; nothing here writes.
"""

from collections.abc import Iterable

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.domain.models import Product

_PRODUCT_COLUMNS = """
    id, partner_id, short_name, display_name, description, label, icon,
    price, product_type, is_active, is_solo_upgrade
"""

_LIST_UPGRADES_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE is_active = TRUE
      AND is_deleted = FALSE
      AND is_upgrade = TRUE
      AND product_type IS NOT NULL AND product_type <> ''
      AND (partner_id IS NULL OR partner_id = :partner_id)
    ORDER BY price ASC, id ASC
""")

_GET_BY_TYPES_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE is_upgrade = TRUE
      AND product_type IN :product_types
      AND (partner_id IS NULL OR partner_id = :partner_id)
    ORDER BY price ASC, id ASC
""").bindparams(bindparam("product_types", expanding=True))

# Solo flags are read without partner/active filters: a deactivated solo
# product still makes an already-purchased release exclusive.
_LIST_SOLO_TYPES_SQL = text("""
    SELECT DISTINCT product_type
    FROM products
    WHERE is_upgrade = TRUE AND is_solo_upgrade = TRUE AND product_type IS NOT NULL
""")


def _row_to_product(row: object) -> Product:
    return Product(
        id=row.id,  # type: ignore[attr-defined]
        product_type=row.product_type,  # type: ignore[attr-defined]
        display_name=row.display_name or row.short_name or "Product",  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        is_solo_upgrade=bool(row.is_solo_upgrade),  # type: ignore[attr-defined]
        is_active=bool(row.is_active),  # type: ignore[attr-defined]
        partner_id=row.partner_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        label=row.label,  # type: ignore[attr-defined]
        icon=row.icon,  # type: ignore[attr-defined]
    )


class ProductRepository:
    async def list_upgrade_products(
        self, db: AsyncSession, partner_id: int | None
    ) -> list[Product]:
        result = await db.execute(_LIST_UPGRADES_SQL, {"partner_id": partner_id})
        return [_row_to_product(row) for row in result.fetchall()]

    async def get_products_by_types(
        self, db: AsyncSession, product_types: Iterable[str], partner_id: int | None
    ) -> list[Product]:
        types = sorted(set(product_types))
        if not types:
            return []
        result = await db.execute(
            _GET_BY_TYPES_SQL, {"product_types": types, "partner_id": partner_id}
        )
        return [_row_to_product(row) for row in result.fetchall()]

    async def list_solo_product_types(self, db: AsyncSession) -> set[str]:
        result = await db.execute(_LIST_SOLO_TYPES_SQL)
        return {row.product_type for row in result.fetchall()}

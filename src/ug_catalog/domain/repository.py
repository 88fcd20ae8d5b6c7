"""Repository Protocol for the product catalog."""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.domain.models import Product


class ProductRepositoryProtocol(Protocol):
    async def list_upgrade_products(
        self, db: AsyncSession, partner_id: int | None
    ) -> list[Product]:
        """Active, non-deleted upgrades visible to the partner, cheapest first."""
        ...

    async def get_products_by_types(
        self, db: AsyncSession, product_types: Iterable[str], partner_id: int | None
    ) -> list[Product]:
        """Upgrades of the given types regardless of active/deleted state."""
        ...

    async def list_solo_product_types(self, db: AsyncSession) -> set[str]: ...

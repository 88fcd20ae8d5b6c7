"""CatalogService — resolves the purchasable upgrades for a release.

Pure read: loads partner-visible upgrades, marks the ones already present in
the release's distribution, and attaches the caller's credit balance.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.domain.icons import resolve_icon
from src.ug_catalog.domain.models import Product, ProductView
from src.ug_catalog.domain.repository import ProductRepositoryProtocol
from src.ug_catalog.infrastructure.persistence import ProductRepository
from src.ug_common.cents import cents_to_whole_display
from src.ug_credit.application.service import CreditService
from src.ug_credit.domain.models import CreditBalance
from src.ug_distribution.domain.exclusivity import persisted_block_reason
from src.ug_distribution.domain.models import Release


@dataclass
class CatalogResult:
    release: Release
    products: list[ProductView]
    credit_balance: CreditBalance


def dedupe_by_type(products: list[Product]) -> list[Product]:
    """One product per type; a partner-specific row wins over the global one."""
    chosen: dict[str, Product] = {}
    for product in products:
        current = chosen.get(product.product_type)
        if current is None or (current.partner_id is None and product.partner_id is not None):
            chosen[product.product_type] = product
    return sorted(chosen.values(), key=lambda p: (p.price, p.id))


class CatalogService:
    def __init__(
        self,
        repo: ProductRepositoryProtocol | None = None,
        credit_service: CreditService | None = None,
    ) -> None:
        self._repo: ProductRepositoryProtocol = repo or ProductRepository()
        self._credits = credit_service or CreditService()

    async def load_products(self, db: AsyncSession, partner_id: int | None) -> dict[str, Product]:
        """Currently purchasable upgrades keyed by product type."""
        products = await self._repo.list_upgrade_products(db, partner_id)
        return {p.product_type: p for p in dedupe_by_type(products)}

    async def solo_types(self, db: AsyncSession) -> frozenset[str]:
        return frozenset(await self._repo.list_solo_product_types(db))

    async def resolve_catalog(
        self, db: AsyncSession, release: Release, partner_id: int | None
    ) -> CatalogResult:
        purchased = release.distribution.tokens
        products = await self._repo.list_upgrade_products(db, partner_id)

        # Purchased upgrades stay visible even after being deactivated
        missing = purchased - {p.product_type for p in products}
        if missing:
            products = products + await self._repo.get_products_by_types(db, missing, partner_id)

        solo_types = await self.solo_types(db)
        views = [
            ProductView(
                product=product,
                is_purchased=product.product_type in purchased,
                price_display=cents_to_whole_display(product.price),
                icon=resolve_icon(product.icon),
                blocked_reason=persisted_block_reason(product.product_type, purchased, solo_types),
            )
            for product in dedupe_by_type(products)
        ]
        balance = await self._credits.get_balance(db, release.user_id, release.company_id)
        return CatalogResult(release=release, products=views, credit_balance=balance)

"""Server-side purchase validation shared by the cash and credit paths.

Runs before any gateway call or transaction. The client's cart is never
trusted: selection, ownership of the upgrades and exclusivity are all
recomputed from the database here.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_catalog.application.service import CatalogService
from src.ug_catalog.domain.models import Product
from src.ug_common.errors import (
    AlreadyPurchasedError,
    EmptySelectionError,
    UnknownProductTypeError,
)
from src.ug_distribution.domain.exclusivity import ensure_exclusive
from src.ug_distribution.domain.models import Release


@dataclass
class ValidatedPurchase:
    release: Release
    products: list[Product]          # in price order

    @property
    def product_types(self) -> list[str]:
        return [p.product_type for p in self.products]

    @property
    def line_items(self) -> dict[str, int]:
        return {p.product_type: p.price for p in self.products}

    @property
    def amount_cents(self) -> int:
        return sum(p.price for p in self.products)

    @property
    def product_names(self) -> list[str]:
        return [p.display_name for p in self.products]


async def validate_purchase(
    db: AsyncSession,
    catalog: CatalogService,
    release: Release,
    product_types: Iterable[str],
    partner_id: int | None,
) -> ValidatedPurchase:
    requested = list(dict.fromkeys(t.strip() for t in product_types if t and t.strip()))
    if not requested:
        raise EmptySelectionError()

    persisted = release.distribution.tokens
    already = [t for t in requested if t in persisted]
    if already:
        raise AlreadyPurchasedError(already)

    products = await catalog.load_products(db, partner_id)
    for product_type in requested:
        if product_type not in products:
            raise UnknownProductTypeError(product_type)

    solo_types = await catalog.solo_types(db)
    ensure_exclusive(persisted | set(requested), solo_types)

    selected = sorted((products[t] for t in requested), key=lambda p: (p.price, p.id))
    return ValidatedPurchase(release=release, products=selected)

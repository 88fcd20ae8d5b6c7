"""Pydantic schemas for the catalog half of the distribution endpoint.

Wire format is camelCase to match the release wizard's client.
"""

from src.ug_catalog.application.service import CatalogResult
from src.ug_catalog.domain.models import ProductView
from src.ug_common.schemas import CamelModel


class ProductIconItem(CamelModel):
    kind: str
    name: str


class ProductItem(CamelModel):
    id: int
    name: str
    description: str | None
    price: int
    price_display: str
    type: str
    icon: ProductIconItem
    label: str | None
    is_solo_upgrade: bool
    is_purchased: bool
    blocked_reason: str | None

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductItem":
        product = view.product
        return cls(
            id=product.id,
            name=product.display_name,
            description=product.description,
            price=product.price,
            price_display=view.price_display,
            type=product.product_type,
            icon=ProductIconItem(kind=view.icon.kind, name=view.icon.name),
            label=product.label,
            is_solo_upgrade=product.is_solo_upgrade,
            is_purchased=view.is_purchased,
            blocked_reason=view.blocked_reason.value if view.blocked_reason else None,
        )


class CatalogResponse(CamelModel):
    release_uuid: str
    distribution: str | None
    credit_balance: dict[str, int]
    products: list[ProductItem]

    @classmethod
    def from_result(cls, result: CatalogResult) -> "CatalogResponse":
        return cls(
            release_uuid=result.release.uuid,
            distribution=result.release.distribution_raw or None,
            credit_balance=result.credit_balance.merged(),
            products=[ProductItem.from_view(v) for v in result.products],
        )

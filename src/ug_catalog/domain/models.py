"""Domain models for ug_catalog — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

from src.ug_catalog.domain.icons import ResolvedIcon
from src.ug_distribution.domain.exclusivity import BlockReason


@dataclass
class Product:
    id: int
    product_type: str            # token written into releases.distribution
    display_name: str
    price: int                   # cents
    is_solo_upgrade: bool = False
    is_active: bool = True
    partner_id: int | None = None  # None = available to every partner
    description: str | None = None
    label: str | None = None       # badge text, e.g. "Most popular"
    icon: str | None = None


@dataclass
class ProductView:
    product: Product
    is_purchased: bool
    price_display: str
    icon: ResolvedIcon
    blocked_reason: BlockReason | None = None

    @property
    def product_type(self) -> str:
        return self.product.product_type

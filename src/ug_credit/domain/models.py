"""Domain models for ug_credit — pure dataclasses, no SQLAlchemy dependency.

brand_credits is append-only: grants are positive rows, consumption is a
negative row tagged with the consuming release. Balances are always derived.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.ug_common.enums import CreditScope


@dataclass
class CreditLedgerEntry:
    id: int                       # SERIAL
    user_id: int
    company_id: int | None        # None = user-level credit
    product_type: str
    credits: int                  # signed: +grant, -consumption
    pr_id: int | None = None      # consuming release
    notes: str | None = None
    created_at: datetime | None = None

    @property
    def scope(self) -> CreditScope:
        return CreditScope.USER if self.company_id is None else CreditScope.BRAND


@dataclass
class CreditBalance:
    user_id: int
    company_id: int | None
    brand: dict[str, int] = field(default_factory=dict)   # product_type -> credits
    user: dict[str, int] = field(default_factory=dict)

    def available(self, product_type: str) -> int:
        return self.brand.get(product_type, 0) + self.user.get(product_type, 0)

    def merged(self) -> dict[str, int]:
        """Per-type total across both scopes."""
        totals: dict[str, int] = {}
        for scope in (self.brand, self.user):
            for product_type, amount in scope.items():
                totals[product_type] = totals.get(product_type, 0) + amount
        return dict(sorted(totals.items()))

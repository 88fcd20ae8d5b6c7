"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.enums import CreditScope
from src.ug_credit.domain.models import CreditLedgerEntry


class CreditRepositoryProtocol(Protocol):
    async def sum_by_scope(
        self, db: AsyncSession, user_id: int, company_id: int | None
    ) -> list[tuple[str, CreditScope, int]]:
        """(product_type, scope, net credits) for every type with ledger rows."""
        ...

    async def lock_balance(self, db: AsyncSession, user_id: int, product_type: str) -> None:
        """Serialize consumers of one (user, product type) until transaction end."""
        ...

    async def scope_balances(
        self, db: AsyncSession, user_id: int, company_id: int | None, product_type: str
    ) -> tuple[int, int]:
        """(brand_available, user_available) for one product type."""
        ...

    async def insert_entry(
        self,
        db: AsyncSession,
        user_id: int,
        company_id: int | None,
        product_type: str,
        credits: int,
        pr_id: int | None,
        notes: str | None,
    ) -> CreditLedgerEntry: ...

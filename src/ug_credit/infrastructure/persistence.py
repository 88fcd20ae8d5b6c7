"""CreditRepository — concrete implementation over ``brand_credits``.

Rows are never updated or deleted. A transaction-scoped advisory lock keyed
on (user, product type) serializes concurrent consumers, so the balance read
inside ``consume_credits`` is the balance the insert is checked against.

Transaction ownership: the CALLER commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.enums import CreditScope
from src.ug_common.errors import InternalError
from src.ug_credit.domain.models import CreditLedgerEntry

# company_id = NULL is never true, so a NULL company only sums user scope
_SUM_BY_SCOPE_SQL = text("""
    SELECT product_type,
           (company_id IS NULL) AS is_user_scope,
           COALESCE(SUM(credits), 0) AS total
    FROM brand_credits
    WHERE user_id = :user_id
      AND product_type IS NOT NULL
      AND (company_id = :company_id OR company_id IS NULL)
    GROUP BY product_type, (company_id IS NULL)
    ORDER BY product_type
""")

_SCOPE_BALANCES_SQL = text("""
    SELECT
        COALESCE(SUM(credits) FILTER (WHERE company_id IS NOT NULL), 0) AS brand_total,
        COALESCE(SUM(credits) FILTER (WHERE company_id IS NULL), 0)     AS user_total
    FROM brand_credits
    WHERE user_id = :user_id
      AND product_type = :product_type
      AND (company_id = :company_id OR company_id IS NULL)
""")

_ADVISORY_LOCK_SQL = text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO brand_credits (user_id, company_id, pr_id, credits, product_type, notes)
    VALUES (:user_id, :company_id, :pr_id, :credits, :product_type, :notes)
    RETURNING id, user_id, company_id, pr_id, credits, product_type, notes, created_at
""")


def _row_to_entry(row: object) -> CreditLedgerEntry:
    return CreditLedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        product_type=row.product_type,  # type: ignore[attr-defined]
        credits=row.credits,  # type: ignore[attr-defined]
        pr_id=row.pr_id,  # type: ignore[attr-defined]
        notes=row.notes,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class CreditRepository:
    async def sum_by_scope(
        self, db: AsyncSession, user_id: int, company_id: int | None
    ) -> list[tuple[str, CreditScope, int]]:
        result = await db.execute(
            _SUM_BY_SCOPE_SQL, {"user_id": user_id, "company_id": company_id}
        )
        return [
            (
                row.product_type,
                CreditScope.USER if row.is_user_scope else CreditScope.BRAND,
                int(row.total),
            )
            for row in result.fetchall()
        ]

    async def lock_balance(self, db: AsyncSession, user_id: int, product_type: str) -> None:
        await db.execute(_ADVISORY_LOCK_SQL, {"lock_key": f"credits:{user_id}:{product_type}"})

    async def scope_balances(
        self, db: AsyncSession, user_id: int, company_id: int | None, product_type: str
    ) -> tuple[int, int]:
        result = await db.execute(
            _SCOPE_BALANCES_SQL,
            {"user_id": user_id, "company_id": company_id, "product_type": product_type},
        )
        row = result.fetchone()
        if row is None:
            return 0, 0
        return int(row.brand_total), int(row.user_total)

    async def insert_entry(
        self,
        db: AsyncSession,
        user_id: int,
        company_id: int | None,
        product_type: str,
        credits: int,
        pr_id: int | None,
        notes: str | None,
    ) -> CreditLedgerEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "user_id": user_id,
                "company_id": company_id,
                "pr_id": pr_id,
                "credits": credits,
                "product_type": product_type,
                "notes": notes,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Credit ledger insert returned no rows")
        return _row_to_entry(row)

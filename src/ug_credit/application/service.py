"""CreditService — balances and consumption over the credit ledger.

``get_balance`` is a plain read. ``consume_credits`` runs inside the
CALLER's transaction (it is one step of a credit-funded purchase) and never
commits on its own.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.ug_common.enums import CreditScope
from src.ug_credit.domain.allocation import plan_consumption
from src.ug_credit.domain.models import CreditBalance, CreditLedgerEntry
from src.ug_credit.domain.repository import CreditRepositoryProtocol
from src.ug_credit.infrastructure.persistence import CreditRepository

logger = logging.getLogger(__name__)

_NOTES_MAX_LENGTH = 48  # brand_credits.notes is VARCHAR(48)
_NOTE_TITLE_LENGTH = 30


def consumption_note(
    release_id: int, release_title: str | None = None, release_uuid: str | None = None
) -> str:
    """Ledger note naming the release by a shortened title, else its uuid."""
    label = (release_title or "")[:_NOTE_TITLE_LENGTH] or release_uuid or str(release_id)
    return f"Used for PR: {label}"[:_NOTES_MAX_LENGTH]


class CreditService:
    def __init__(self, repo: CreditRepositoryProtocol | None = None) -> None:
        self._repo: CreditRepositoryProtocol = repo or CreditRepository()

    async def get_balance(
        self, db: AsyncSession, user_id: int, company_id: int | None
    ) -> CreditBalance:
        balance = CreditBalance(user_id=user_id, company_id=company_id)
        for product_type, scope, total in await self._repo.sum_by_scope(db, user_id, company_id):
            bucket = balance.user if scope == CreditScope.USER else balance.brand
            bucket[product_type] = bucket.get(product_type, 0) + total
        return balance

    async def consume_credits(
        self,
        db: AsyncSession,
        product_type: str,
        amount: int,
        release_id: int,
        user_id: int,
        company_id: int | None,
        release_title: str | None = None,
        release_uuid: str | None = None,
    ) -> list[CreditLedgerEntry]:
        """Debit ``amount`` credits of ``product_type`` for ``release_id``.

        Re-reads the live balance under a per-(user, type) lock. Brand credits
        are used before user credits. Raises InsufficientCreditsError (writing
        nothing) when both scopes together do not cover ``amount``.
        """
        await self._repo.lock_balance(db, user_id, product_type)
        brand_available, user_available = await self._repo.scope_balances(
            db, user_id, company_id, product_type
        )
        if company_id is None:
            brand_available = 0
        steps = plan_consumption(product_type, amount, brand_available, user_available)

        entries: list[CreditLedgerEntry] = []
        for step in steps:
            entry = await self._repo.insert_entry(
                db,
                user_id=user_id,
                company_id=company_id if step.scope == CreditScope.BRAND else None,
                product_type=product_type,
                credits=-step.amount,
                pr_id=release_id,
                notes=consumption_note(release_id, release_title, release_uuid),
            )
            entries.append(entry)
        logger.info(
            "Consumed %d %s credit(s) for release=%s user=%s (%s)",
            amount,
            product_type,
            release_id,
            user_id,
            ", ".join(f"{s.scope.value}={s.amount}" for s in steps),
        )
        return entries
